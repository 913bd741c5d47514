"""Clock used to stamp new records."""

from __future__ import annotations

from datetime import datetime


class Timer:
    """Returns the current local time; replaceable in tests."""

    def now(self) -> datetime:
        return datetime.now().astimezone()