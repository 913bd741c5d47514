"""Environment configuration and logger setup."""

from __future__ import annotations

import json
import logging
import os
import sys
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import IO

from dotenv import dotenv_values

DEFAULT_DOTENV_FILES = (".env.local", ".env")
LOGGER_NAME = "qaboard"


class ConfigError(Exception):
    """Raised when the configuration cannot be loaded."""


@dataclass(frozen=True)
class Env:
    """Settings read from the environment."""

    db_dsn: str
    log_level_gorm: str = "error"
    log_level: str = "info"
    log_format: str = "text"
    listen_port: str = ":8000"
    migration_path: str = "./migration"


_OPTIONAL_VARS = {
    "LOG_LEVEL_GORM": "log_level_gorm",
    "LOG_LEVEL": "log_level",
    "LOG_FORMAT": "log_format",
    "LISTEN_PORT": "listen_port",
    "MIGRATION_PATH": "migration_path",
}


def _merge_dotenv(values: dict[str, str], files: Iterable[str]) -> None:
    # Variables already set win; earlier files win over later ones.
    # Loading stops at the first file that does not exist.
    for path in files:
        try:
            with open(path, encoding="utf-8") as stream:
                parsed = dotenv_values(stream=stream)
        except FileNotFoundError:
            return
        except OSError as exc:
            raise ConfigError(f"dot env load: {exc}") from exc
        for key, value in parsed.items():
            if value is not None and key not in values:
                values[key] = value


def load_env(
    environ: Mapping[str, str] | None = None,
    dotenv_files: Iterable[str] | None = None,
) -> Env:
    """Build an Env from the process environment and dotenv files."""
    values = dict(os.environ if environ is None else environ)
    _merge_dotenv(values, DEFAULT_DOTENV_FILES if dotenv_files is None else dotenv_files)

    if "DB_DSN" not in values:
        raise ConfigError('env parse: required environment variable "DB_DSN" is not set')

    options = {attr: values[var] for var, attr in _OPTIONAL_VARS.items() if var in values}
    return Env(db_dsn=values["DB_DSN"], **options)


def parse_level(lvl: str) -> int:
    """Map a level name to a logging level; unknown names give INFO."""
    return {
        "debug": logging.DEBUG,
        "info": logging.INFO,
        "warn": logging.WARNING,
        "warning": logging.WARNING,
        "error": logging.ERROR,
    }.get(lvl.lower(), logging.INFO)


_RESERVED_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__
) | {"message", "asctime"}

_LEVEL_NAMES = {"WARNING": "WARN", "CRITICAL": "ERROR"}


def _extras(record: logging.LogRecord) -> dict[str, object]:
    return {k: v for k, v in record.__dict__.items() if k not in _RESERVED_ATTRS}


def _text_value(value: object) -> str:
    text = str(value)
    if text == "" or any(ch in text for ch in ' ="\\') or not text.isprintable():
        return json.dumps(text, ensure_ascii=False)
    return text


class _StructuredFormatter(logging.Formatter):
    def __init__(self, as_json: bool) -> None:
        super().__init__()
        self._as_json = as_json

    def format(self, record: logging.LogRecord) -> str:
        fields: dict[str, object] = {
            "time": datetime.fromtimestamp(record.created).astimezone().isoformat(
                timespec="milliseconds"
            ),
            "level": _LEVEL_NAMES.get(record.levelname, record.levelname),
            "msg": record.getMessage(),
        }
        fields.update(_extras(record))
        if self._as_json:
            return json.dumps(fields, ensure_ascii=False, default=str)
        return " ".join(f"{key}={_text_value(value)}" for key, value in fields.items())


def setup_logger(env: Env, stream: IO[str] | None = None) -> logging.Logger:
    """Configure and return the application logger."""
    handler = logging.StreamHandler(sys.stdout if stream is None else stream)
    handler.setFormatter(_StructuredFormatter(as_json=env.log_format == "json"))
    logger = logging.getLogger(LOGGER_NAME)
    for old in list(logger.handlers):
        logger.removeHandler(old)
    logger.addHandler(handler)
    logger.setLevel(parse_level(env.log_level))
    return logger