"""Application resources, routing and the WSGI application."""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass

from sqlalchemy.orm import Session, sessionmaker
from werkzeug.wrappers import Request, Response

from qaboard.answer_repository import AnswerRepository
from qaboard.config import Env, load_env, setup_logger
from qaboard.db import open_database, parse_db_log_level
from qaboard.handlers.answer_handlers import (
    CreateAnswerHandler,
    DeleteAnswerHandler,
    GetAnswerHandler,
)
from qaboard.handlers.question_handlers import (
    CreateQuestionHandler,
    DeleteQuestionHandler,
    GetQuestionHandler,
    ListQuestionsHandler,
)
from qaboard.question_repository import QuestionRepository
from qaboard.rpc_auth import Authorizer, BasicAuthMiddleware
from qaboard.timer import Timer
from qaboard.uow import UnitOfWork
from qaboard.usecases.answers import (
    CreateAnswerUseCase,
    DeleteAnswerUseCase,
    GetAnswerUseCase,
)
from qaboard.usecases.questions import (
    CreateQuestionUseCase,
    DeleteQuestionUseCase,
    GetQuestionWithAnswersUseCase,
    ListQuestionsUseCase,
)


@dataclass
class Resources:
    """Configuration, database sessions and logger shared by the application."""

    env: Env
    sessions: sessionmaker[Session]
    logger: logging.Logger


def init_resources(
    environ: Mapping[str, str] | None = None,
    dotenv_files: Iterable[str] | None = None,
) -> Resources:
    """Load configuration, set up logging and connect to the database."""
    env = load_env(environ, dotenv_files)
    logger = setup_logger(env)

    logger.info("starting db connection")
    try:
        sessions = open_database(env.db_dsn, parse_db_log_level(env.log_level_gorm))
    except Exception as exc:
        raise RuntimeError(f"try init db: {exc}") from exc
    finally:
        logger.info("done db connection")

    return Resources(env=env, sessions=sessions, logger=logger)


def _compile(pattern: str) -> re.Pattern[str]:
    parts = []
    for segment in pattern.split("/"):
        if segment.startswith("{") and segment.endswith("}"):
            parts.append("([^/]+)")
        else:
            parts.append(re.escape(segment))
    return re.compile("/".join(parts))


def _plain(status: int, text: str) -> Response:
    resp = Response(text + "\n", status=status, content_type="text/plain; charset=utf-8")
    resp.headers["X-Content-Type-Options"] = "nosniff"
    return resp


class Router:
    """Dispatches requests by method and path; ``{name}`` matches one segment.

    Path segments captured by wildcards are passed to the handler positionally.
    """

    def __init__(self, routes: Iterable[tuple[str, str, Callable[..., Response]]]) -> None:
        self._routes = [
            (method.upper(), _compile(pattern), handler) for method, pattern, handler in routes
        ]

    def __call__(self, environ: dict, start_response: Callable) -> Iterable[bytes]:
        request = Request(environ)
        allowed: set[str] = set()
        for method, regex, handler in self._routes:
            match = regex.fullmatch(request.path)
            if match is None:
                continue
            methods = {method, "HEAD"} if method == "GET" else {method}
            if request.method in methods:
                response = handler(request, *match.groups())
                return response(environ, start_response)
            allowed |= methods

        if allowed:
            response = _plain(405, "Method Not Allowed")
            response.headers["Allow"] = ", ".join(sorted(allowed))
        else:
            response = _plain(404, "404 page not found")
        return response(environ, start_response)


def create_app(resources: Resources, authorizer: Authorizer) -> BasicAuthMiddleware:
    """Wire repositories, use cases and handlers into an authenticated WSGI app.

    ``authorizer(username, password)`` returns the user id or raises.
    """
    questions = QuestionRepository(resources.sessions)
    answers = AnswerRepository(resources.sessions)
    uow = UnitOfWork(resources.sessions)
    timer = Timer()
    log = resources.logger

    router = Router(
        [
            ("POST", "/questions", CreateQuestionHandler(CreateQuestionUseCase(questions, timer, log))),
            ("GET", "/questions", ListQuestionsHandler(ListQuestionsUseCase(questions, log))),
            (
                "GET",
                "/questions/{id}",
                GetQuestionHandler(GetQuestionWithAnswersUseCase(questions, answers, log)),
            ),
            (
                "DELETE",
                "/questions/{id}",
                DeleteQuestionHandler(DeleteQuestionUseCase(questions, answers, uow, log)),
            ),
            (
                "POST",
                "/questions/{id}/answers",
                CreateAnswerHandler(CreateAnswerUseCase(answers, questions, timer, log)),
            ),
            ("GET", "/answers/{id}", GetAnswerHandler(GetAnswerUseCase(answers, log))),
            ("DELETE", "/answers/{id}", DeleteAnswerHandler(DeleteAnswerUseCase(answers, log))),
        ]
    )
    return BasicAuthMiddleware(router, authorizer)