"""structlog wiring plus request and pipeline-stage context.

Every log entry carries the ``request_id`` of the CLI invocation or HTTP
request that produced it. Engine stages additionally bind their stage
name and report how long they took.
"""

from __future__ import annotations

import logging
import sys
import time
import uuid
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

    from code_evolution.config import LoggingSettings

REQUEST_ID_HEADER = "X-Request-ID"
MAX_REQUEST_ID_LENGTH = 64

# HTTP client libraries log every exchange at INFO.
_HTTP_CLIENT_LOGGERS = ("httpx", "httpcore")


def generate_request_id() -> str:
    """Return a fresh UUID4 string."""
    return str(uuid.uuid4())


def bind_request_id(request_id: str | None = None) -> str:
    """Bind ``request_id`` to all later log entries in the current context.

    A missing, blank or oversized id is replaced by a generated one.

    Returns:
        The id actually bound.
    """
    if not request_id or not request_id.strip() or len(request_id) > MAX_REQUEST_ID_LENGTH:
        request_id = generate_request_id()
    structlog.contextvars.bind_contextvars(request_id=request_id)
    return request_id


def _handlers(log_file: Path | None) -> list[logging.Handler]:
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    return handlers


def configure_logging(settings: LoggingSettings) -> None:
    """Route structlog and stdlib records through the configured handlers.

    Records from third-party loggers (uvicorn, httpx) get the same
    timestamp, level and renderer as our own. Calling this again replaces
    the handlers installed by the previous call.
    """
    renderer: structlog.types.Processor
    if settings.format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    timestamper = structlog.processors.TimeStamper(fmt="iso")
    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            timestamper,
        ],
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    root = logging.getLogger()
    root.handlers.clear()
    for handler in _handlers(settings.file):
        handler.setFormatter(formatter)
        root.addHandler(handler)
    root.setLevel(settings.level)

    client_level = logging.NOTSET if settings.level == "DEBUG" else logging.WARNING
    for name in _HTTP_CLIENT_LOGGERS:
        logging.getLogger(name).setLevel(client_level)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            timestamper,
            structlog.processors.StackInfoRenderer(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


@contextmanager
def pipeline_stage(stage: str, **extra: Any) -> Iterator[structlog.stdlib.BoundLogger]:
    """Bind ``stage`` (and ``extra``) to log entries emitted inside the block.

    ``stage_end`` is logged at DEBUG with the elapsed milliseconds, also
    when the stage raises. A failing stage is logged as ``stage_failed``
    and the exception propagates.

    Example::

        with pipeline_stage("analyze", files=3) as log:
            log.info("language_detected", language="TypeScript")
    """
    structlog.contextvars.bind_contextvars(stage=stage, **extra)
    log: structlog.stdlib.BoundLogger = structlog.get_logger(f"code_evolution.stage.{stage}")
    started = time.perf_counter()
    try:
        yield log
    except Exception:
        log.exception("stage_failed")
        raise
    finally:
        elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
        log.debug("stage_end", elapsed_ms=elapsed_ms)
        structlog.contextvars.unbind_contextvars("stage", *extra)
