from __future__ import annotations

import logging
import sys
from typing import Any, Protocol, runtime_checkable

import structlog
from rich.logging import RichHandler
from structlog.contextvars import bind_contextvars, clear_contextvars, merge_contextvars

from .config import Settings

_CONFIGURED = False

# third party loggers that are chatty at INFO while building transformers or writing files
_QUIET_LOGGERS = ("pyproj", "shapely", "polars")


@runtime_checkable
class ILogger(Protocol):
    def debug(self, event: str, **kw: Any) -> Any: ...
    def info(self, event: str, **kw: Any) -> Any: ...
    def warning(self, event: str, **kw: Any) -> Any: ...
    def error(self, event: str, **kw: Any) -> Any: ...
    def exception(self, event: str, **kw: Any) -> Any: ...
    def bind(self, **kw: Any) -> "ILogger": ...


def _shared_processors() -> list[Any]:
    return [
        merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]


def _console_handler() -> logging.Handler:
    return RichHandler(
        rich_tracebacks=True,
        markup=False,
        show_time=False,
        show_path=False,
        log_time_format="%H:%M:%S",
        console=None,
    )


def configure_logging(
    settings: Settings | None = None,
    *,
    level: str | None = None,
    fmt: str | None = None,
) -> None:
    """
    Configure structlog on top of stdlib logging, once per process.

    Explicit `level`/`fmt` win over the values carried by `settings`.
    """
    global _CONFIGURED
    if _CONFIGURED:
        return

    level = (level or (settings.log_level if settings else "INFO")).upper()
    fmt = fmt or (settings.log_format if settings else "console")

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level)

    processors = _shared_processors()
    if fmt == "console":
        handler = _console_handler()
        processors.append(structlog.processors.KeyValueRenderer(sort_keys=True))
    else:
        handler = logging.StreamHandler(stream=sys.stdout)
        processors.append(structlog.processors.JSONRenderer())

    handler.setFormatter(logging.Formatter("%(message)s"))
    handler.setLevel(level)
    root.addHandler(handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(level)),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    _CONFIGURED = True


def get_logger(name: str = "matsim_exporter") -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def bind(**values: Any) -> None:
    bind_contextvars(**values)


def clear_bindings() -> None:
    clear_contextvars()
