"""
Structured logging for the AutoBrand CRM core.

Modules log through structlog with dotted event names (importer.parsed,
engine.deal_moved, store.saved). Entries emitted inside logging_context()
are tagged with the CRM scope that was active:

- operation: the public call being served (import_leads, move_deal, ...)
- import_batch: id of the CSV import the entry belongs to
- deal_id: the deal a pipeline move or edit is working on

Output is a colored console renderer by default, or one JSON object per
line when LOG_FORMAT=json.
"""

import logging
import sys
import time
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Generator

import structlog
from structlog.types import Processor

from .config import config

SCOPE_KEYS = ('operation', 'import_batch', 'deal_id')

_scope: ContextVar[dict[str, str]] = ContextVar('crm_log_scope', default={})


def current_scope() -> dict[str, str]:
    """Copy of the scope values active in this context."""
    return dict(_scope.get())


def get_operation() -> str | None:
    return _scope.get().get('operation')


def get_import_batch() -> str | None:
    return _scope.get().get('import_batch')


def add_context_info(
    logger: structlog.types.WrappedLogger,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Processor copying the active CRM scope into each entry."""
    for key, value in _scope.get().items():
        event_dict.setdefault(key, value)
    return event_dict


@contextmanager
def logging_context(**scope: str | None) -> Generator[dict[str, str], None, None]:
    """
    Tag log entries emitted inside the block with CRM scope values.

    Nested blocks inherit the outer scope and may override single keys;
    None values leave the inherited value in place.

    Usage:
        with logging_context(operation="import_leads", import_batch=batch_id):
            logger.info("importer.parsed", rows=12)
    """
    unknown = set(scope) - set(SCOPE_KEYS)
    if unknown:
        raise TypeError(f"Unknown logging scope key(s): {', '.join(sorted(unknown))}")

    merged = {**_scope.get(), **{k: v for k, v in scope.items() if v is not None}}
    token = _scope.set(merged)
    try:
        yield merged
    finally:
        _scope.reset(token)


def _renderer(json_output: bool) -> list[Processor]:
    if json_output:
        return [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    return [structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())]


def configure_logging(
    json_output: bool | None = None,
    log_level: str | None = None,
) -> None:
    """
    Configure structlog for the CRM core.

    Args:
        json_output: JSON lines when True, console output when False
                     (defaults to LOG_FORMAT=json)
        log_level: Minimum level name (defaults to LOG_LEVEL)
    """
    if json_output is None:
        json_output = config.LOG_FORMAT == 'json'
    level_num = getattr(logging, (log_level or config.LOG_LEVEL).upper(), logging.INFO)

    logging.basicConfig(format='%(message)s', stream=sys.stdout, level=level_num)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            add_context_info,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt='iso'),
            structlog.processors.StackInfoRenderer(),
            *_renderer(json_output),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level_num),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


class PipelineTimer:
    """
    Wall-clock timings for the stages of one import.

    Usage:
        timer = PipelineTimer()
        with timer.stage("parse"):
            candidates = importer.parse(text)
        timer.log("importer.timed", accepted=len(candidates))
    """

    def __init__(self):
        self.started = time.perf_counter()
        self.stages: dict[str, float] = {}

    @contextmanager
    def stage(self, name: str) -> Generator[None, None, None]:
        """Time the block as stage `name`, also when it raises."""
        began = time.perf_counter()
        try:
            yield
        finally:
            self.record(name, (time.perf_counter() - began) * 1000)

    def record(self, name: str, duration_ms: float) -> None:
        self.stages[name] = self.stages.get(name, 0.0) + duration_ms

    @property
    def total_ms(self) -> float:
        return (time.perf_counter() - self.started) * 1000

    def summary(self) -> dict[str, Any]:
        return {
            'total_ms': round(self.total_ms, 2),
            'stages': {name: round(ms, 2) for name, ms in self.stages.items()},
        }

    def log(self, event: str, **fields: Any) -> None:
        """Emit the timing summary as one debug entry."""
        structlog.get_logger(__name__).debug(event, **self.summary(), **fields)


configure_logging()
