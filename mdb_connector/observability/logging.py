"""
Run-scoped logging context for MDB_CONNECTOR.

A batch run enters ``run_context``; until it exits, every record logged
through a ``ContextualLoggerAdapter`` carries the run's correlation ID,
operation and collection in its ``extra``. Nested or concurrent runs each see
their own context because it lives in a context variable that is restored by
token on exit.
"""

import contextvars
import logging
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class RunContext:
    """Identity of the batch run currently executing."""

    correlation_id: str
    operation: str | None = None
    collection: str | None = None

    def as_extra(self) -> dict[str, Any]:
        extra: dict[str, Any] = {"correlation_id": self.correlation_id}
        if self.operation:
            extra["operation"] = self.operation
        if self.collection:
            extra["collection"] = self.collection
        return extra


_current_run: contextvars.ContextVar[RunContext | None] = contextvars.ContextVar(
    "mdb_connector_run", default=None
)


def current_run() -> RunContext | None:
    """The run context of the caller, or None outside a run."""
    return _current_run.get()


@contextmanager
def run_context(
    operation: str | None = None,
    collection: str | None = None,
    correlation_id: str | None = None,
) -> Iterator[RunContext]:
    """
    Scope log records to one batch run.

    Args:
        operation: Operation kind of the run
        collection: Target collection
        correlation_id: Run identifier (a new one is generated if None)

    Yields:
        The active RunContext
    """
    run = RunContext(
        correlation_id=correlation_id or uuid.uuid4().hex,
        operation=operation,
        collection=collection,
    )
    token = _current_run.set(run)
    try:
        yield run
    finally:
        _current_run.reset(token)


class ContextualLoggerAdapter(logging.LoggerAdapter):
    """
    Logger adapter that merges the current run context into ``extra``.

    Fields passed explicitly in ``extra`` win over the run context.
    """

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        run = current_run()
        extra = run.as_extra() if run else {}
        extra.update(kwargs.get("extra") or {})
        kwargs["extra"] = extra
        return msg, kwargs


def get_logger(name: str) -> ContextualLoggerAdapter:
    """Contextual logger for ``name``."""
    return ContextualLoggerAdapter(logging.getLogger(name), {})
