"""
Operation context: tag every log line of one engine run with a shared id.

Batch runs (reschedule-all, conflict resolution) open an OperationContext;
formatters read the id and operation name back from context variables, so
nothing has to be threaded through the scheduler by hand.
"""

import contextvars
import logging
import time
import uuid
from typing import Optional

logger = logging.getLogger(__name__)

_operation_id_var: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "operation_id", default=None
)
_operation_name_var: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "operation_name", default=None
)


def get_operation_id() -> Optional[str]:
    """Get the id of the running operation, if any."""
    return _operation_id_var.get()


def get_operation_name() -> Optional[str]:
    return _operation_name_var.get()


def set_operation_id(operation_id: str) -> contextvars.Token:
    """Set the operation id in context. Returns token for reset."""
    return _operation_id_var.set(operation_id)


def generate_operation_id() -> str:
    return f"op-{uuid.uuid4().hex[:16]}"


class OperationContext:
    """
    Scope one engine operation.

    Usage:
        with OperationContext("reschedule_all") as ctx:
            logger.info("Rescheduled", extra={"task_count": 12})

        report.operation_id = ctx.operation_id
        ctx.elapsed_ms  # wall time spent inside the block

    Nested contexts restore the outer id and name on exit.
    """

    def __init__(self, name: str = "operation", operation_id: Optional[str] = None):
        self.name = name
        self.operation_id = operation_id or generate_operation_id()
        self.elapsed_ms: Optional[float] = None
        self._started: Optional[float] = None
        self._tokens: list[tuple[contextvars.ContextVar, contextvars.Token]] = []

    def __enter__(self) -> "OperationContext":
        self._tokens = [
            (_operation_id_var, _operation_id_var.set(self.operation_id)),
            (_operation_name_var, _operation_name_var.set(self.name)),
        ]
        self._started = time.perf_counter()
        logger.debug(f"{self.name} started")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.elapsed_ms = (time.perf_counter() - self._started) * 1000
        if exc_type is None:
            logger.debug(f"{self.name} finished in {self.elapsed_ms:.1f} ms")
        else:
            logger.warning(f"{self.name} aborted after {self.elapsed_ms:.1f} ms: {exc_val}")

        for var, token in reversed(self._tokens):
            var.reset(token)
        self._tokens = []
