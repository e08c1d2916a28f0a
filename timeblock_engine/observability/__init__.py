"""
Observability module: structured logging and operation IDs.

Usage:
    from timeblock_engine.observability import get_logger, OperationContext

    logger = get_logger(__name__)
    logger.info("Scheduling task", extra={"task_id": "t1"})

    with OperationContext("reschedule_all") as ctx:
        logger.info("Batch started", extra={"task_count": 12})
"""

from .context import (
    OperationContext,
    generate_operation_id,
    get_operation_id,
    get_operation_name,
    set_operation_id,
)
from .logging import HumanFormatter, JSONFormatter, configure_logging, get_logger

__all__ = [
    # Logging
    "get_logger",
    "configure_logging",
    "JSONFormatter",
    "HumanFormatter",
    # Context
    "OperationContext",
    "generate_operation_id",
    "get_operation_id",
    "get_operation_name",
    "set_operation_id",
]
