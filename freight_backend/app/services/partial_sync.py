"""
Partial sync recording.

When a shipment-side step fails after its document was already persisted,
the failure is logged, written to the dead-letter queue for the
reconciliation sweep, and returned to the caller as a warning.
"""

import logging
from typing import Any, Dict

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from freight_backend.app.models.dlq import DeadLetterQueue, DLQStatus

logger = logging.getLogger("freight.sync")


class SyncTask:
    """Dead-letter task names, one per kind of shipment-side step."""
    BILL_SHIPMENT = "billing.shipment_sync"
    UNBILL_SHIPMENT = "billing.shipment_revert"
    CLUB_ASSIGNMENT = "clubbing.assignment_sync"


async def record_partial_sync(
    db: AsyncSession,
    task_name: str,
    error: Exception,
    payload: Dict[str, Any],
) -> None:
    """
    Log a failed shipment step and queue it for reconciliation.

    The caller must already have rolled back the failed step. If the
    dead-letter write fails too (store still down) the failure is only
    logged; the caller still reports the warning in its response.
    """
    logger.warning("Partial sync failure in %s for %s: %s", task_name, payload, error)
    try:
        db.add(DeadLetterQueue(
            task_name=task_name,
            error_message=str(error),
            payload=payload,
            status=DLQStatus.FAILED,
        ))
        await db.commit()
    except SQLAlchemyError as dlq_error:
        await db.rollback()
        logger.error("Could not queue %s for reconciliation: %s", task_name, dlq_error)
