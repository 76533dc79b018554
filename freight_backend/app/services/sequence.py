"""
Document sequence numbers backed by Redis counters.

``INCR`` hands out numbers atomically across concurrent requests. When the
counter key is missing (fresh Redis, flushed cache) it is seeded with
``SET NX`` from the highest number already stored in the database, so a
number is never issued twice.
"""

import logging
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from freight_backend.app.core.config import settings
from freight_backend.app.models.ledger_entry import LedgerEntry
from freight_backend.app.models.financial_document import FinancialDocument
from freight_backend.app.models.billing_enums import DocumentType

logger = logging.getLogger("freight.sequence")

RECEIPT_NO_KEY = "seq:receipt_no"
INVOICE_SERIAL_KEY = "seq:invoice_serial"


async def _seed_counter(redis, key: str, floor: int) -> None:
    """Initialise ``key`` to ``floor`` unless another request got there first."""
    seeded = await redis.set(key, floor, nx=True)
    if seeded:
        logger.info("Seeded sequence %s at %s", key, floor)


async def _highest_receipt_no(db: AsyncSession) -> int:
    result = await db.execute(select(func.max(LedgerEntry.receipt_no)))
    return result.scalar() or 0


async def _highest_invoice_serial(db: AsyncSession) -> int:
    result = await db.execute(
        select(func.max(FinancialDocument.serial_no)).where(
            FinancialDocument.document_type == DocumentType.INVOICE
        )
    )
    return result.scalar() or 0


async def next_receipt_number(db: AsyncSession, redis) -> int:
    """Allocate the next payment receipt number (first one is ``receipt_number_start``)."""
    if not await redis.exists(RECEIPT_NO_KEY):
        floor = max(await _highest_receipt_no(db), settings.receipt_number_start - 1)
        await _seed_counter(redis, RECEIPT_NO_KEY, floor)
    return int(await redis.incr(RECEIPT_NO_KEY))


async def next_invoice_serial(db: AsyncSession, redis) -> int:
    """Allocate the next invoice serial number."""
    if not await redis.exists(INVOICE_SERIAL_KEY):
        floor = max(await _highest_invoice_serial(db), settings.invoice_serial_start - 1)
        await _seed_counter(redis, INVOICE_SERIAL_KEY, floor)
    return int(await redis.incr(INVOICE_SERIAL_KEY))


async def peek_invoice_serial(db: AsyncSession, redis) -> int:
    """Return the serial the next invoice would get, without reserving it."""
    current = await redis.get(INVOICE_SERIAL_KEY)
    if current is None:
        return max(await _highest_invoice_serial(db), settings.invoice_serial_start - 1) + 1
    return int(current) + 1
