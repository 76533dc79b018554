"""
Club Batch Service (Domain Logic).

Creates, edits, locks and deletes club batches. The batch is committed
first; the shipments' ``club_no`` is then brought in line with the batch's
AWB set by the assignment sync.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from freight_backend.app.core.exceptions import ClubLockedError, ResourceNotFoundError, ValidationError
from freight_backend.app.domain.clubbing.assignment_sync import (
    AssignmentReport, apply_club_assignment, diff_assignment
)
from freight_backend.app.models.billing_enums import MutationOutcome
from freight_backend.app.models.club_batch import ClubBatch, ClubBatchItem
from freight_backend.app.models.shipment import Shipment
from freight_backend.app.schemas.clubbing import AwbClubValidation, ClubBatchIn

logger = logging.getLogger("freight.clubbing")

RTO_PAYMENT_TYPE = "RTO"


@dataclass
class ClubSyncResult:
    club_no: str
    report: AssignmentReport
    batch: Optional[ClubBatch] = None

    @property
    def outcome(self) -> MutationOutcome:
        return MutationOutcome.PARTIAL if self.report.warnings else MutationOutcome.APPLIED


def _check_items(batch_in: ClubBatchIn) -> List[str]:
    seen = []
    for index, item in enumerate(batch_in.items):
        awb_no = (item.awb_no or "").strip()
        if not awb_no:
            raise ValidationError("MISSING_REFERENCE", f"Item {index + 1} has no AWB number", {"line": index + 1})
        if awb_no in seen:
            raise ValidationError("DUPLICATE_LINE", f"AWB {awb_no} appears more than once", {"awb_no": awb_no})
        seen.append(awb_no)
    return seen


async def find_batch(db: AsyncSession, club_no: str) -> Optional[ClubBatch]:
    result = await db.execute(select(ClubBatch).where(ClubBatch.club_no == club_no))
    return result.scalar_one_or_none()


async def get_batch(db: AsyncSession, club_no: str) -> ClubBatch:
    batch = await find_batch(db, club_no)
    if not batch:
        raise ResourceNotFoundError("Club", club_no)
    return batch


async def list_batches(db: AsyncSession, run_no: Optional[str] = None) -> List[ClubBatch]:
    query = select(ClubBatch).order_by(ClubBatch.club_no)
    if run_no:
        query = query.where(ClubBatch.run_no == run_no)
    result = await db.execute(query)
    return list(result.scalars().all())


async def upsert_batch(db: AsyncSession, club_no: str, batch_in: ClubBatchIn) -> ClubSyncResult:
    """
    Create the batch or replace its contents, then sync shipment club numbers.

    Raises:
        ValidationError: blank or repeated AWB in the item list
        ClubLockedError: the batch exists and is locked
    """
    awb_numbers = _check_items(batch_in)
    batch = await find_batch(db, club_no)

    if batch is None:
        old_awbs = None
        batch = ClubBatch(club_no=club_no)
        db.add(batch)
    else:
        if batch.is_locked:
            raise ClubLockedError(club_no)
        old_awbs = batch.awb_set

    batch.run_no = batch_in.run_no
    batch.batch_date = batch_in.batch_date
    batch.service = batch_in.service
    batch.remarks = batch_in.remarks
    batch.items = [
        ClubBatchItem(awb_no=awb_no, weight=item.weight, bag_weight=item.bag_weight)
        for awb_no, item in zip(awb_numbers, batch_in.items)
    ]
    await db.commit()

    diff = diff_assignment(old_awbs, awb_numbers)
    logger.info("Club %s saved: +%d -%d AWBs", club_no, len(diff.added), len(diff.removed))
    report = await apply_club_assignment(db, diff, club_no)

    batch = await get_batch(db, club_no)
    await db.refresh(batch)
    return ClubSyncResult(club_no=club_no, report=report, batch=batch)


async def delete_batch(db: AsyncSession, club_no: str) -> ClubSyncResult:
    """
    Delete the batch and release its AWBs.

    Raises:
        ResourceNotFoundError, ClubLockedError
    """
    batch = await get_batch(db, club_no)
    if batch.is_locked:
        raise ClubLockedError(club_no)

    diff = diff_assignment(batch.awb_set, None)
    await db.delete(batch)
    await db.commit()
    logger.info("Club %s deleted, releasing %d AWBs", club_no, len(diff.removed))

    report = await apply_club_assignment(db, diff, club_no)
    return ClubSyncResult(club_no=club_no, report=report)


async def lock_batch(db: AsyncSession, club_no: str) -> ClubBatch:
    batch = await get_batch(db, club_no)
    batch.is_locked = True
    await db.commit()
    await db.refresh(batch)
    logger.info("Club %s locked", club_no)
    return batch


async def validate_awb(db: AsyncSession, awb_no: str) -> AwbClubValidation:
    """Report whether an AWB can be placed in a club batch, and why not."""
    awb_no = (awb_no or "").strip()
    if not awb_no:
        raise ValidationError("MISSING_REFERENCE", "AWB Number is required")

    result = await db.execute(select(Shipment).where(Shipment.awb_no == awb_no))
    shipment = result.scalar_one_or_none()

    if shipment is None:
        return AwbClubValidation(awb_no=awb_no, is_valid=False, message=f"AWB {awb_no} not found in shipments")
    if shipment.payment_type == RTO_PAYMENT_TYPE:
        return AwbClubValidation(
            awb_no=awb_no,
            is_valid=False,
            payment_type=RTO_PAYMENT_TYPE,
            message="This shipment is RTO and cannot be clubbed",
        )
    if shipment.complete_data_lock:
        return AwbClubValidation(
            awb_no=awb_no,
            is_valid=False,
            club_no=shipment.club_no,
            complete_data_lock=True,
            message=f"AWB {awb_no} is locked and cannot be clubbed",
        )
    if shipment.club_no:
        return AwbClubValidation(
            awb_no=awb_no,
            is_valid=False,
            club_no=shipment.club_no,
            message=f"AWB {awb_no} is already clubbed in Club {shipment.club_no}",
        )
    return AwbClubValidation(awb_no=awb_no, is_valid=True, message="AWB is available for clubbing")
