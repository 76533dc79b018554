"""
Club assignment sync.

A club batch's AWB set is authoritative; ``Shipment.club_no`` mirrors it.
``diff_assignment`` is the pure part (plain set difference), and
``apply_club_assignment`` writes the difference back to the shipments one
AWB at a time.

Removal is deliberately narrower than the legacy club screens, which
cleared the club number of every removed AWB: a shipment that another batch
has claimed since keeps that assignment and is reported as skipped.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, List, Optional

from sqlalchemy import or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from freight_backend.app.models.shipment import Shipment
from freight_backend.app.services.partial_sync import SyncTask, record_partial_sync

logger = logging.getLogger("freight.clubbing")

STORAGE_FAILURE = "ERR_PARTIAL_SYNC"


@dataclass(frozen=True)
class AssignmentDiff:
    added: List[str]
    removed: List[str]

    @property
    def is_empty(self) -> bool:
        return not self.added and not self.removed


def _normalize(awb_numbers: Optional[Iterable[str]]) -> FrozenSet[str]:
    return frozenset(a.strip() for a in (awb_numbers or ()) if a and a.strip())


def diff_assignment(old: Optional[Iterable[str]], new: Optional[Iterable[str]]) -> AssignmentDiff:
    """
    Compute which AWBs join and which leave a batch.

    ``removed = old - new`` and ``added = new - old``, both sorted. Creation
    passes ``old=None``; deletion passes ``new=None``.
    """
    old_set = _normalize(old)
    new_set = _normalize(new)
    return AssignmentDiff(
        added=sorted(new_set - old_set),
        removed=sorted(old_set - new_set),
    )


@dataclass
class AssignmentReport:
    """What ``apply_club_assignment`` actually changed."""
    added: List[str] = field(default_factory=list)
    removed: List[str] = field(default_factory=list)
    missing: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    warnings: List[Dict[str, str]] = field(default_factory=list)


async def _current_club_numbers(db: AsyncSession, awb_numbers: List[str]) -> Dict[str, Optional[str]]:
    if not awb_numbers:
        return {}
    result = await db.execute(
        select(Shipment.awb_no, Shipment.club_no).where(Shipment.awb_no.in_(awb_numbers))
    )
    return {awb_no: club_no for awb_no, club_no in result.all()}


async def apply_club_assignment(db: AsyncSession, diff: AssignmentDiff, club_no: str) -> AssignmentReport:
    """
    Write an assignment diff to the shipments of ``club_no``.

    Removed AWBs are cleared only while they still point at this club (or at
    nothing); a removed AWB that now belongs to another club is left alone.
    Added AWBs are assigned unconditionally, the last batch to claim an AWB
    wins. Every AWB is its own committed step; a failed step is queued in
    the dead-letter queue and reported in ``warnings``.
    """
    report = AssignmentReport()
    current = await _current_club_numbers(db, diff.added + diff.removed)

    for awb_no in diff.removed:
        if awb_no not in current:
            report.missing.append(awb_no)
            continue
        if current[awb_no] not in (club_no, None):
            logger.warning(
                "AWB %s removed from club %s but is assigned to club %s, leaving it",
                awb_no, club_no, current[awb_no]
            )
            report.skipped.append(awb_no)
            continue
        stmt = (
            update(Shipment)
            .where(Shipment.awb_no == awb_no, or_(Shipment.club_no == club_no, Shipment.club_no.is_(None)))
            .values(club_no=None)
        )
        if await _apply_step(db, stmt, awb_no, club_no, None, report):
            report.removed.append(awb_no)

    for awb_no in diff.added:
        if awb_no not in current:
            report.missing.append(awb_no)
            continue
        if current[awb_no] not in (club_no, None):
            logger.info("AWB %s moves from club %s to club %s", awb_no, current[awb_no], club_no)
        stmt = update(Shipment).where(Shipment.awb_no == awb_no).values(club_no=club_no)
        if await _apply_step(db, stmt, awb_no, club_no, club_no, report):
            report.added.append(awb_no)

    if report.missing:
        logger.warning("Club %s references unknown AWBs: %s", club_no, report.missing)
    return report


async def _apply_step(db, stmt, awb_no, club_no, target, report) -> bool:
    try:
        await db.execute(stmt.execution_options(synchronize_session=False))
        await db.commit()
        return True
    except SQLAlchemyError as exc:
        await db.rollback()
        report.warnings.append({
            "awb_no": awb_no,
            "reason": f"Club assignment failed: {exc}",
            "error_code": STORAGE_FAILURE,
        })
        await record_partial_sync(db, SyncTask.CLUB_ASSIGNMENT, exc, {
            "awb_no": awb_no,
            "club_no": club_no,
            "target_club_no": target,
        })
        return False
