"""
Club Batch API Endpoints.

A club batch is always submitted whole; the shipments' club numbers are
synced to the difference between the stored and the submitted AWB sets.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from freight_backend.app.core.guards import require_role, OPERATIONS_ROLES
from freight_backend.app.db.session import get_db
from freight_backend.app.domain.clubbing import club_service
from freight_backend.app.domain.clubbing.assignment_sync import AssignmentReport
from freight_backend.app.schemas.clubbing import (
    AssignmentResult, AwbClubValidation, ClubBatchIn, ClubBatchResponse, ClubDeleteResponse,
    ClubMutationResponse
)
from freight_backend.app.services.audit import log_user_action, AuditAction

router = APIRouter(prefix="/clubs", tags=["Clubbing"])


def _assignment(report: AssignmentReport) -> AssignmentResult:
    return AssignmentResult(
        added=report.added,
        removed=report.removed,
        missing=report.missing,
        skipped=report.skipped,
    )


@router.get("", response_model=List[ClubBatchResponse])
async def list_clubs(
    run_no: Optional[str] = Query(None, description="Only batches of this run"),
    current_user: dict = Depends(require_role(OPERATIONS_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    return await club_service.list_batches(db, run_no)


@router.get("/validate-awb", response_model=AwbClubValidation)
async def validate_awb(
    awb_no: str = Query(..., description="AWB to check"),
    current_user: dict = Depends(require_role(OPERATIONS_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """Check whether an AWB can be clubbed (exists, not RTO, not locked, not clubbed)."""
    return await club_service.validate_awb(db, awb_no)


@router.get("/{club_no}", response_model=ClubBatchResponse)
async def get_club(
    club_no: str = Path(..., description="Club number"),
    current_user: dict = Depends(require_role(OPERATIONS_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    return await club_service.get_batch(db, club_no)


@router.put("/{club_no}", response_model=ClubMutationResponse)
async def upsert_club(
    batch_in: ClubBatchIn,
    club_no: str = Path(..., description="Club number"),
    current_user: dict = Depends(require_role(OPERATIONS_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """Create or replace a club batch."""
    result = await club_service.upsert_batch(db, club_no, batch_in)
    response = ClubMutationResponse(
        outcome=result.outcome,
        batch=ClubBatchResponse.model_validate(result.batch),
        assignment=_assignment(result.report),
        warnings=result.report.warnings,
    )

    await log_user_action(db, current_user, AuditAction.CLUB_BATCH_UPSERTED, club_no, {
        "added": result.report.added,
        "removed": result.report.removed,
        "missing": result.report.missing,
    })
    return response


@router.delete("/{club_no}", response_model=ClubDeleteResponse)
async def delete_club(
    club_no: str = Path(..., description="Club number"),
    current_user: dict = Depends(require_role(OPERATIONS_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """Delete a club batch and release its AWBs."""
    result = await club_service.delete_batch(db, club_no)

    await log_user_action(db, current_user, AuditAction.CLUB_BATCH_DELETED, club_no, {
        "removed": result.report.removed,
        "skipped": result.report.skipped,
    })
    return ClubDeleteResponse(
        outcome=result.outcome,
        club_no=club_no,
        assignment=_assignment(result.report),
        warnings=result.report.warnings,
    )


@router.post("/{club_no}/lock", response_model=ClubBatchResponse)
async def lock_club(
    club_no: str = Path(..., description="Club number"),
    current_user: dict = Depends(require_role(OPERATIONS_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """Lock a batch; locked batches can no longer be edited or deleted."""
    batch = await club_service.lock_batch(db, club_no)
    await log_user_action(db, current_user, AuditAction.CLUB_BATCH_LOCKED, club_no)
    return batch
