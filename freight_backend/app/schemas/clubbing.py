"""
Club batch schemas.
"""

from datetime import date, datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from freight_backend.app.models.billing_enums import MutationOutcome


class ClubBatchItemIn(BaseModel):
    awb_no: str = Field(..., max_length=50)
    weight: Optional[str] = Field(None, max_length=20)
    bag_weight: Optional[str] = Field(None, max_length=20)


class ClubBatchIn(BaseModel):
    """Full desired state of a club batch. The item list replaces the old one."""
    run_no: Optional[str] = Field(None, max_length=50)
    batch_date: Optional[date] = None
    service: Optional[str] = Field(None, max_length=100)
    remarks: Optional[str] = Field(None, max_length=500)
    items: List[ClubBatchItemIn] = Field(default_factory=list)


class ClubBatchItemResponse(BaseModel):
    awb_no: str
    weight: Optional[str]
    bag_weight: Optional[str]

    class Config:
        from_attributes = True


class ClubBatchResponse(BaseModel):
    club_no: str
    run_no: Optional[str]
    batch_date: Optional[date]
    service: Optional[str]
    remarks: Optional[str]
    is_locked: bool
    items: List[ClubBatchItemResponse]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class AssignmentResult(BaseModel):
    """Shipment-side outcome of a club sync."""
    added: List[str] = Field(default_factory=list)
    removed: List[str] = Field(default_factory=list)
    missing: List[str] = Field(default_factory=list)
    skipped: List[str] = Field(default_factory=list)


class ClubMutationResponse(BaseModel):
    outcome: MutationOutcome
    batch: ClubBatchResponse
    assignment: AssignmentResult
    warnings: List[Dict[str, str]] = Field(default_factory=list)


class ClubDeleteResponse(BaseModel):
    outcome: MutationOutcome
    club_no: str
    assignment: AssignmentResult
    warnings: List[Dict[str, str]] = Field(default_factory=list)


class AwbClubValidation(BaseModel):
    """Whether an AWB may be placed in a club batch."""
    awb_no: str
    is_valid: bool
    club_no: Optional[str] = None
    complete_data_lock: bool = False
    payment_type: Optional[str] = None
    message: str
