"""
Billing Schemas: invoices, credit notes and debit notes.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from freight_backend.app.models.billing_enums import DocumentType, MutationOutcome


class DocumentLineIn(BaseModel):
    """One AWB line on a submitted document."""
    awb_no: str = Field(..., max_length=50)
    amount: Decimal = Field(Decimal("0"))


class FinancialDocumentIn(BaseModel):
    """
    Submitted invoice, credit note or debit note.

    ``grand_total`` is accepted for compatibility with existing clients but
    always recomputed by the validator.
    """
    document_no: str = Field(..., min_length=1, max_length=50)
    account_code: str = Field(..., min_length=1, max_length=50)
    document_date: date
    financial_year: Optional[str] = Field(None, max_length=20)
    branch: Optional[str] = Field(None, max_length=100)
    amount: Decimal = Decimal("0")
    sgst: Decimal = Decimal("0")
    cgst: Decimal = Decimal("0")
    igst: Decimal = Decimal("0")
    grand_total: Optional[Decimal] = None
    lines: List[DocumentLineIn] = Field(default_factory=list)


class DocumentLineResponse(BaseModel):
    awb_no: str
    amount: Decimal

    class Config:
        from_attributes = True


class FinancialDocumentResponse(BaseModel):
    """Schema for displaying a persisted document."""
    document_no: str
    document_type: DocumentType
    serial_no: Optional[int]
    account_code: str
    document_date: date
    financial_year: Optional[str]
    branch: Optional[str]
    amount: Decimal
    sgst: Decimal
    cgst: Decimal
    igst: Decimal
    grand_total: Decimal
    lines: List[DocumentLineResponse]
    created_at: datetime

    class Config:
        from_attributes = True


class LineFailure(BaseModel):
    """A shipment step that did not apply."""
    awb_no: str
    reason: str
    error_code: str


class BillingResult(BaseModel):
    """Shipment-side outcome of a Bill transition."""
    updated: List[str] = Field(default_factory=list)
    failed: List[LineFailure] = Field(default_factory=list)


class InvoiceMutationResponse(BaseModel):
    """Response for invoice create / update."""
    outcome: MutationOutcome
    document: FinancialDocumentResponse
    billing_result: BillingResult
    reverted: List[str] = Field(default_factory=list)
    warnings: List[LineFailure] = Field(default_factory=list)


class InvoiceDeleteResponse(BaseModel):
    """Response for invoice deletion (Unbill)."""
    outcome: MutationOutcome
    document_no: str
    reverted: List[str]
    warnings: List[LineFailure] = Field(default_factory=list)


class NoteMutationResponse(BaseModel):
    """Response for credit / debit note creation."""
    outcome: MutationOutcome
    document: FinancialDocumentResponse
    entries_created: int


class NoteDeleteResponse(BaseModel):
    outcome: MutationOutcome
    document_no: str
    entries_removed: int


class NextSerialResponse(BaseModel):
    next_serial_no: int
