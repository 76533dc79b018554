"""
Billing API Endpoints.

Invoices drive the shipment billing state machine; credit and debit notes
only post ledger entries.
"""

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from freight_backend.app.core.guards import require_role, FINANCE_ROLES
from freight_backend.app.core.redis_client import get_redis
from freight_backend.app.db.session import get_db
from freight_backend.app.domain.billing.billing_service import BillingService, BillResult
from freight_backend.app.domain.billing import note_service
from freight_backend.app.models.billing_enums import DocumentType, MutationOutcome
from freight_backend.app.schemas.billing import (
    BillingResult, FinancialDocumentIn, FinancialDocumentResponse, InvoiceDeleteResponse,
    InvoiceMutationResponse, LineFailure, NextSerialResponse, NoteDeleteResponse, NoteMutationResponse
)
from freight_backend.app.services.audit import log_user_action, AuditAction
from freight_backend.app.services.sequence import peek_invoice_serial

router = APIRouter(prefix="/invoices", tags=["Billing - Invoices"])
credit_note_router = APIRouter(prefix="/credit-notes", tags=["Billing - Credit Notes"])
debit_note_router = APIRouter(prefix="/debit-notes", tags=["Billing - Debit Notes"])


def _failures(items):
    return [LineFailure(awb_no=f.awb_no, reason=f.reason, error_code=f.error_code) for f in items]


def _invoice_response(result: BillResult) -> InvoiceMutationResponse:
    return InvoiceMutationResponse(
        outcome=result.outcome,
        document=FinancialDocumentResponse.model_validate(result.document),
        billing_result=BillingResult(updated=result.updated, failed=_failures(result.failed)),
        reverted=result.reverted,
        warnings=_failures(result.warnings),
    )


@router.get("/next-serial", response_model=NextSerialResponse)
async def next_invoice_serial(
    current_user: dict = Depends(require_role(FINANCE_ROLES)),
    db: AsyncSession = Depends(get_db),
    redis=Depends(get_redis)
):
    """Serial number the next invoice will receive. Nothing is reserved."""
    return NextSerialResponse(next_serial_no=await peek_invoice_serial(db, redis))


@router.get("/{document_no}", response_model=FinancialDocumentResponse)
async def get_invoice(
    document_no: str = Path(..., description="Invoice number"),
    current_user: dict = Depends(require_role(FINANCE_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    return await BillingService.get_document(db, document_no)


@router.post("", response_model=InvoiceMutationResponse, status_code=status.HTTP_201_CREATED)
async def create_invoice(
    doc_in: FinancialDocumentIn,
    current_user: dict = Depends(require_role(FINANCE_ROLES)),
    db: AsyncSession = Depends(get_db),
    redis=Depends(get_redis)
):
    """
    Create an invoice and bill its shipments.

    Returns PARTIAL when the invoice was saved but some shipments could not
    be billed (already billed elsewhere, or a failed write).
    """
    result = await BillingService.create_invoice(db, redis, doc_in, created_by=current_user["sub"])
    response = _invoice_response(result)

    await log_user_action(db, current_user, AuditAction.INVOICE_CREATED, doc_in.document_no, {
        "outcome": response.outcome.value,
        "updated": result.updated,
        "failed": [f.awb_no for f in result.failed],
    })
    return response


@router.put("/{document_no}", response_model=InvoiceMutationResponse)
async def update_invoice(
    doc_in: FinancialDocumentIn,
    document_no: str = Path(..., description="Invoice number"),
    current_user: dict = Depends(require_role(FINANCE_ROLES)),
    db: AsyncSession = Depends(get_db),
    redis=Depends(get_redis)
):
    """Replace an invoice: its shipments are unbilled, then the new lines billed."""
    result = await BillingService.update_invoice(db, redis, document_no, doc_in, created_by=current_user["sub"])
    response = _invoice_response(result)

    await log_user_action(db, current_user, AuditAction.INVOICE_UPDATED, document_no, {
        "outcome": response.outcome.value,
        "reverted": result.reverted,
        "updated": result.updated,
    })
    return response


@router.delete("/{document_no}", response_model=InvoiceDeleteResponse)
async def delete_invoice(
    document_no: str = Path(..., description="Invoice number"),
    current_user: dict = Depends(require_role(FINANCE_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """Delete an invoice and unbill the shipments it billed."""
    result = await BillingService.delete_invoice(db, document_no)

    await log_user_action(db, current_user, AuditAction.INVOICE_DELETED, document_no, {
        "outcome": result.outcome.value,
        "reverted": result.reverted,
    })
    return InvoiceDeleteResponse(
        outcome=result.outcome,
        document_no=document_no,
        reverted=result.reverted,
        warnings=_failures(result.warnings),
    )


async def _create_note(db, current_user, document_type, doc_in, action) -> NoteMutationResponse:
    result = await note_service.create_note(db, document_type, doc_in, created_by=current_user["sub"])
    await log_user_action(db, current_user, action, doc_in.document_no, {
        "entries_created": result.entries_created,
    })
    return NoteMutationResponse(
        outcome=MutationOutcome.APPLIED,
        document=FinancialDocumentResponse.model_validate(result.document),
        entries_created=result.entries_created,
    )


async def _delete_note(db, current_user, document_type, document_no, action) -> NoteDeleteResponse:
    removed = await note_service.delete_note(db, document_type, document_no)
    await log_user_action(db, current_user, action, document_no, {"entries_removed": removed})
    return NoteDeleteResponse(outcome=MutationOutcome.APPLIED, document_no=document_no, entries_removed=removed)


@credit_note_router.post("", response_model=NoteMutationResponse, status_code=status.HTTP_201_CREATED)
async def create_credit_note(
    doc_in: FinancialDocumentIn,
    current_user: dict = Depends(require_role(FINANCE_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    return await _create_note(db, current_user, DocumentType.CREDIT_NOTE, doc_in, AuditAction.CREDIT_NOTE_CREATED)


@credit_note_router.delete("/{document_no}", response_model=NoteDeleteResponse)
async def delete_credit_note(
    document_no: str = Path(..., description="Credit note number"),
    current_user: dict = Depends(require_role(FINANCE_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    return await _delete_note(db, current_user, DocumentType.CREDIT_NOTE, document_no, AuditAction.CREDIT_NOTE_DELETED)


@debit_note_router.post("", response_model=NoteMutationResponse, status_code=status.HTTP_201_CREATED)
async def create_debit_note(
    doc_in: FinancialDocumentIn,
    current_user: dict = Depends(require_role(FINANCE_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    return await _create_note(db, current_user, DocumentType.DEBIT_NOTE, doc_in, AuditAction.DEBIT_NOTE_CREATED)


@debit_note_router.delete("/{document_no}", response_model=NoteDeleteResponse)
async def delete_debit_note(
    document_no: str = Path(..., description="Debit note number"),
    current_user: dict = Depends(require_role(FINANCE_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    return await _delete_note(db, current_user, DocumentType.DEBIT_NOTE, document_no, AuditAction.DEBIT_NOTE_DELETED)
