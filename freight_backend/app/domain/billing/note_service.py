"""
Credit and debit note posting.

Notes only move the customer's balance: each line becomes one CREDIT (or
DEBIT) ledger entry written in the same transaction as the note. No shipment
state is involved.
"""

import logging
from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from freight_backend.app.core.exceptions import DuplicateDocumentError
from freight_backend.app.domain.billing.billing_service import BillingService
from freight_backend.app.domain.billing.document_validator import validate_document
from freight_backend.app.domain.ledger.ledger_service import build_entry, delete_document_entries, get_account
from freight_backend.app.models.billing_enums import DocumentType, LedgerEntryKind
from freight_backend.app.models.financial_document import FinancialDocument, DocumentLine
from freight_backend.app.schemas.billing import FinancialDocumentIn

logger = logging.getLogger("freight.billing")

NOTE_ENTRY_KIND = {
    DocumentType.CREDIT_NOTE: LedgerEntryKind.CREDIT,
    DocumentType.DEBIT_NOTE: LedgerEntryKind.DEBIT,
}


@dataclass
class NoteResult:
    document: FinancialDocument
    entries_created: int


async def create_note(
    db: AsyncSession,
    document_type: DocumentType,
    doc_in: FinancialDocumentIn,
    created_by: str = None,
) -> NoteResult:
    """
    Persist a credit or debit note together with its ledger entries.

    Raises:
        ValidationError, DuplicateDocumentError, ResourceNotFoundError
    """
    kind = NOTE_ENTRY_KIND[document_type]
    doc = validate_document(doc_in)
    await get_account(db, doc.account_code)
    await BillingService.ensure_document_no_free(db, doc.document_no)

    note = FinancialDocument(
        document_no=doc.document_no,
        document_type=document_type,
        account_code=doc.account_code,
        document_date=doc.document_date,
        financial_year=doc.financial_year,
        branch=doc.branch,
        created_by=created_by,
        amount=doc.amount,
        sgst=doc.sgst,
        cgst=doc.cgst,
        igst=doc.igst,
        grand_total=doc.grand_total,
        lines=[DocumentLine(awb_no=line.awb_no, amount=line.amount) for line in doc.lines],
    )
    db.add(note)
    for line in doc.lines:
        db.add(build_entry(
            account_code=doc.account_code,
            kind=kind,
            amount=line.amount,
            transaction_date=doc.document_date,
            awb_no=line.awb_no,
            source_document=doc.document_no,
            description=f"{document_type.value.replace('_', ' ').title()} {doc.document_no}",
        ))

    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise DuplicateDocumentError(doc.document_no)

    await db.refresh(note)
    logger.info("%s %s posted with %d entries", document_type.value, doc.document_no, len(doc.lines))
    return NoteResult(document=note, entries_created=len(doc.lines))


async def delete_note(db: AsyncSession, document_type: DocumentType, document_no: str) -> int:
    """
    Delete a note and the ledger entries it created, in one transaction.

    Returns:
        Number of ledger entries removed
    """
    note = await BillingService.get_document(db, document_no, document_type)
    await db.delete(note)
    removed = await delete_document_entries(db, document_no, kind=NOTE_ENTRY_KIND[document_type])
    await db.commit()
    logger.info("%s %s deleted, %d entries removed", document_type.value, document_no, removed)
    return removed
