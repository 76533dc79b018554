"""
Billing Service (Domain Logic).

Billing state machine for shipments, driven by the invoice lifecycle:

    Unbilled --Bill--> Billed (billing_locked) --Unbill--> Unbilled

There is no cross-entity transaction, so every transition is a sequence of
individually committed steps. The invoice itself is persisted (or deleted)
first; each shipment is then updated in its own step. A failed shipment step
is rolled back on its own and reported, never hidden.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from freight_backend.app.core.exceptions import (
    ConflictError, DuplicateDocumentError, EligibilityError, ResourceNotFoundError
)
from freight_backend.app.domain.billing.document_validator import validate_document
from freight_backend.app.domain.ledger.ledger_service import build_entry, delete_document_entries, get_account
from freight_backend.app.models.billing_enums import DocumentType, LedgerEntryKind, MutationOutcome
from freight_backend.app.models.financial_document import FinancialDocument, DocumentLine
from freight_backend.app.models.shipment import Shipment
from freight_backend.app.schemas.billing import FinancialDocumentIn
from freight_backend.app.services.partial_sync import SyncTask, record_partial_sync
from freight_backend.app.services.sequence import next_invoice_serial

logger = logging.getLogger("freight.billing")

STORAGE_FAILURE = "ERR_PARTIAL_SYNC"


@dataclass
class LineFailure:
    awb_no: str
    reason: str
    error_code: str


@dataclass
class BillResult:
    """Outcome of a Bill transition (invoice creation)."""
    document: FinancialDocument
    updated: List[str] = field(default_factory=list)
    failed: List[LineFailure] = field(default_factory=list)
    warnings: List[LineFailure] = field(default_factory=list)
    reverted: List[str] = field(default_factory=list)

    @property
    def outcome(self) -> MutationOutcome:
        if self.failed or self.warnings:
            return MutationOutcome.PARTIAL
        return MutationOutcome.APPLIED


@dataclass
class UnbillResult:
    """Outcome of an Unbill transition (invoice deletion)."""
    document_no: str
    reverted: List[str] = field(default_factory=list)
    warnings: List[LineFailure] = field(default_factory=list)

    @property
    def outcome(self) -> MutationOutcome:
        return MutationOutcome.PARTIAL if self.warnings else MutationOutcome.APPLIED


class BillingService:

    @staticmethod
    async def get_document(
        db: AsyncSession,
        document_no: str,
        document_type: DocumentType = DocumentType.INVOICE,
    ) -> FinancialDocument:
        result = await db.execute(
            select(FinancialDocument).where(
                FinancialDocument.document_no == document_no,
                FinancialDocument.document_type == document_type,
            )
        )
        document = result.scalar_one_or_none()
        if not document:
            raise ResourceNotFoundError(document_type.value.replace("_", " ").title(), document_no)
        return document

    @staticmethod
    async def ensure_document_no_free(db: AsyncSession, document_no: str) -> None:
        result = await db.execute(
            select(FinancialDocument.id).where(FinancialDocument.document_no == document_no)
        )
        if result.scalar_one_or_none() is not None:
            raise DuplicateDocumentError(document_no)

    @staticmethod
    async def check_eligibility(db: AsyncSession, account_code: str, awb_numbers: List[str]) -> None:
        """
        All-or-nothing precondition for billing.

        Every AWB must exist, belong to the invoiced account, not be on hold
        and carry a run number. Runs before any write.

        Raises:
            EligibilityError: listing every reason found
        """
        result = await db.execute(select(Shipment).where(Shipment.awb_no.in_(awb_numbers)))
        shipments: Dict[str, Shipment] = {s.awb_no: s for s in result.scalars().all()}

        reasons = []
        for awb_no in awb_numbers:
            shipment = shipments.get(awb_no)
            if shipment is None:
                reasons.append({"awb_no": awb_no, "reason": f"Shipment {awb_no} not found"})
                continue
            if shipment.account_code != account_code:
                reasons.append({
                    "awb_no": awb_no,
                    "reason": f"Shipment {awb_no} belongs to account {shipment.account_code}",
                })
            if shipment.is_hold:
                reasons.append({"awb_no": awb_no, "reason": f"Shipment {awb_no} is on Hold"})
            if not shipment.run_no:
                reasons.append({"awb_no": awb_no, "reason": f"Shipment {awb_no} - RunNo missing"})

        if reasons:
            logger.info("Rejected billing of %d AWBs: %s", len(awb_numbers), reasons)
            raise EligibilityError(reasons)

    @staticmethod
    async def bill_shipment(
        db: AsyncSession,
        awb_no: str,
        document_no: str,
        account_code: str,
        amount: Decimal,
        document_date: date,
    ) -> None:
        """
        Bill one shipment and post its charge, as one committed step.

        The update only matches a shipment that is still unbilled, so two
        invoices racing for the same AWB cannot both bill it.

        Raises:
            ConflictError: the shipment was billed in the meantime
        """
        result = await db.execute(
            update(Shipment)
            .where(Shipment.awb_no == awb_no, Shipment.is_billed == False)  # noqa: E712
            .values(is_billed=True, billing_locked=True, bill_no=document_no)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            await db.rollback()
            current = await db.execute(select(Shipment.bill_no).where(Shipment.awb_no == awb_no))
            raise ConflictError(awb_no, current.scalar_one_or_none())

        db.add(build_entry(
            account_code=account_code,
            kind=LedgerEntryKind.CHARGE,
            amount=amount,
            transaction_date=document_date,
            awb_no=awb_no,
            source_document=document_no,
            description=f"Invoice {document_no}",
        ))
        await db.commit()

    @staticmethod
    async def unbill_shipment(db: AsyncSession, awb_no: str, document_no: str) -> bool:
        """
        Revert one shipment billed by ``document_no`` and drop its charge.

        Shipments billed by another invoice are left untouched.

        Returns:
            True if the shipment was billed by this invoice and got reverted
        """
        result = await db.execute(
            update(Shipment)
            .where(Shipment.awb_no == awb_no, Shipment.bill_no == document_no)
            .values(is_billed=False, bill_no=None)
            .execution_options(synchronize_session=False)
        )
        await delete_document_entries(db, document_no, kind=LedgerEntryKind.CHARGE, awb_no=awb_no)
        await db.commit()
        return result.rowcount > 0

    @staticmethod
    async def create_invoice(
        db: AsyncSession,
        redis,
        doc_in: FinancialDocumentIn,
        created_by: Optional[str] = None,
        serial_no: Optional[int] = None,
    ) -> BillResult:
        """
        Bill transition.

        Flow:
        1. Validate and normalize the document (pure)
        2. Check the account and that the number is free
        3. Eligibility check for every AWB (all-or-nothing, no writes)
        4. Persist the invoice (commit)
        5. Per line: bill the shipment and post a CHARGE (commit each)

        Raises:
            ValidationError, EligibilityError, DuplicateDocumentError,
            ResourceNotFoundError: nothing was written
        """
        doc = validate_document(doc_in)
        await get_account(db, doc.account_code)
        await BillingService.ensure_document_no_free(db, doc.document_no)

        awb_numbers = [line.awb_no for line in doc.lines]
        await BillingService.check_eligibility(db, doc.account_code, awb_numbers)

        invoice = FinancialDocument(
            document_no=doc.document_no,
            document_type=DocumentType.INVOICE,
            serial_no=serial_no or await next_invoice_serial(db, redis),
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
        db.add(invoice)
        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            raise DuplicateDocumentError(doc.document_no)

        logger.info("Invoice %s persisted with %d lines", doc.document_no, len(doc.lines))

        updated: List[str] = []
        failed: List[LineFailure] = []
        warnings: List[LineFailure] = []
        for line in doc.lines:
            try:
                await BillingService.bill_shipment(
                    db, line.awb_no, doc.document_no, doc.account_code, line.amount, doc.document_date
                )
                updated.append(line.awb_no)
            except ConflictError as exc:
                logger.warning("Invoice %s: %s", doc.document_no, exc.message)
                failed.append(LineFailure(line.awb_no, exc.message, exc.error_code))
            except SQLAlchemyError as exc:
                await db.rollback()
                failure = LineFailure(line.awb_no, f"Shipment update failed: {exc}", STORAGE_FAILURE)
                failed.append(failure)
                warnings.append(failure)
                await record_partial_sync(db, SyncTask.BILL_SHIPMENT, exc, {
                    "awb_no": line.awb_no,
                    "document_no": doc.document_no,
                    "is_billed": True,
                    "amount": str(line.amount),
                })

        document = await BillingService.get_document(db, doc.document_no)
        await db.refresh(document)
        return BillResult(document=document, updated=updated, failed=failed, warnings=warnings)

    @staticmethod
    async def delete_invoice(db: AsyncSession, document_no: str) -> UnbillResult:
        """
        Unbill transition.

        Flow:
        1. Load the invoice and collect its AWBs
        2. Delete the invoice (commit)
        3. Per AWB: revert the shipment if this invoice billed it and remove
           its CHARGE entry (commit each)
        """
        invoice = await BillingService.get_document(db, document_no)
        awb_numbers = list(invoice.awb_numbers)

        await db.delete(invoice)
        await db.commit()
        logger.info("Invoice %s deleted, reverting %d shipments", document_no, len(awb_numbers))

        result = UnbillResult(document_no=document_no)
        for awb_no in awb_numbers:
            try:
                if await BillingService.unbill_shipment(db, awb_no, document_no):
                    result.reverted.append(awb_no)
            except SQLAlchemyError as exc:
                await db.rollback()
                result.warnings.append(
                    LineFailure(awb_no, f"Shipment revert failed: {exc}", STORAGE_FAILURE)
                )
                await record_partial_sync(db, SyncTask.UNBILL_SHIPMENT, exc, {
                    "awb_no": awb_no,
                    "document_no": document_no,
                    "is_billed": False,
                })
        return result

    @staticmethod
    async def update_invoice(
        db: AsyncSession,
        redis,
        document_no: str,
        doc_in: FinancialDocumentIn,
        created_by: Optional[str] = None,
    ) -> BillResult:
        """
        Re-bill an invoice as Unbill followed by Bill.

        The new version is validated and its shipments checked before the
        old version is touched, so a rejected update changes nothing.
        """
        doc = validate_document(doc_in.model_copy(update={"document_no": document_no}))
        existing = await BillingService.get_document(db, document_no)
        serial_no = existing.serial_no
        await get_account(db, doc.account_code)
        await BillingService.check_eligibility(db, doc.account_code, [line.awb_no for line in doc.lines])

        unbilled = await BillingService.delete_invoice(db, document_no)
        result = await BillingService.create_invoice(db, redis, doc, created_by=created_by, serial_no=serial_no)
        result.reverted = unbilled.reverted
        result.warnings = unbilled.warnings + result.warnings
        return result
