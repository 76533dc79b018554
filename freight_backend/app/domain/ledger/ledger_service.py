"""
Ledger Service (Domain Logic).

Transaction Store access for customer accounts: appending entries, removing
the entries of a deleted document, recording payment entries and reading an
account's ledger through the balance engine.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from freight_backend.app.core.exceptions import ResourceNotFoundError, ValidationError
from freight_backend.app.domain.ledger.ledger_engine import compute_ledger, to_money, LedgerComputation
from freight_backend.app.models.account import Account
from freight_backend.app.models.billing_enums import (
    AccountModeType, LedgerEntryKind, PaymentMode, ReceiptType
)
from freight_backend.app.models.ledger_entry import LedgerEntry
from freight_backend.app.services.sequence import next_receipt_number

logger = logging.getLogger("freight.ledger")

# Receipt types that reduce what the customer owes; the rest increase it
REDUCING_RECEIPT_TYPES = {
    ReceiptType.GENERAL_ENTRY,
    ReceiptType.RETURN,
    ReceiptType.OTHER,
    ReceiptType.TDS,
}


@dataclass
class AccountLedger:
    """An account together with its replayed ledger."""
    account: Account
    computation: LedgerComputation

    @property
    def available_credit(self) -> Decimal:
        return to_money(self.account.credit_limit) - self.computation.closing_balance


async def get_account(db: AsyncSession, account_code: str) -> Account:
    result = await db.execute(select(Account).where(Account.account_code == account_code))
    account = result.scalar_one_or_none()
    if not account:
        raise ResourceNotFoundError("Account", account_code)
    return account


def build_entry(
    account_code: str,
    kind: LedgerEntryKind,
    amount,
    transaction_date: date,
    awb_no: Optional[str] = None,
    source_document: Optional[str] = None,
    description: Optional[str] = None,
) -> LedgerEntry:
    """
    Create (but do not add) a ledger entry after checking its amount.

    Raises:
        ValidationError: amount is negative or not a finite number
    """
    try:
        value = to_money(amount)
    except ArithmeticError:
        raise ValidationError("NON_FINITE_AMOUNT", f"Ledger amount {amount!r} is not a number")
    if not value.is_finite():
        raise ValidationError("NON_FINITE_AMOUNT", f"Ledger amount {amount!r} is not finite")
    if value < 0:
        raise ValidationError("NEGATIVE_AMOUNT", "Ledger amounts are unsigned", {"amount": str(value)})

    return LedgerEntry(
        account_code=account_code,
        kind=LedgerEntryKind(kind),
        amount=value,
        transaction_date=transaction_date,
        awb_no=awb_no,
        source_document=source_document,
        description=description,
    )


async def fetch_entries(db: AsyncSession, account_code: str) -> List[LedgerEntry]:
    """Fetch an account's entries. Order is left to the engine."""
    result = await db.execute(select(LedgerEntry).where(LedgerEntry.account_code == account_code))
    return list(result.scalars().all())


async def get_ledger(
    db: AsyncSession,
    account_code: str,
    opening_balance: Optional[Decimal] = None,
) -> AccountLedger:
    """
    Replay the account's ledger.

    ``opening_balance`` overrides the stored opening balance when given.
    Read-only: nothing is written, not even the cached closing balance.
    """
    account = await get_account(db, account_code)
    opening = account.opening_balance if opening_balance is None else opening_balance
    entries = await fetch_entries(db, account_code)
    computation = compute_ledger(entries, opening)
    return AccountLedger(account=account, computation=computation)


async def recompute_cached_balance(db: AsyncSession, account_code: str) -> AccountLedger:
    """Replay the ledger and store the closing balance on the account."""
    ledger = await get_ledger(db, account_code)
    ledger.account.cached_closing_balance = ledger.computation.closing_balance
    ledger.account.balance_recomputed_at = datetime.now(timezone.utc)
    await db.commit()
    await db.refresh(ledger.account)
    return ledger


async def delete_document_entries(
    db: AsyncSession,
    source_document: str,
    kind: Optional[LedgerEntryKind] = None,
    awb_no: Optional[str] = None,
) -> int:
    """
    Remove the entries a deleted document created. Caller commits.

    Payment entries carry a receipt number and are never matched, even
    when a document shares that number.

    Returns:
        Number of entries removed
    """
    stmt = delete(LedgerEntry).where(
        LedgerEntry.source_document == source_document,
        LedgerEntry.receipt_no.is_(None),
    )
    if kind is not None:
        stmt = stmt.where(LedgerEntry.kind == kind)
    if awb_no is not None:
        stmt = stmt.where(LedgerEntry.awb_no == awb_no)
    result = await db.execute(stmt)
    return result.rowcount or 0


def resolve_payment_kind(
    amount: Decimal,
    receipt_type: Optional[ReceiptType],
    debit_amount: Decimal,
    credit_amount: Decimal,
) -> tuple[LedgerEntryKind, Decimal]:
    """
    Decide how a payment entry moves the balance.

    A positive debit amount wins, then a positive credit amount; otherwise
    the receipt type decides whether ``amount`` reduces the balance
    (receipt) or increases it (Bad Debts and the remaining types).
    """
    if debit_amount > 0:
        return LedgerEntryKind.DEBIT, debit_amount
    if credit_amount > 0:
        return LedgerEntryKind.CREDIT, credit_amount
    if receipt_type is None or receipt_type in REDUCING_RECEIPT_TYPES:
        return LedgerEntryKind.RECEIPT, amount
    return LedgerEntryKind.DEBIT, amount


async def record_payment(
    db: AsyncSession,
    redis,
    account_code: str,
    amount,
    mode: PaymentMode,
    payment_date: date,
    receipt_type: Optional[ReceiptType] = None,
    debit_amount=0,
    credit_amount=0,
    remarks: Optional[str] = None,
) -> LedgerEntry:
    """
    Record a payment entry as a single ledger entry with a receipt number.

    Raises:
        ResourceNotFoundError: unknown account
        ValidationError: account is not a NORMAL customer, or bad amount
    """
    account = await get_account(db, account_code)
    if account.mode_type != AccountModeType.NORMAL:
        raise ValidationError(
            "ACCOUNT_MODE",
            "Payment entry is only allowed for normal customers",
            {"mode_type": account.mode_type.value}
        )

    kind, value = resolve_payment_kind(
        to_money(amount), receipt_type, to_money(debit_amount), to_money(credit_amount)
    )
    entry = build_entry(
        account_code=account.account_code,
        kind=kind,
        amount=value,
        transaction_date=payment_date,
        description=remarks,
    )
    receipt_no = await next_receipt_number(db, redis)
    entry.receipt_no = receipt_no
    entry.source_document = str(receipt_no)
    entry.payment_mode = PaymentMode(mode).value
    entry.receipt_type = receipt_type.value if receipt_type else None

    db.add(entry)
    await db.commit()
    await db.refresh(entry)

    logger.info(
        "Recorded receipt %s for %s: %s %s", receipt_no, account.account_code, kind.value, value
    )
    return entry
