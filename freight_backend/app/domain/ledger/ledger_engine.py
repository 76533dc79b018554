"""
Ledger Balance Engine (Domain Logic).

Replays an account's ledger entries against its opening balance to produce
the running balance after every entry and the closing balance.

The engine is a pure function: it never reads or writes the database and
keeps no state between calls, so the same entry set always yields the same
rows no matter in which order the entries were fetched.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, List, Optional

from freight_backend.app.models.billing_enums import LedgerEntryKind

logger = logging.getLogger("freight.ledger")

CENT = Decimal("0.01")

# Sign applied to an entry's amount when folding it into the balance
KIND_SIGN = {
    LedgerEntryKind.CHARGE: 1,
    LedgerEntryKind.DEBIT: 1,
    LedgerEntryKind.RECEIPT: -1,
    LedgerEntryKind.CREDIT: -1,
}


def to_money(value: Any) -> Decimal:
    """Convert ``value`` to a two-place Decimal. Floats go through ``str``."""
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, float):
        amount = Decimal(str(value))
    else:
        amount = Decimal(value if value is not None else 0)
    return amount.quantize(CENT)


@dataclass(frozen=True)
class LedgerRow:
    """One replayed entry and the balance right after it."""
    entry: Any
    running_balance: Decimal


@dataclass
class LedgerComputation:
    """Result of replaying one account's entries."""
    opening_balance: Decimal
    closing_balance: Decimal
    rows: List[LedgerRow] = field(default_factory=list)
    total_charges: Decimal = Decimal("0.00")
    total_receipts: Decimal = Decimal("0.00")
    total_debits: Decimal = Decimal("0.00")
    total_credits: Decimal = Decimal("0.00")
    warnings: List[str] = field(default_factory=list)

    @property
    def outstanding(self) -> Decimal:
        """Net movement over the period: closing minus opening."""
        return self.closing_balance - self.opening_balance


def _sort_key(entry: Any):
    transaction_date = entry.transaction_date or date.min
    return (transaction_date, entry.sequence)


def _coerce_kind(kind: Any) -> Optional[LedgerEntryKind]:
    if isinstance(kind, LedgerEntryKind):
        return kind
    try:
        return LedgerEntryKind(kind)
    except ValueError:
        return None


def _coerce_amount(amount: Any) -> Optional[Decimal]:
    try:
        value = to_money(amount)
    except (InvalidOperation, TypeError, ValueError):
        return None
    if not value.is_finite():
        return None
    return value


def compute_ledger(entries: Iterable[Any], opening_balance: Any) -> LedgerComputation:
    """
    Replay ledger entries in (transaction_date, sequence) order.

    Args:
        entries: Objects exposing ``kind``, ``amount``, ``transaction_date``
            and ``sequence`` (ORM rows or plain records), in any order
        opening_balance: Balance before the first entry

    Returns:
        LedgerComputation with one row per applied entry

    Entries with an unknown kind or a non-finite amount cannot have been
    written through the validated paths; they are skipped, logged and listed
    in ``warnings`` rather than failing the read.
    """
    opening = to_money(opening_balance)
    result = LedgerComputation(opening_balance=opening, closing_balance=opening)
    balance = opening

    for entry in sorted(entries, key=_sort_key):
        kind = _coerce_kind(entry.kind)
        amount = _coerce_amount(entry.amount)
        if kind is None or amount is None:
            message = f"Skipped ledger entry {entry.sequence}: kind={entry.kind!r} amount={entry.amount!r}"
            logger.warning(message)
            result.warnings.append(message)
            continue

        balance += KIND_SIGN[kind] * amount
        result.rows.append(LedgerRow(entry=entry, running_balance=balance))

        if kind == LedgerEntryKind.CHARGE:
            result.total_charges += amount
        elif kind == LedgerEntryKind.RECEIPT:
            result.total_receipts += amount
        elif kind == LedgerEntryKind.DEBIT:
            result.total_debits += amount
        else:
            result.total_credits += amount

    result.closing_balance = balance
    return result
