"""
Ledger Balance Engine Tests.

The engine is pure, so these run on plain records without a database.
"""

import random
from datetime import date
from decimal import Decimal
from types import SimpleNamespace

from freight_backend.app.domain.ledger.ledger_engine import compute_ledger, to_money
from freight_backend.app.models.billing_enums import LedgerEntryKind


def entry(sequence, kind, amount, day=1):
    return SimpleNamespace(
        sequence=sequence,
        kind=kind,
        amount=Decimal(str(amount)),
        transaction_date=date(2024, 4, day),
    )


def test_empty_ledger_closes_at_opening():
    result = compute_ledger([], Decimal("100"))

    assert result.closing_balance == Decimal("100.00")
    assert result.rows == []
    assert result.outstanding == Decimal("0.00")


def test_charge_then_receipt():
    """100 opening + 250 charge - 150 receipt = 200."""
    entries = [
        entry(1, LedgerEntryKind.CHARGE, "250", day=1),
        entry(2, LedgerEntryKind.RECEIPT, "150", day=2),
    ]

    result = compute_ledger(entries, 100)

    assert [row.running_balance for row in result.rows] == [Decimal("350.00"), Decimal("200.00")]
    assert result.closing_balance == Decimal("200.00")
    assert result.total_charges == Decimal("250.00")
    assert result.total_receipts == Decimal("150.00")
    assert result.outstanding == Decimal("100.00")


def test_all_four_kinds():
    entries = [
        entry(1, LedgerEntryKind.CHARGE, "1000"),
        entry(2, LedgerEntryKind.DEBIT, "50"),
        entry(3, LedgerEntryKind.RECEIPT, "600"),
        entry(4, LedgerEntryKind.CREDIT, "25.50"),
    ]

    result = compute_ledger(entries, Decimal("-10"))

    assert result.closing_balance == Decimal("414.50")
    assert result.total_debits == Decimal("50.00")
    assert result.total_credits == Decimal("25.50")


def test_order_is_date_then_sequence():
    """Fetch order does not matter; same-date entries follow their sequence."""
    entries = [
        entry(5, LedgerEntryKind.RECEIPT, "30", day=3),
        entry(2, LedgerEntryKind.CHARGE, "100", day=3),
        entry(9, LedgerEntryKind.CHARGE, "10", day=1),
    ]

    result = compute_ledger(entries, 0)

    assert [row.entry.sequence for row in result.rows] == [9, 2, 5]
    assert [row.running_balance for row in result.rows] == [
        Decimal("10.00"), Decimal("110.00"), Decimal("80.00")
    ]


def test_replay_is_deterministic_for_any_fetch_order():
    entries = [
        entry(i, kind, amount, day=(i % 5) + 1)
        for i, (kind, amount) in enumerate([
            (LedgerEntryKind.CHARGE, "120.10"),
            (LedgerEntryKind.RECEIPT, "40"),
            (LedgerEntryKind.DEBIT, "7.35"),
            (LedgerEntryKind.CREDIT, "12"),
            (LedgerEntryKind.CHARGE, "88.88"),
            (LedgerEntryKind.RECEIPT, "99.99"),
        ], start=1)
    ]
    baseline = compute_ledger(entries, "55.00")

    rng = random.Random(7)
    for _ in range(10):
        shuffled = entries[:]
        rng.shuffle(shuffled)
        result = compute_ledger(shuffled, "55.00")
        assert result.closing_balance == baseline.closing_balance
        assert [r.running_balance for r in result.rows] == [r.running_balance for r in baseline.rows]


def test_zero_amount_entry_kept():
    result = compute_ledger([entry(1, LedgerEntryKind.CHARGE, "0")], 100)

    assert len(result.rows) == 1
    assert result.closing_balance == Decimal("100.00")


def test_corrupt_entries_are_skipped_with_warning(caplog):
    entries = [
        entry(1, LedgerEntryKind.CHARGE, "100"),
        SimpleNamespace(sequence=2, kind="REFUND", amount=Decimal("5"), transaction_date=date(2024, 4, 1)),
        SimpleNamespace(sequence=3, kind=LedgerEntryKind.CHARGE, amount=Decimal("NaN"), transaction_date=date(2024, 4, 1)),
    ]

    with caplog.at_level("WARNING", logger="freight.ledger"):
        result = compute_ledger(entries, 0)

    assert result.closing_balance == Decimal("100.00")
    assert len(result.rows) == 1
    assert len(result.warnings) == 2
    assert "Skipped ledger entry 2" in caplog.text


def test_to_money_goes_through_str_for_floats():
    assert to_money(0.1) + to_money(0.2) == Decimal("0.30")
    assert to_money("12.345") == Decimal("12.34")
