"""
Account, Ledger and Payment Entry Tests.
"""

import pytest
from datetime import date
from decimal import Decimal

from freight_backend.app.domain.ledger.ledger_service import build_entry, resolve_payment_kind
from freight_backend.app.core.exceptions import ValidationError
from freight_backend.app.models.billing_enums import LedgerEntryKind, ReceiptType


def payment(amount="0", mode="Cash", **extra):
    return {"amount": amount, "mode": mode, "payment_date": "2024-04-12", **extra}


async def add_charge(db_session, amount, day=10, awb_no="MPL1000001"):
    db_session.add(build_entry("CUST001", LedgerEntryKind.CHARGE, Decimal(amount), date(2024, 4, day), awb_no=awb_no))
    await db_session.commit()


async def test_create_and_list_accounts(client, accounts_headers):
    response = await client.post("/v1/accounts", json={
        "account_code": "CUST010",
        "name": "Northwind",
        "email": "billing@northwind.example",
        "opening_balance": "-25.5",
        "credit_limit": "5000",
    }, headers=accounts_headers)

    assert response.status_code == 201
    assert response.json()["opening_balance"] == "-25.50"
    assert response.json()["mode_type"] == "NORMAL"

    duplicate = await client.post(
        "/v1/accounts", json={"account_code": "CUST010", "name": "Again"}, headers=accounts_headers
    )
    assert duplicate.status_code == 409
    assert duplicate.json()["error_code"] == "ERR_CONFLICT"

    listing = await client.get("/v1/accounts", headers=accounts_headers)
    assert [a["account_code"] for a in listing.json()] == ["CUST010"]


async def test_balance_correctness(client, customer, accounts_headers, db_session):
    """Opening 100, charge 250, receipt 150 closes at 200."""
    await add_charge(db_session, "250.00")
    response = await client.post(
        "/v1/accounts/CUST001/payments", json=payment("150", "NEFT", receipt_type="General Entry"),
        headers=accounts_headers,
    )
    assert response.status_code == 201

    ledger = (await client.get("/v1/accounts/CUST001/ledger", headers=accounts_headers)).json()

    assert ledger["closing_balance"] == "200.00"
    assert [row["entry"]["kind"] for row in ledger["rows"]] == ["CHARGE", "RECEIPT"]
    summary = ledger["summary"]
    assert summary["total_charges"] == "250.00"
    assert summary["total_receipts"] == "150.00"
    assert summary["outstanding"] == "100.00"
    assert summary["available_credit"] == "800.00"


async def test_opening_balance_override_is_read_only(client, customer, accounts_headers, db_session):
    await add_charge(db_session, "250.00")

    ledger = (await client.get(
        "/v1/accounts/CUST001/ledger", params={"opening_balance": "0"}, headers=accounts_headers
    )).json()
    account = (await client.get("/v1/accounts/CUST001", headers=accounts_headers)).json()

    assert ledger["closing_balance"] == "250.00"
    assert account["opening_balance"] == "100.00"
    assert account["cached_closing_balance"] is None


async def test_receipt_numbers_start_at_1000(client, customer, accounts_headers):
    first = await client.post("/v1/accounts/CUST001/payments", json=payment("10"), headers=accounts_headers)
    second = await client.post("/v1/accounts/CUST001/payments", json=payment("20"), headers=accounts_headers)

    assert first.json()["entry"]["receipt_no"] == 1000
    assert second.json()["entry"]["receipt_no"] == 1001
    assert second.json()["entry"]["payment_mode"] == "Cash"


async def test_receipt_counter_reseeds_from_database(client, customer, accounts_headers, redis_client_session):
    await client.post("/v1/accounts/CUST001/payments", json=payment("10"), headers=accounts_headers)
    await client.post("/v1/accounts/CUST001/payments", json=payment("10"), headers=accounts_headers)
    await redis_client_session.flushdb()

    response = await client.post("/v1/accounts/CUST001/payments", json=payment("10"), headers=accounts_headers)

    assert response.json()["entry"]["receipt_no"] == 1002


@pytest.mark.parametrize("extra, kind, amount", [
    ({"amount": "100", "receipt_type": "TDS"}, "RECEIPT", "100.00"),
    ({"amount": "100", "receipt_type": "Bad Debts"}, "DEBIT", "100.00"),
    ({"amount": "100", "debit_amount": "40"}, "DEBIT", "40.00"),
    ({"amount": "100", "credit_amount": "30"}, "CREDIT", "30.00"),
])
async def test_payment_kind_resolution(client, customer, accounts_headers, extra, kind, amount):
    response = await client.post(
        "/v1/accounts/CUST001/payments", json={"mode": "Cheque", "payment_date": "2024-04-12", **extra},
        headers=accounts_headers,
    )

    entry = response.json()["entry"]
    assert entry["kind"] == kind
    assert entry["amount"] == amount


def test_debit_amount_wins_over_credit_amount():
    kind, amount = resolve_payment_kind(Decimal("5"), ReceiptType.GENERAL_ENTRY, Decimal("7"), Decimal("9"))

    assert kind == LedgerEntryKind.DEBIT
    assert amount == Decimal("7")


async def test_payment_rejected_for_cash_account(client, cash_customer, accounts_headers):
    response = await client.post("/v1/accounts/CASH001/payments", json=payment("10"), headers=accounts_headers)

    assert response.status_code == 422
    assert response.json()["error_code"] == "ERR_VALIDATION_ACCOUNT_MODE"


async def test_negative_payment_rejected(client, customer, accounts_headers):
    response = await client.post("/v1/accounts/CUST001/payments", json=payment("-10"), headers=accounts_headers)

    assert response.status_code == 422
    assert response.json()["error_code"] == "ERR_VALIDATION_NEGATIVE_AMOUNT"


async def test_payment_for_unknown_account(client, accounts_headers):
    response = await client.post("/v1/accounts/NOPE/payments", json=payment("10"), headers=accounts_headers)

    assert response.status_code == 404
    assert response.json()["outcome"] == "REJECTED"


async def test_opening_balance_correction_and_recompute(client, customer, accounts_headers, db_session):
    await add_charge(db_session, "250.00")

    response = await client.patch(
        "/v1/accounts/CUST001/opening-balance",
        json={"opening_balance": "50", "reason": "Migrated balance was wrong"},
        headers=accounts_headers,
    )
    assert response.status_code == 200
    assert response.json()["opening_balance"] == "50.00"

    response = await client.post("/v1/accounts/CUST001/recompute-balance", headers=accounts_headers)

    assert response.status_code == 200
    assert response.json()["cached_closing_balance"] == "300.00"
    assert response.json()["balance_recomputed_at"] is not None


def test_build_entry_rejects_negative_amount():
    with pytest.raises(ValidationError) as exc_info:
        build_entry("CUST001", LedgerEntryKind.CHARGE, Decimal("-1"), date(2024, 4, 1))

    assert exc_info.value.rule == "NEGATIVE_AMOUNT"
