"""
Credit / Debit Note Tests.

Notes post ledger entries only; shipments are never touched.
"""

from sqlalchemy import select

from freight_backend.app.models.ledger_entry import LedgerEntry
from conftest import fetch_shipment, invoice_payload


async def test_credit_note_reduces_balance(client, shipments, accounts_headers):
    payload = invoice_payload("CN-1", lines=[("MPL1000001", "40.00"), ("MPL1000002", "10.00")])

    response = await client.post("/v1/credit-notes", json=payload, headers=accounts_headers)

    assert response.status_code == 201
    data = response.json()
    assert data["outcome"] == "APPLIED"
    assert data["entries_created"] == 2
    assert data["document"]["document_type"] == "CREDIT_NOTE"
    assert data["document"]["serial_no"] is None

    ledger = (await client.get("/v1/accounts/CUST001/ledger", headers=accounts_headers)).json()
    assert ledger["closing_balance"] == "50.00"
    assert ledger["summary"]["total_credits"] == "50.00"
    assert (await fetch_shipment("MPL1000001")).is_billed is False


async def test_debit_note_increases_balance(client, shipments, accounts_headers):
    payload = invoice_payload("DN-1", lines=[("MPL1000001", "15.00")], sgst="1.35", cgst="1.35")

    response = await client.post("/v1/debit-notes", json=payload, headers=accounts_headers)

    assert response.status_code == 201
    assert response.json()["document"]["grand_total"] == "17.70"
    ledger = (await client.get("/v1/accounts/CUST001/ledger", headers=accounts_headers)).json()
    assert ledger["closing_balance"] == "115.00"


async def test_deleting_note_removes_its_entries(client, shipments, accounts_headers, db_session):
    await client.post("/v1/credit-notes", json=invoice_payload("CN-1"), headers=accounts_headers)
    await client.post("/v1/debit-notes", json=invoice_payload("DN-1"), headers=accounts_headers)

    response = await client.delete("/v1/credit-notes/CN-1", headers=accounts_headers)

    assert response.status_code == 200
    assert response.json() == {"outcome": "APPLIED", "document_no": "CN-1", "entries_removed": 1}
    remaining = (await db_session.execute(select(LedgerEntry.source_document))).scalars().all()
    assert remaining == ["DN-1"]


async def test_note_type_must_match_route(client, shipments, accounts_headers):
    await client.post("/v1/credit-notes", json=invoice_payload("CN-1"), headers=accounts_headers)

    response = await client.delete("/v1/debit-notes/CN-1", headers=accounts_headers)

    assert response.status_code == 404


async def test_note_number_cannot_reuse_invoice_number(client, shipments, accounts_headers):
    await client.post("/v1/invoices", json=invoice_payload("DOC-1"), headers=accounts_headers)

    response = await client.post("/v1/credit-notes", json=invoice_payload("DOC-1"), headers=accounts_headers)

    assert response.status_code == 409


async def test_note_validation_rules_apply(client, shipments, accounts_headers):
    payload = invoice_payload("CN-1", sgst="5", cgst="4")

    response = await client.post("/v1/credit-notes", json=payload, headers=accounts_headers)

    assert response.status_code == 422
    assert response.json()["error_code"] == "ERR_VALIDATION_GST_SPLIT_UNEQUAL"


async def test_deleting_note_keeps_payment_with_same_number(client, shipments, accounts_headers):
    payment = await client.post("/v1/accounts/CUST001/payments", json={
        "amount": "0", "mode": "Cash", "payment_date": "2024-04-12", "credit_amount": "30",
    }, headers=accounts_headers)
    assert payment.json()["entry"]["receipt_no"] == 1000
    await client.post(
        "/v1/credit-notes", json=invoice_payload("1000", lines=[("MPL1000001", "5.00")]), headers=accounts_headers
    )

    response = await client.delete("/v1/credit-notes/1000", headers=accounts_headers)

    assert response.json()["entries_removed"] == 1
    ledger = (await client.get("/v1/accounts/CUST001/ledger", headers=accounts_headers)).json()
    assert ledger["closing_balance"] == "70.00"
    assert [row["entry"]["receipt_no"] for row in ledger["rows"]] == [1000]
