"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from freight_backend.app.api.v1.endpoints import accounts, billing, clubbing, shipments

router = APIRouter()

# Accounts, ledger and payment entry
router.include_router(accounts.router)

# Invoices and credit / debit notes
router.include_router(billing.router)
router.include_router(billing.credit_note_router)
router.include_router(billing.debit_note_router)

# Club batches
router.include_router(clubbing.router)

# Shipment billing / club state
router.include_router(shipments.router)
