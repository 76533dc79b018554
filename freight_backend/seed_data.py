"""
Database seeding script for development data.

Creates two customer accounts and a handful of booked shipments so the
billing and clubbing flows can be exercised against a fresh database.
Shipments are normally written by the booking subsystem; this script stands
in for it locally.
"""

import asyncio
import sys
from decimal import Decimal
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from freight_backend.app.db.session import AsyncSessionLocal, engine, Base
from freight_backend.app.models.account import Account
from freight_backend.app.models.billing_enums import AccountModeType
from freight_backend.app.models.shipment import Shipment
from freight_backend.app.models.financial_document import FinancialDocument  # noqa: F401
from freight_backend.app.models.club_batch import ClubBatch  # noqa: F401
from freight_backend.app.models.ledger_entry import LedgerEntry  # noqa: F401
from freight_backend.app.models.audit_log import AuditLog  # noqa: F401
from freight_backend.app.models.dlq import DeadLetterQueue  # noqa: F401
from sqlalchemy import select


ACCOUNTS = [
    {"account_code": "CUST001", "name": "Acme Exports", "opening_balance": Decimal("100.00"),
     "credit_limit": Decimal("50000.00"), "mode_type": AccountModeType.NORMAL},
    {"account_code": "CASH001", "name": "Walk-in Counter", "opening_balance": Decimal("0.00"),
     "credit_limit": Decimal("0.00"), "mode_type": AccountModeType.CASH},
]

SHIPMENTS = [
    {"awb_no": "MPL1000001", "account_code": "CUST001", "run_no": "RUN-001", "total_amt": Decimal("250.00")},
    {"awb_no": "MPL1000002", "account_code": "CUST001", "run_no": "RUN-001", "total_amt": Decimal("410.00")},
    {"awb_no": "MPL1000003", "account_code": "CUST001", "run_no": None, "total_amt": Decimal("90.00")},
    {"awb_no": "MPL1000004", "account_code": "CUST001", "run_no": "RUN-002", "total_amt": Decimal("120.00"),
     "payment_type": "RTO"},
]


async def seed_data():
    """
    Seed development accounts and shipments.

    Skips seeding when the first account already exists.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as db:
        print("🌱 Starting seeding...")

        result = await db.execute(
            select(Account).where(Account.account_code == ACCOUNTS[0]["account_code"])
        )
        if result.scalar_one_or_none():
            print("ℹ️  Accounts already exist, skipping seeding")
            return

        for data in ACCOUNTS:
            db.add(Account(**data))
            print(f"✅ Created account {data['account_code']} ({data['mode_type'].value})")
        await db.flush()

        for data in SHIPMENTS:
            db.add(Shipment(**data))
            print(f"✅ Created shipment {data['awb_no']} (run: {data['run_no'] or '-'})")

        await db.commit()

        print("\n🎉 Seeding completed successfully!")
        print("\nNote: MPL1000003 has no run number and cannot be billed; MPL1000004 is RTO and cannot be clubbed")


if __name__ == "__main__":
    asyncio.run(seed_data())
