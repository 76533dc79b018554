"""
Ledger Entry database model.

Append-only record of every charge, receipt, debit and credit against a
customer account.
"""

from sqlalchemy import Column, Integer, ForeignKey, DateTime, Date, Enum, String, Numeric, Index
from sqlalchemy.orm import synonym
from sqlalchemy.sql import func
from freight_backend.app.db.session import Base
from freight_backend.app.models.billing_enums import LedgerEntryKind


class LedgerEntry(Base):
    """
    Ledger Entry model.

    The autoincrement id is the insertion sequence used to order entries that
    share a transaction date. Entries are never updated; they are deleted
    only when the document that created them is deleted.
    """
    __tablename__ = "ledger_entries"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    sequence = synonym("id")

    account_code = Column(String(50), ForeignKey('accounts.account_code'), nullable=False, index=True)

    # Entry details
    kind = Column(Enum(LedgerEntryKind), nullable=False)
    transaction_date = Column(Date, nullable=False)
    amount = Column(Numeric(14, 2), nullable=False)

    # Source references
    awb_no = Column(String(50), nullable=True, index=True)
    source_document = Column(String(50), nullable=True, index=True)
    description = Column(String(255), nullable=True)

    # Payment entry details (receipts and manual debits/credits only)
    receipt_no = Column(Integer, unique=True, nullable=True)
    payment_mode = Column(String(30), nullable=True)
    receipt_type = Column(String(30), nullable=True)

    # Timestamps (Immutable - no updated_at)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        Index('ix_ledger_entries_account_order', 'account_code', 'transaction_date', 'id'),
    )

    def __repr__(self):
        return f"<LedgerEntry(id={self.id}, kind='{self.kind.value}', amount={self.amount})>"
