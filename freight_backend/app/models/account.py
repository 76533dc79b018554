"""
Customer Account database model.
"""

from sqlalchemy import Column, Integer, String, DateTime, Numeric, Enum
from sqlalchemy.sql import func
from freight_backend.app.db.session import Base
from freight_backend.app.models.billing_enums import AccountModeType


class Account(Base):
    """
    Customer account.

    The opening balance is only changed by back-office correction.
    ``cached_closing_balance`` is a convenience copy refreshed by an explicit
    recompute; the ledger replay is always the source of truth.
    """
    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    account_code = Column(String(50), unique=True, nullable=False, index=True)
    name = Column(String(200), nullable=False)
    email = Column(String(200), nullable=True)
    mode_type = Column(Enum(AccountModeType), default=AccountModeType.NORMAL, nullable=False)

    # Financials
    opening_balance = Column(Numeric(14, 2), nullable=False, default=0)
    credit_limit = Column(Numeric(14, 2), nullable=False, default=0)
    cached_closing_balance = Column(Numeric(14, 2), nullable=True)
    balance_recomputed_at = Column(DateTime(timezone=True), nullable=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Account(code='{self.account_code}', opening={self.opening_balance})>"
