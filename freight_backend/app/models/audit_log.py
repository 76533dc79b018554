"""
Audit Log Database Model.

Tracks who changed financial documents, payments and club batches.
"""

from sqlalchemy import Column, Integer, String, DateTime, JSON
from sqlalchemy.sql import func
from freight_backend.app.db.session import Base


class AuditLog(Base):
    """
    Audit log model for financial and club mutations.

    Events logged:
    - INVOICE_CREATED / INVOICE_UPDATED / INVOICE_DELETED
    - CREDIT_NOTE_* / DEBIT_NOTE_*
    - PAYMENT_RECORDED / OPENING_BALANCE_CORRECTED
    - CLUB_BATCH_UPSERTED / CLUB_BATCH_DELETED / CLUB_BATCH_LOCKED
    """
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Who performed the action (None for system actions)
    actor_id = Column(Integer, index=True, nullable=True)
    actor_username = Column(String(100), nullable=True)

    # What action was performed
    action = Column(String(100), nullable=False, index=True)

    # Which entity was touched (document number, club number, account code)
    target_ref = Column(String(100), index=True, nullable=True)

    # Additional context (JSON for flexibility)
    meta_data = Column(JSON, nullable=True)

    ip_address = Column(String(50), nullable=True)

    # Timestamp
    timestamp = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    def __repr__(self):
        return f"<AuditLog(id={self.id}, action='{self.action}', actor={self.actor_username}, target={self.target_ref})>"
