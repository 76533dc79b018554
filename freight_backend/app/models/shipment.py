"""
Shipment database model.

Shipments are booked by the booking subsystem; this service only reads them
and writes their billing and club fields.
"""

from sqlalchemy import Column, Integer, String, DateTime, Boolean, Numeric, ForeignKey
from sqlalchemy.sql import func
from freight_backend.app.db.session import Base


class Shipment(Base):
    """
    Shipment model, identified by its AWB number.

    Billing fields (``is_billed``, ``billing_locked``, ``bill_no``) follow the
    invoice that billed the shipment; ``club_no`` mirrors the club batch whose
    AWB set contains it.
    """
    __tablename__ = "shipments"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    awb_no = Column(String(50), unique=True, nullable=False, index=True)
    account_code = Column(String(50), ForeignKey('accounts.account_code'), nullable=False, index=True)
    run_no = Column(String(50), nullable=True)
    payment_type = Column(String(30), nullable=True)  # e.g. "Credit", "RTO"
    total_amt = Column(Numeric(14, 2), nullable=False, default=0)

    # Operational locks
    is_hold = Column(Boolean, default=False, nullable=False)
    complete_data_lock = Column(Boolean, default=False, nullable=False)

    # Billing state
    is_billed = Column(Boolean, default=False, nullable=False, index=True)
    billing_locked = Column(Boolean, default=False, nullable=False)
    bill_no = Column(String(50), nullable=True, index=True)

    # Club assignment
    club_no = Column(String(50), nullable=True, index=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Shipment(awb='{self.awb_no}', billed={self.is_billed}, bill_no={self.bill_no}, club_no={self.club_no})>"
