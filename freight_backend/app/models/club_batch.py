"""
Club Batch database models.

A club batch groups AWBs for one run; its item set is the authoritative
assignment that ``Shipment.club_no`` mirrors.
"""

from sqlalchemy import Column, Integer, String, DateTime, Date, Boolean, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from freight_backend.app.db.session import Base


class ClubBatch(Base):
    """Club batch header."""
    __tablename__ = "club_batches"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    club_no = Column(String(50), unique=True, nullable=False, index=True)
    run_no = Column(String(50), nullable=True, index=True)
    batch_date = Column(Date, nullable=True)
    service = Column(String(100), nullable=True)
    remarks = Column(String(500), nullable=True)
    is_locked = Column(Boolean, default=False, nullable=False)

    items = relationship(
        "ClubBatchItem",
        back_populates="batch",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="ClubBatchItem.id",
    )

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    @property
    def awb_set(self):
        return {item.awb_no for item in self.items}

    def __repr__(self):
        return f"<ClubBatch(club_no='{self.club_no}', run_no='{self.run_no}', items={len(self.items)})>"


class ClubBatchItem(Base):
    """One AWB placed in a club batch."""
    __tablename__ = "club_batch_items"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    batch_id = Column(Integer, ForeignKey('club_batches.id', ondelete="CASCADE"), nullable=False, index=True)
    awb_no = Column(String(50), nullable=False, index=True)
    weight = Column(String(20), nullable=True)
    bag_weight = Column(String(20), nullable=True)

    batch = relationship("ClubBatch", back_populates="items")
