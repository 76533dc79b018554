"""
Financial Document database models (invoices, credit notes, debit notes).
"""

from sqlalchemy import Column, Integer, String, DateTime, Date, Enum, Numeric, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from freight_backend.app.db.session import Base
from freight_backend.app.models.billing_enums import DocumentType


class FinancialDocument(Base):
    """
    Invoice, credit note or debit note.

    Amounts are stored only after validation; ``grand_total`` is always
    computed server-side from amount and the three GST components.
    """
    __tablename__ = "financial_documents"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    document_no = Column(String(50), unique=True, nullable=False, index=True)
    document_type = Column(Enum(DocumentType), nullable=False, index=True)
    serial_no = Column(Integer, nullable=True)
    account_code = Column(String(50), ForeignKey('accounts.account_code'), nullable=False, index=True)
    document_date = Column(Date, nullable=False)
    financial_year = Column(String(20), nullable=True)
    branch = Column(String(100), nullable=True)
    created_by = Column(String(100), nullable=True)

    # Amounts
    amount = Column(Numeric(14, 2), nullable=False, default=0)
    sgst = Column(Numeric(14, 2), nullable=False, default=0)
    cgst = Column(Numeric(14, 2), nullable=False, default=0)
    igst = Column(Numeric(14, 2), nullable=False, default=0)
    grand_total = Column(Numeric(14, 2), nullable=False, default=0)

    lines = relationship(
        "DocumentLine",
        back_populates="document",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="DocumentLine.id",
    )

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    @property
    def awb_numbers(self):
        return [line.awb_no for line in self.lines]

    def __repr__(self):
        return f"<FinancialDocument(no='{self.document_no}', type='{self.document_type.value}', total={self.grand_total})>"


class DocumentLine(Base):
    """One AWB line on a financial document."""
    __tablename__ = "document_lines"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    document_id = Column(Integer, ForeignKey('financial_documents.id', ondelete="CASCADE"), nullable=False, index=True)
    awb_no = Column(String(50), nullable=False, index=True)
    amount = Column(Numeric(14, 2), nullable=False, default=0)

    document = relationship("FinancialDocument", back_populates="lines")

    def __repr__(self):
        return f"<DocumentLine(awb='{self.awb_no}', amount={self.amount})>"
