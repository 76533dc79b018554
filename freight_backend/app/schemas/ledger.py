"""
Account and ledger schemas.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field

from freight_backend.app.models.billing_enums import (
    AccountModeType, LedgerEntryKind, MutationOutcome, PaymentMode, ReceiptType
)


class AccountCreate(BaseModel):
    account_code: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=200)
    email: Optional[EmailStr] = None
    mode_type: AccountModeType = AccountModeType.NORMAL
    opening_balance: Decimal = Decimal("0")
    credit_limit: Decimal = Field(Decimal("0"), ge=0)


class OpeningBalanceCorrection(BaseModel):
    """Back-office correction of an account's opening balance."""
    opening_balance: Decimal
    reason: str = Field(..., min_length=3, max_length=255)


class AccountResponse(BaseModel):
    account_code: str
    name: str
    email: Optional[str]
    mode_type: AccountModeType
    opening_balance: Decimal
    credit_limit: Decimal
    cached_closing_balance: Optional[Decimal]
    balance_recomputed_at: Optional[datetime]
    created_at: datetime

    class Config:
        from_attributes = True


class LedgerEntryResponse(BaseModel):
    id: int
    kind: LedgerEntryKind
    transaction_date: date
    amount: Decimal
    awb_no: Optional[str]
    source_document: Optional[str]
    description: Optional[str]
    receipt_no: Optional[int]
    payment_mode: Optional[str]
    receipt_type: Optional[str]

    class Config:
        from_attributes = True


class LedgerRowResponse(BaseModel):
    """One replayed entry with the balance after it."""
    entry: LedgerEntryResponse
    running_balance: Decimal


class LedgerSummary(BaseModel):
    total_charges: Decimal
    total_receipts: Decimal
    total_debits: Decimal
    total_credits: Decimal
    outstanding: Decimal
    credit_limit: Decimal
    available_credit: Decimal


class LedgerResponse(BaseModel):
    account_code: str
    name: str
    opening_balance: Decimal
    closing_balance: Decimal
    rows: List[LedgerRowResponse]
    summary: LedgerSummary
    warnings: List[str] = Field(default_factory=list)


class PaymentCreate(BaseModel):
    """
    Payment entry for a NORMAL customer.

    A positive ``debit_amount`` or ``credit_amount`` turns the entry into a
    manual debit or credit of that amount.
    """
    amount: Decimal = Decimal("0")
    mode: PaymentMode
    payment_date: date
    receipt_type: Optional[ReceiptType] = None
    debit_amount: Decimal = Decimal("0")
    credit_amount: Decimal = Decimal("0")
    remarks: Optional[str] = Field(None, max_length=255)


class PaymentResponse(BaseModel):
    outcome: MutationOutcome
    entry: LedgerEntryResponse
