"""
Account & Ledger API Endpoints.

Account master, ledger replay, opening balance correction and payment entry.
"""

from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from freight_backend.app.core.guards import require_role, FINANCE_ROLES
from freight_backend.app.core.redis_client import get_redis
from freight_backend.app.db.session import get_db
from freight_backend.app.domain.ledger.ledger_engine import to_money
from freight_backend.app.domain.ledger import ledger_service
from freight_backend.app.models.account import Account
from freight_backend.app.models.billing_enums import MutationOutcome
from freight_backend.app.schemas.ledger import (
    AccountCreate, AccountResponse, LedgerEntryResponse, LedgerResponse, LedgerRowResponse,
    LedgerSummary, OpeningBalanceCorrection, PaymentCreate, PaymentResponse
)
from freight_backend.app.services.audit import log_user_action, AuditAction

router = APIRouter(prefix="/accounts", tags=["Accounts & Ledger"])


@router.get("", response_model=List[AccountResponse])
async def list_accounts(
    current_user: dict = Depends(require_role(FINANCE_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    result = await db.execute(select(Account).order_by(Account.account_code))
    return result.scalars().all()


@router.post("", response_model=AccountResponse, status_code=status.HTTP_201_CREATED)
async def create_account(
    account_in: AccountCreate,
    current_user: dict = Depends(require_role(FINANCE_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """
    Create a customer account.

    The opening balance given here is the only one the account gets; later
    changes go through the correction endpoint.
    """
    existing = await db.execute(select(Account.id).where(Account.account_code == account_in.account_code))
    if existing.scalar_one_or_none() is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Account {account_in.account_code} already exists"
        )

    account = Account(
        account_code=account_in.account_code,
        name=account_in.name,
        email=account_in.email,
        mode_type=account_in.mode_type,
        opening_balance=to_money(account_in.opening_balance),
        credit_limit=to_money(account_in.credit_limit),
    )
    db.add(account)
    await db.commit()
    await db.refresh(account)

    await log_user_action(db, current_user, AuditAction.ACCOUNT_CREATED, account.account_code, {
        "opening_balance": str(account.opening_balance),
    })
    return account


@router.get("/{account_code}", response_model=AccountResponse)
async def get_account(
    account_code: str = Path(..., description="Customer account code"),
    current_user: dict = Depends(require_role(FINANCE_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    return await ledger_service.get_account(db, account_code)


@router.get("/{account_code}/ledger", response_model=LedgerResponse)
async def get_ledger(
    account_code: str = Path(..., description="Customer account code"),
    opening_balance: Optional[Decimal] = Query(None, description="Override the stored opening balance"),
    current_user: dict = Depends(require_role(FINANCE_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """
    Replay the account's ledger.

    Rows come back in (transaction date, entry sequence) order with the
    running balance after each entry.
    """
    ledger = await ledger_service.get_ledger(db, account_code, opening_balance)
    computation = ledger.computation

    return LedgerResponse(
        account_code=ledger.account.account_code,
        name=ledger.account.name,
        opening_balance=computation.opening_balance,
        closing_balance=computation.closing_balance,
        rows=[
            LedgerRowResponse(
                entry=LedgerEntryResponse.model_validate(row.entry),
                running_balance=row.running_balance,
            )
            for row in computation.rows
        ],
        summary=LedgerSummary(
            total_charges=computation.total_charges,
            total_receipts=computation.total_receipts,
            total_debits=computation.total_debits,
            total_credits=computation.total_credits,
            outstanding=computation.outstanding,
            credit_limit=to_money(ledger.account.credit_limit),
            available_credit=ledger.available_credit,
        ),
        warnings=computation.warnings,
    )


@router.patch("/{account_code}/opening-balance", response_model=AccountResponse)
async def correct_opening_balance(
    correction: OpeningBalanceCorrection,
    account_code: str = Path(..., description="Customer account code"),
    current_user: dict = Depends(require_role(FINANCE_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """Back-office correction of the opening balance. Audited."""
    account = await ledger_service.get_account(db, account_code)
    previous = account.opening_balance

    account.opening_balance = to_money(correction.opening_balance)
    await db.commit()
    await db.refresh(account)

    await log_user_action(db, current_user, AuditAction.OPENING_BALANCE_CORRECTED, account_code, {
        "previous": str(previous),
        "corrected": str(account.opening_balance),
        "reason": correction.reason,
    })
    return account


@router.post("/{account_code}/recompute-balance", response_model=AccountResponse)
async def recompute_balance(
    account_code: str = Path(..., description="Customer account code"),
    current_user: dict = Depends(require_role(FINANCE_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """Refresh the cached closing balance from a full replay."""
    ledger = await ledger_service.recompute_cached_balance(db, account_code)
    return ledger.account


@router.post("/{account_code}/payments", response_model=PaymentResponse, status_code=status.HTTP_201_CREATED)
async def record_payment(
    payment: PaymentCreate,
    account_code: str = Path(..., description="Customer account code"),
    current_user: dict = Depends(require_role(FINANCE_ROLES)),
    db: AsyncSession = Depends(get_db),
    redis=Depends(get_redis)
):
    """
    Payment entry.

    Writes one ledger entry numbered from the receipt counter. Debit and
    credit amounts turn the entry into a manual debit or credit.
    """
    entry = await ledger_service.record_payment(
        db,
        redis,
        account_code=account_code,
        amount=payment.amount,
        mode=payment.mode,
        payment_date=payment.payment_date,
        receipt_type=payment.receipt_type,
        debit_amount=payment.debit_amount,
        credit_amount=payment.credit_amount,
        remarks=payment.remarks,
    )

    await log_user_action(db, current_user, AuditAction.PAYMENT_RECORDED, account_code, {
        "receipt_no": entry.receipt_no,
        "kind": entry.kind.value,
        "amount": str(entry.amount),
    })
    return PaymentResponse(outcome=MutationOutcome.APPLIED, entry=LedgerEntryResponse.model_validate(entry))
