"""
Audit logging service for financial and club mutations.

Provides centralized logging for compliance and back-office review.
"""

from typing import Optional, Dict, Any
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc
from freight_backend.app.models.audit_log import AuditLog


class AuditAction:
    """Standardized audit action constants."""
    # Invoices
    INVOICE_CREATED = "INVOICE_CREATED"
    INVOICE_UPDATED = "INVOICE_UPDATED"
    INVOICE_DELETED = "INVOICE_DELETED"

    # Credit / debit notes
    CREDIT_NOTE_CREATED = "CREDIT_NOTE_CREATED"
    CREDIT_NOTE_DELETED = "CREDIT_NOTE_DELETED"
    DEBIT_NOTE_CREATED = "DEBIT_NOTE_CREATED"
    DEBIT_NOTE_DELETED = "DEBIT_NOTE_DELETED"

    # Accounts
    ACCOUNT_CREATED = "ACCOUNT_CREATED"
    OPENING_BALANCE_CORRECTED = "OPENING_BALANCE_CORRECTED"
    PAYMENT_RECORDED = "PAYMENT_RECORDED"

    # Club batches
    CLUB_BATCH_UPSERTED = "CLUB_BATCH_UPSERTED"
    CLUB_BATCH_DELETED = "CLUB_BATCH_DELETED"
    CLUB_BATCH_LOCKED = "CLUB_BATCH_LOCKED"


async def log_event(
    db: AsyncSession,
    action: str,
    actor_id: Optional[int] = None,
    actor_username: Optional[str] = None,
    target_ref: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
    ip_address: Optional[str] = None
) -> AuditLog:
    """
    Write an audit record and commit it.

    Args:
        db: Database session
        action: Action being performed (use AuditAction constants)
        actor_id: ID of user performing the action
        actor_username: Username of actor
        target_ref: Document number, club number or account code
        metadata: Additional context as JSON
        ip_address: IP address of the request

    Returns:
        Created AuditLog instance
    """
    audit_log = AuditLog(
        actor_id=actor_id,
        actor_username=actor_username,
        action=action,
        target_ref=target_ref,
        meta_data=metadata,
        ip_address=ip_address
    )

    db.add(audit_log)
    await db.commit()
    await db.refresh(audit_log)

    return audit_log


async def log_user_action(
    db: AsyncSession,
    current_user: dict,
    action: str,
    target_ref: str,
    metadata: Optional[Dict[str, Any]] = None
) -> AuditLog:
    """Shortcut for endpoints: record an action performed by the token holder."""
    return await log_event(
        db=db,
        action=action,
        actor_id=current_user.get("user_id"),
        actor_username=current_user.get("sub"),
        target_ref=target_ref,
        metadata=metadata
    )


async def get_audit_trail(
    db: AsyncSession,
    target_ref: Optional[str] = None,
    action: Optional[str] = None,
    limit: int = 100
) -> list[AuditLog]:
    """
    Retrieve audit trail with optional filtering, most recent first.
    """
    query = select(AuditLog).order_by(desc(AuditLog.timestamp), desc(AuditLog.id))

    if target_ref:
        query = query.where(AuditLog.target_ref == target_ref)

    if action:
        query = query.where(AuditLog.action == action)

    query = query.limit(limit)

    result = await db.execute(query)
    return result.scalars().all()
