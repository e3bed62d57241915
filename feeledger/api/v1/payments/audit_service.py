"""
Audit trail for payment submissions and status changes. Call on every state change.
"""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from feeledger.core.models import PaymentAuditLog
from feeledger.db.session import utc_now


async def log_payment_audit(
    db: AsyncSession,
    payment_id: UUID,
    action: str,
    *,
    from_status: Optional[str] = None,
    to_status: Optional[str] = None,
    performed_by: Optional[UUID] = None,
    performed_by_role: Optional[str] = None,
    remarks: Optional[str] = None,
) -> None:
    """Append one audit log entry. Caller must commit."""
    entry = PaymentAuditLog(
        payment_id=payment_id,
        action=action,
        from_status=from_status,
        to_status=to_status,
        performed_by=performed_by,
        performed_by_role=performed_by_role,
        remarks=remarks,
        created_at=utc_now(),
    )
    db.add(entry)


async def list_payment_audit(db: AsyncSession, payment_id: UUID) -> List[PaymentAuditLog]:
    result = await db.execute(
        select(PaymentAuditLog)
        .where(PaymentAuditLog.payment_id == payment_id)
        .order_by(PaymentAuditLog.created_at, PaymentAuditLog.id)
    )
    return list(result.scalars().all())
