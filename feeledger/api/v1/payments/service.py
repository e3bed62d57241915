"""
Student payments: submission, guarded status transitions, reads.
Only status, confirmed_by, confirmed_at and rejection_reason change after creation,
and only through transition_payment.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from feeledger.auth.schemas import CurrentUser
from feeledger.core.enums import PaymentAuditAction, PaymentStatus, UserRole
from feeledger.core.exceptions import (
    DependencyFailure,
    Forbidden,
    InvalidTransition,
    NotFound,
    ServiceError,
    ValidationError,
)
from feeledger.core.models import StudentPayment
from feeledger.core.money import to_money
from feeledger.db.session import utc_now

from feeledger.api.v1.students import service as student_service

from . import audit_service
from .schemas import (
    PaymentAuditEntry,
    PaymentDetailResponse,
    PaymentResponse,
    PaymentStatusSummaryItem,
    PaymentSubmit,
)
from .transitions import REVIEW_STATUSES, allowed_targets, check_transition

logger = logging.getLogger(__name__)

SUBMITTER_ROLES = (UserRole.PARENT, UserRole.STAFF, UserRole.ADMIN)

_AUDIT_ACTIONS = {
    PaymentStatus.RECEIVED: PaymentAuditAction.RECEIVED,
    PaymentStatus.CONFIRMED: PaymentAuditAction.CONFIRMED,
    PaymentStatus.REJECTED: PaymentAuditAction.REJECTED,
}


def _clean(val: Optional[str]) -> Optional[str]:
    return (val or "").strip() or None


def _to_decimal(val) -> Decimal:
    if val is None:
        return Decimal("0")
    return val if isinstance(val, Decimal) else Decimal(str(val))


def _to_detail(payment: StudentPayment, current_user: CurrentUser) -> PaymentDetailResponse:
    detail = PaymentDetailResponse.model_validate(payment)
    student = payment.student
    if student is not None:
        detail.student_name = student.full_name
        detail.admission_number = student.admission_number
    detail.allowed_transitions = allowed_targets(PaymentStatus(payment.status), current_user.role)
    return detail


async def _visible_student_ids(db: AsyncSession, current_user: CurrentUser) -> Optional[List[UUID]]:
    """None means unrestricted; guardians only see their linked students."""
    if current_user.is_guardian:
        return await student_service.list_guardian_student_ids(db, current_user.email)
    return None


async def get_payment(db: AsyncSession, payment_id: UUID) -> Optional[StudentPayment]:
    try:
        return (
            await db.execute(
                select(StudentPayment)
                .options(selectinload(StudentPayment.student))
                .where(StudentPayment.id == payment_id)
                .execution_options(populate_existing=True)
            )
        ).scalar_one_or_none()
    except DBAPIError as e:
        logger.error("Payment lookup failed for %s: %s", payment_id, e)
        raise DependencyFailure()


# --- Submission ---
async def submit_payment(
    db: AsyncSession,
    payload: PaymentSubmit,
    current_user: CurrentUser,
) -> PaymentResponse:
    """Create a payment in PENDING. Guardians may only pay for their linked students."""
    if current_user.role not in SUBMITTER_ROLES:
        raise Forbidden("Only guardians, staff or admins can submit payments")
    amount = to_money(payload.amount, "Payment amount")
    if amount <= 0:
        raise ValidationError("Payment amount must be greater than zero")
    student = await student_service.get_student(db, payload.student_id)
    if not student:
        raise ValidationError("Invalid student")
    if current_user.is_guardian and not student_service.is_guardian_of(student, current_user.email):
        logger.warning(
            "Guardian %s tried to submit a payment for unlinked student %s",
            current_user.id, student.id,
        )
        raise Forbidden("You can only submit payments for your own children")

    payment = StudentPayment(
        student_id=student.id,
        amount=amount,
        payment_date=payload.payment_date or date.today(),
        payment_method=payload.payment_method.value,
        reference_number=_clean(payload.reference_number),
        proof_ref=_clean(payload.proof_ref),
        notes=_clean(payload.notes),
        status=PaymentStatus.PENDING.value,
        submitted_by=current_user.id,
    )
    try:
        db.add(payment)
        await db.flush()
        await audit_service.log_payment_audit(
            db,
            payment.id,
            PaymentAuditAction.SUBMITTED.value,
            to_status=PaymentStatus.PENDING.value,
            performed_by=current_user.id,
            performed_by_role=current_user.role.value,
        )
        await db.commit()
    except DBAPIError as e:
        await db.rollback()
        logger.error("Payment submission failed for student %s: %s", payload.student_id, e)
        raise DependencyFailure()
    await db.refresh(payment)
    logger.info(
        "Payment %s submitted for student %s amount=%s by %s (%s)",
        payment.id, payment.student_id, payment.amount, current_user.id, current_user.role.value,
    )
    return PaymentResponse.model_validate(payment)


# --- Transitions ---
async def transition_payment(
    db: AsyncSession,
    payment_id: UUID,
    target_status: PaymentStatus,
    acting_user_id: UUID,
    acting_role: UserRole,
    rejection_reason: Optional[str] = None,
) -> PaymentResponse:
    """
    Apply one status change through the guard table.
    The write is a compare-and-set on the status that was read, so a concurrent
    change by another reviewer fails with InvalidTransition instead of being overwritten.
    """
    payment = await get_payment(db, payment_id)
    if not payment:
        raise NotFound("Payment not found")
    current = PaymentStatus(payment.status)
    try:
        check_transition(current, target_status, acting_role)
    except ServiceError as e:
        logger.warning(
            "Refused payment %s transition %s -> %s by %s (%s): %s",
            payment_id, current.value, target_status.value, acting_user_id, acting_role.value, e.message,
        )
        raise

    reason = _clean(rejection_reason)
    if target_status == PaymentStatus.REJECTED and not reason:
        raise ValidationError("A rejection reason is required")

    now = utc_now()
    values = {"status": target_status.value, "updated_at": now}
    if target_status in REVIEW_STATUSES:
        values["confirmed_by"] = acting_user_id
        values["confirmed_at"] = now
    if target_status == PaymentStatus.REJECTED:
        values["rejection_reason"] = reason

    try:
        result = await db.execute(
            update(StudentPayment)
            .where(
                StudentPayment.id == payment_id,
                StudentPayment.status == current.value,
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            await db.rollback()
            logger.warning(
                "Payment %s changed concurrently; %s -> %s by %s not applied",
                payment_id, current.value, target_status.value, acting_user_id,
            )
            raise InvalidTransition("Payment status changed concurrently; reload and retry")
        await audit_service.log_payment_audit(
            db,
            payment_id,
            _AUDIT_ACTIONS[target_status].value,
            from_status=current.value,
            to_status=target_status.value,
            performed_by=acting_user_id,
            performed_by_role=acting_role.value,
            remarks=reason,
        )
        await db.commit()
    except DBAPIError as e:
        await db.rollback()
        logger.error("Payment %s transition failed: %s", payment_id, e)
        raise DependencyFailure()
    await db.refresh(payment)
    logger.info(
        "Payment %s moved %s -> %s by %s (%s)",
        payment_id, current.value, target_status.value, acting_user_id, acting_role.value,
    )
    return PaymentResponse.model_validate(payment)


# --- Reads ---
async def get_payment_for_user(
    db: AsyncSession,
    payment_id: UUID,
    current_user: CurrentUser,
) -> PaymentDetailResponse:
    payment = await get_payment(db, payment_id)
    visible = await _visible_student_ids(db, current_user)
    if not payment or (visible is not None and payment.student_id not in visible):
        raise NotFound("Payment not found")
    return _to_detail(payment, current_user)


async def list_payments(
    db: AsyncSession,
    current_user: CurrentUser,
    status_filter: Optional[PaymentStatus] = None,
    student_id: Optional[UUID] = None,
) -> List[PaymentDetailResponse]:
    """Newest first."""
    stmt = select(StudentPayment).options(selectinload(StudentPayment.student))
    visible = await _visible_student_ids(db, current_user)
    if visible is not None:
        if not visible:
            return []
        stmt = stmt.where(StudentPayment.student_id.in_(visible))
    if status_filter is not None:
        stmt = stmt.where(StudentPayment.status == status_filter.value)
    if student_id is not None:
        stmt = stmt.where(StudentPayment.student_id == student_id)
    stmt = stmt.order_by(StudentPayment.created_at.desc()).execution_options(populate_existing=True)
    try:
        result = await db.execute(stmt)
    except DBAPIError as e:
        logger.error("Payment listing failed: %s", e)
        raise DependencyFailure()
    return [_to_detail(p, current_user) for p in result.scalars().all()]


async def payment_status_summary(
    db: AsyncSession,
    current_user: CurrentUser,
) -> List[PaymentStatusSummaryItem]:
    """Count and amount per status, every status present."""
    stmt = select(
        StudentPayment.status,
        func.count(StudentPayment.id),
        func.coalesce(func.sum(StudentPayment.amount), 0),
    ).group_by(StudentPayment.status)
    visible = await _visible_student_ids(db, current_user)
    if visible is not None:
        if not visible:
            return [PaymentStatusSummaryItem(status=s, count=0, total_amount=Decimal("0")) for s in PaymentStatus]
        stmt = stmt.where(StudentPayment.student_id.in_(visible))
    try:
        rows = (await db.execute(stmt)).all()
    except DBAPIError as e:
        logger.error("Payment summary failed: %s", e)
        raise DependencyFailure()
    by_status = {row[0]: (int(row[1]), _to_decimal(row[2])) for row in rows}
    items = []
    for s in PaymentStatus:
        count, total = by_status.get(s.value, (0, Decimal("0")))
        items.append(PaymentStatusSummaryItem(status=s, count=count, total_amount=total))
    return items


async def get_payment_history(
    db: AsyncSession,
    payment_id: UUID,
    current_user: CurrentUser,
) -> List[PaymentAuditEntry]:
    await get_payment_for_user(db, payment_id, current_user)
    try:
        entries = await audit_service.list_payment_audit(db, payment_id)
    except DBAPIError as e:
        logger.error("Payment history failed for %s: %s", payment_id, e)
        raise DependencyFailure()
    return [PaymentAuditEntry.model_validate(e) for e in entries]
