"""Balance ledger: loads the current store state and recomputes balances from scratch."""

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession

from feeledger.auth.schemas import CurrentUser
from feeledger.core.enums import PaymentStatus
from feeledger.core.exceptions import DependencyFailure, NotFound
from feeledger.core.models import StudentPayment

from feeledger.api.v1.fee_structures import service as fee_structure_service
from feeledger.api.v1.students import service as student_service

from . import ledger
from .schemas import BalanceReport, BalanceSnapshot

logger = logging.getLogger(__name__)


async def compute_balances(
    db: AsyncSession,
    current_user: CurrentUser,
    student_id: Optional[UUID] = None,
    class_id: Optional[UUID] = None,
) -> BalanceReport:
    """Per-student snapshots plus rollup. Guardians only get their linked students."""
    guardian_email = None
    if current_user.is_guardian:
        if not current_user.email:
            return ledger.compute_balances([], [], [])
        guardian_email = current_user.email
    students = await student_service.list_students(
        db,
        student_id=student_id,
        class_id=class_id,
        guardian_email=guardian_email,
    )
    if not students:
        return ledger.compute_balances([], [], [])

    fee_structures = await fee_structure_service.list_fee_structures(db)
    stmt = select(StudentPayment).where(
        StudentPayment.status == PaymentStatus.CONFIRMED.value,
        StudentPayment.student_id.in_([s.id for s in students]),
    )
    try:
        payments = (await db.execute(stmt)).scalars().all()
    except DBAPIError as e:
        logger.error("Confirmed payment load failed: %s", e)
        raise DependencyFailure()

    report = ledger.compute_balances(students, fee_structures, payments)
    logger.debug(
        "Computed balances for %d students: expected=%s collected=%s",
        report.rollup.student_count,
        report.rollup.total_expected,
        report.rollup.total_collected,
    )
    return report


async def get_student_balance(
    db: AsyncSession,
    current_user: CurrentUser,
    student_id: UUID,
) -> BalanceSnapshot:
    report = await compute_balances(db, current_user, student_id=student_id)
    if not report.snapshots:
        raise NotFound("Student not found")
    return report.snapshots[0]
