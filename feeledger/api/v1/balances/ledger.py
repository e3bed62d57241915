"""
Balance ledger arithmetic over already-loaded students, fee structures and payments.

total_paid counts confirmed payments only. balance = total_fee - total_paid and is
not clamped. The rollup clamps each student's balance at zero before summing, so one
student's overpayment never offsets another student's debt.
"""

from collections import defaultdict
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, List, Sequence
from uuid import UUID

from feeledger.core.config import settings
from feeledger.core.enums import PaymentStatus
from feeledger.core.models import FeeStructure, Student, StudentPayment

from feeledger.api.v1.fee_structures.service import fee_total, match_fee_structure

from .schemas import BalanceReport, BalanceRollup, BalanceSnapshot

ZERO = Decimal("0")


def _to_decimal(val) -> Decimal:
    if val is None:
        return ZERO
    return val if isinstance(val, Decimal) else Decimal(str(val))


def confirmed_totals(payments: Iterable[StudentPayment]) -> Dict[UUID, Decimal]:
    totals: Dict[UUID, Decimal] = defaultdict(lambda: ZERO)
    for p in payments:
        if p.status == PaymentStatus.CONFIRMED.value:
            totals[p.student_id] += _to_decimal(p.amount)
    return totals


def expected_fee(student: Student, fee_structures: Sequence[FeeStructure]) -> Decimal:
    """Fee of the student's class (level, curriculum, year); zero when unassigned or unscheduled."""
    school_class = student.school_class
    if school_class is None:
        return ZERO
    entry = match_fee_structure(
        fee_structures,
        school_class.level,
        school_class.curriculum,
        school_class.academic_year,
    )
    return fee_total(entry)


def build_snapshot(student: Student, total_fee: Decimal, total_paid: Decimal) -> BalanceSnapshot:
    school_class = student.school_class
    return BalanceSnapshot(
        student_id=student.id,
        student_name=student.full_name,
        admission_number=student.admission_number,
        class_id=student.class_id,
        class_name=school_class.name if school_class is not None else None,
        total_fee=total_fee,
        total_paid=total_paid,
        balance=total_fee - total_paid,
    )


def collection_rate_percent(total_collected: Decimal, total_expected: Decimal) -> int:
    if total_expected == 0:
        return 0
    rate = Decimal(100) * total_collected / total_expected
    return int(rate.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def build_rollup(snapshots: Sequence[BalanceSnapshot]) -> BalanceRollup:
    total_expected = sum((s.total_fee for s in snapshots), ZERO)
    total_collected = sum((s.total_paid for s in snapshots), ZERO)
    total_outstanding = sum((max(ZERO, s.balance) for s in snapshots), ZERO)
    return BalanceRollup(
        student_count=len(snapshots),
        total_expected=total_expected,
        total_collected=total_collected,
        total_outstanding=total_outstanding,
        collection_rate_percent=collection_rate_percent(total_collected, total_expected),
    )


def compute_balances(
    students: Sequence[Student],
    fee_structures: Sequence[FeeStructure],
    payments: Iterable[StudentPayment],
    currency: str = settings.currency,
) -> BalanceReport:
    paid = confirmed_totals(payments)
    snapshots: List[BalanceSnapshot] = [
        build_snapshot(s, expected_fee(s, fee_structures), paid.get(s.id, ZERO))
        for s in students
    ]
    return BalanceReport(snapshots=snapshots, rollup=build_rollup(snapshots), currency=currency)
