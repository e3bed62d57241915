from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from feeledger.core.enums import PaymentMethod, PaymentStatus, UserRole
from feeledger.core.exceptions import Forbidden, InvalidTransition, NotFound, ValidationError
from feeledger.core.models import PaymentAuditLog, StudentPayment
from feeledger.api.v1.balances import service as balance_service
from feeledger.api.v1.fee_structures import service as fee_structure_service
from feeledger.api.v1.fee_structures.schemas import FeeStructureCreate, FeeStructureUpdate
from feeledger.api.v1.payments import service
from feeledger.api.v1.payments.schemas import PaymentSubmit


async def _count_payments(db: AsyncSession) -> int:
    return (await db.execute(select(func.count(StudentPayment.id)))).scalar_one()


async def _submit(db, user, student_id, amount="20000", **kwargs):
    return await service.submit_payment(
        db,
        PaymentSubmit(student_id=student_id, amount=Decimal(amount), **kwargs),
        user,
    )


@pytest.mark.asyncio
async def test_submit_starts_pending(db_session, school, guardian) -> None:
    payment = await _submit(
        db_session,
        guardian,
        school["amani"],
        reference_number="  QK7XY2 ",
        payment_method=PaymentMethod.BANK_TRANSFER,
    )
    assert payment.status == PaymentStatus.PENDING
    assert payment.amount == Decimal("20000")
    assert payment.reference_number == "QK7XY2"
    assert payment.payment_method == PaymentMethod.BANK_TRANSFER
    assert payment.payment_date is not None
    assert payment.confirmed_by is None and payment.confirmed_at is None
    assert payment.rejection_reason is None
    assert payment.submitted_by == guardian.id

    audit = (await db_session.execute(select(PaymentAuditLog))).scalars().all()
    assert [(a.action, a.to_status) for a in audit] == [("payment_submitted", "pending")]


@pytest.mark.asyncio
@pytest.mark.parametrize("amount", ["0", "-500"])
async def test_submit_non_positive_amount_creates_nothing(db_session, school, guardian, amount) -> None:
    with pytest.raises(ValidationError):
        await _submit(db_session, guardian, school["amani"], amount=amount)
    assert await _count_payments(db_session) == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("amount", ["0.001", "0.004", "12.345", "1000000000000", "1E+12"])
async def test_submit_amount_not_storable_creates_nothing(db_session, school, guardian, amount) -> None:
    """Sub-cent amounts would round to zero or drift in Numeric(12, 2); oversized ones overflow it."""
    with pytest.raises(ValidationError):
        await _submit(db_session, guardian, school["amani"], amount=amount)
    assert await _count_payments(db_session) == 0


@pytest.mark.asyncio
async def test_submit_amount_stored_to_the_cent(db_session, school, guardian) -> None:
    payment = await _submit(db_session, guardian, school["amani"], amount="9999999999.99")
    assert payment.amount == Decimal("9999999999.99")


@pytest.mark.asyncio
async def test_submit_unknown_student(db_session, school, guardian) -> None:
    with pytest.raises(ValidationError):
        await _submit(db_session, guardian, uuid4())
    assert await _count_payments(db_session) == 0


@pytest.mark.asyncio
async def test_guardian_cannot_pay_for_unlinked_student(db_session, school, guardian) -> None:
    with pytest.raises(Forbidden):
        await _submit(db_session, guardian, school["chebet"])
    assert await _count_payments(db_session) == 0


@pytest.mark.asyncio
async def test_staff_records_office_payment(db_session, school, staff) -> None:
    payment = await _submit(db_session, staff, school["chebet"], payment_method=PaymentMethod.CASH)
    assert payment.status == PaymentStatus.PENDING


@pytest.mark.asyncio
async def test_received_then_confirmed(db_session, school, guardian, staff, admin) -> None:
    payment = await _submit(db_session, guardian, school["amani"])

    received = await service.transition_payment(
        db_session, payment.id, PaymentStatus.RECEIVED, staff.id, UserRole.STAFF
    )
    assert received.status == PaymentStatus.RECEIVED
    assert received.confirmed_by is None

    confirmed = await service.transition_payment(
        db_session, payment.id, PaymentStatus.CONFIRMED, admin.id, UserRole.ADMIN
    )
    assert confirmed.status == PaymentStatus.CONFIRMED
    assert confirmed.confirmed_by == admin.id
    assert confirmed.confirmed_at is not None
    assert confirmed.rejection_reason is None

    history = await service.get_payment_history(db_session, payment.id, admin)
    assert [(h.from_status, h.to_status) for h in history] == [
        (None, "pending"),
        ("pending", "received"),
        ("received", "confirmed"),
    ]


@pytest.mark.asyncio
async def test_staff_cannot_confirm_and_record_is_untouched(db_session, school, guardian, staff) -> None:
    payment = await _submit(db_session, guardian, school["amani"])
    with pytest.raises(Forbidden):
        await service.transition_payment(
            db_session, payment.id, PaymentStatus.CONFIRMED, staff.id, UserRole.STAFF
        )
    stored = await service.get_payment(db_session, payment.id)
    assert stored.status == PaymentStatus.PENDING.value
    assert stored.confirmed_by is None


@pytest.mark.asyncio
@pytest.mark.parametrize("reason", [None, "", "   "])
async def test_reject_requires_reason(db_session, school, guardian, admin, reason) -> None:
    payment = await _submit(db_session, guardian, school["amani"])
    with pytest.raises(ValidationError):
        await service.transition_payment(
            db_session, payment.id, PaymentStatus.REJECTED, admin.id, UserRole.ADMIN, rejection_reason=reason
        )
    stored = await service.get_payment(db_session, payment.id)
    assert stored.status == PaymentStatus.PENDING.value
    assert stored.rejection_reason is None


@pytest.mark.asyncio
async def test_reject_stamps_reviewer(db_session, school, guardian, admin) -> None:
    payment = await _submit(db_session, guardian, school["amani"])
    rejected = await service.transition_payment(
        db_session, payment.id, PaymentStatus.REJECTED, admin.id, UserRole.ADMIN, rejection_reason="duplicate"
    )
    assert rejected.status == PaymentStatus.REJECTED
    assert rejected.rejection_reason == "duplicate"
    assert rejected.confirmed_by == admin.id
    assert rejected.confirmed_at is not None


@pytest.mark.asyncio
@pytest.mark.parametrize("final", [PaymentStatus.CONFIRMED, PaymentStatus.REJECTED])
async def test_terminal_payments_never_revert(db_session, school, guardian, admin, final) -> None:
    payment = await _submit(db_session, guardian, school["amani"])
    await service.transition_payment(
        db_session, payment.id, final, admin.id, UserRole.ADMIN, rejection_reason="bad proof"
    )
    for target in PaymentStatus:
        with pytest.raises(InvalidTransition):
            await service.transition_payment(
                db_session, payment.id, target, admin.id, UserRole.ADMIN, rejection_reason="again"
            )
    stored = await service.get_payment(db_session, payment.id)
    assert stored.status == final.value


@pytest.mark.asyncio
async def test_transition_unknown_payment(db_session, school, admin) -> None:
    with pytest.raises(NotFound):
        await service.transition_payment(
            db_session, uuid4(), PaymentStatus.CONFIRMED, admin.id, UserRole.ADMIN
        )


@pytest.mark.asyncio
async def test_concurrent_review_loses_instead_of_overwriting(db_session, school, guardian, admin, monkeypatch) -> None:
    payment = await _submit(db_session, guardian, school["amani"])
    # A second reviewer read the payment while it was still pending...
    stale = StudentPayment(id=payment.id, student_id=payment.student_id, status=PaymentStatus.PENDING.value)
    # ...but the first reviewer confirmed it in the meantime.
    await service.transition_payment(
        db_session, payment.id, PaymentStatus.CONFIRMED, admin.id, UserRole.ADMIN
    )

    async def _stale_read(db, payment_id):
        return stale

    monkeypatch.setattr(service, "get_payment", _stale_read)
    with pytest.raises(InvalidTransition):
        await service.transition_payment(
            db_session, payment.id, PaymentStatus.REJECTED, uuid4(), UserRole.ADMIN, rejection_reason="duplicate"
        )
    monkeypatch.undo()

    stored = await service.get_payment(db_session, payment.id)
    assert stored.status == PaymentStatus.CONFIRMED.value
    assert stored.rejection_reason is None


@pytest.mark.asyncio
async def test_confirmed_and_rejected_scenario(db_session, school, guardian, admin) -> None:
    first = await _submit(db_session, guardian, school["amani"], amount="20000")
    second = await _submit(db_session, guardian, school["amani"], amount="20000")
    await service.transition_payment(db_session, first.id, PaymentStatus.CONFIRMED, admin.id, UserRole.ADMIN)
    await service.transition_payment(
        db_session, second.id, PaymentStatus.REJECTED, admin.id, UserRole.ADMIN, rejection_reason="duplicate"
    )

    snapshot = await balance_service.get_student_balance(db_session, admin, school["amani"])
    assert snapshot.total_fee == Decimal("50000")
    assert snapshot.total_paid == Decimal("20000")
    assert snapshot.balance == Decimal("30000")


@pytest.mark.asyncio
async def test_received_payment_has_no_financial_effect(db_session, school, guardian, staff, admin) -> None:
    payment = await _submit(db_session, guardian, school["amani"])
    await service.transition_payment(db_session, payment.id, PaymentStatus.RECEIVED, staff.id, UserRole.STAFF)
    snapshot = await balance_service.get_student_balance(db_session, admin, school["amani"])
    assert snapshot.total_paid == Decimal("0")
    assert snapshot.balance == Decimal("50000")


@pytest.mark.asyncio
async def test_guardian_reads_only_own_children(db_session, school, guardian, staff) -> None:
    mine = await _submit(db_session, guardian, school["amani"])
    other = await _submit(db_session, staff, school["chebet"])

    listed = await service.list_payments(db_session, guardian)
    assert [p.id for p in listed] == [mine.id]
    assert listed[0].student_name == "Amani Otieno"
    assert listed[0].allowed_transitions == []

    with pytest.raises(NotFound):
        await service.get_payment_for_user(db_session, other.id, guardian)

    all_payments = await service.list_payments(db_session, staff)
    assert {p.id for p in all_payments} == {mine.id, other.id}


@pytest.mark.asyncio
async def test_status_summary(db_session, school, guardian, admin) -> None:
    first = await _submit(db_session, guardian, school["amani"], amount="20000")
    await _submit(db_session, guardian, school["amani"], amount="5000")
    await service.transition_payment(db_session, first.id, PaymentStatus.CONFIRMED, admin.id, UserRole.ADMIN)

    summary = {item.status: item for item in await service.payment_status_summary(db_session, admin)}
    assert summary[PaymentStatus.PENDING].count == 1
    assert summary[PaymentStatus.PENDING].total_amount == Decimal("5000")
    assert summary[PaymentStatus.CONFIRMED].count == 1
    assert summary[PaymentStatus.RECEIVED].count == 0
    assert summary[PaymentStatus.REJECTED].total_amount == Decimal("0")


@pytest.mark.asyncio
@pytest.mark.parametrize("tuition", ["1000000000000", "100.005", "-1"])
async def test_fee_structure_amount_not_storable_creates_nothing(db_session, tuition) -> None:
    # model_construct skips the schema constraints, as a direct service caller would.
    payload = FeeStructureCreate.model_construct(
        level="Grade 6",
        curriculum="CBC",
        academic_year="2025/2026",
        tuition_fee=Decimal(tuition),
        activity_fee=Decimal("0"),
        transport_fee=Decimal("0"),
        lunch_fee=Decimal("0"),
    )
    with pytest.raises(ValidationError):
        await fee_structure_service.create_fee_structure(db_session, payload)
    assert await fee_structure_service.list_fee_structures(db_session) == []


@pytest.mark.asyncio
async def test_fee_structure_update_rejects_oversized_amount(db_session, school) -> None:
    entry = await fee_structure_service.find_fee_structure(db_session, "Grade 4", "CBC", "2025/2026")
    payload = FeeStructureUpdate.model_construct(tuition_fee=Decimal("1E+12"))
    with pytest.raises(ValidationError):
        await fee_structure_service.update_fee_structure(db_session, entry.id, payload)
    await db_session.refresh(entry)
    assert entry.total_fee == Decimal("50000")


@pytest.mark.asyncio
async def test_reports_carry_configured_currency(db_session, school, admin) -> None:
    report = await balance_service.compute_balances(db_session, admin)
    assert report.currency == "KES"
    lookup = await fee_structure_service.lookup_fee(db_session, "Grade 4", "CBC", "2025/2026")
    assert lookup.currency == "KES"
