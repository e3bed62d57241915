"""
Student payment: submitted by a guardian (or recorded by staff), starts PENDING.
Only status, confirmed_by, confirmed_at and rejection_reason change after creation.
"""

import uuid
from datetime import date

from sqlalchemy import Column, Date, DateTime, ForeignKey, Numeric, String, Text, Uuid
from sqlalchemy.orm import relationship

from feeledger.core.enums import PaymentMethod, PaymentStatus
from feeledger.db.session import Base, utc_now


class StudentPayment(Base):
    __tablename__ = "student_payments"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    student_id = Column(Uuid(as_uuid=True), ForeignKey("students.id", ondelete="RESTRICT"), nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    payment_date = Column(Date, nullable=False, default=date.today)
    payment_method = Column(String(20), nullable=False, default=PaymentMethod.MOBILE_MONEY.value)
    reference_number = Column(String(100), nullable=True)
    proof_ref = Column(String(500), nullable=True)
    status = Column(String(20), nullable=False, default=PaymentStatus.PENDING.value, index=True)
    confirmed_by = Column(Uuid(as_uuid=True), nullable=True)
    confirmed_at = Column(DateTime(timezone=True), nullable=True)
    rejection_reason = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    submitted_by = Column(Uuid(as_uuid=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False)

    student = relationship("Student", backref="payments")
