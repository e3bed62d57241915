"""Payment audit log: immutable trail of payment submissions and status changes."""

import uuid

from sqlalchemy import Column, DateTime, ForeignKey, String, Text, Uuid

from feeledger.db.session import Base, utc_now


class PaymentAuditLog(Base):
    __tablename__ = "payment_audit_logs"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    payment_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("student_payments.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    action = Column(String(50), nullable=False)
    from_status = Column(String(20), nullable=True)
    to_status = Column(String(20), nullable=True)
    performed_by = Column(Uuid(as_uuid=True), nullable=True)
    performed_by_role = Column(String(20), nullable=True)
    remarks = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
