"""Fee structure: total fee per (level, curriculum, academic year)."""

import uuid

from sqlalchemy import Column, DateTime, Numeric, String, UniqueConstraint, Uuid

from feeledger.db.session import Base, utc_now


class FeeStructure(Base):
    """One fee schedule entry. total_fee is the sum of the four components."""

    __tablename__ = "fee_structures"
    __table_args__ = (
        UniqueConstraint(
            "level",
            "curriculum",
            "academic_year",
            name="uq_fee_structure_level_curriculum_year",
        ),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    level = Column(String(50), nullable=False)
    curriculum = Column(String(50), nullable=False)
    academic_year = Column(String(20), nullable=False)
    tuition_fee = Column(Numeric(12, 2), nullable=False, default=0)
    activity_fee = Column(Numeric(12, 2), nullable=False, default=0)
    transport_fee = Column(Numeric(12, 2), nullable=False, default=0)
    lunch_fee = Column(Numeric(12, 2), nullable=False, default=0)
    total_fee = Column(Numeric(12, 2), nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False)
