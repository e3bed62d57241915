"""School class: read-only collaborator record; fixes the fee lookup key of its students."""

import uuid

from sqlalchemy import Column, DateTime, String, Uuid

from feeledger.db.session import Base, utc_now


class SchoolClass(Base):
    __tablename__ = "classes"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(100), nullable=False)
    level = Column(String(50), nullable=False)
    curriculum = Column(String(50), nullable=False)
    academic_year = Column(String(20), nullable=False)
    section = Column(String(20), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
