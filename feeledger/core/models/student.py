"""Student: read-only collaborator record. Guardian link is parent_email."""

import uuid

from sqlalchemy import Column, DateTime, ForeignKey, String, Uuid
from sqlalchemy.orm import relationship

from feeledger.db.session import Base, utc_now


class Student(Base):
    __tablename__ = "students"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    admission_number = Column(String(50), nullable=False, unique=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    class_id = Column(Uuid(as_uuid=True), ForeignKey("classes.id", ondelete="SET NULL"), nullable=True, index=True)
    curriculum = Column(String(50), nullable=False)
    parent_name = Column(String(255), nullable=True)
    parent_email = Column(String(255), nullable=True, index=True)
    status = Column(String(20), nullable=False, default="active")
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)

    school_class = relationship("SchoolClass", foreign_keys=[class_id])

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
