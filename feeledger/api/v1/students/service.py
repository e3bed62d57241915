"""
Student directory: read-only view over students and their class assignment.
Guardians are linked to students by parent_email.
"""

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from feeledger.core.exceptions import DependencyFailure
from feeledger.core.models import Student

logger = logging.getLogger(__name__)


def is_guardian_of(student: Student, email: Optional[str]) -> bool:
    if not email or not student.parent_email:
        return False
    return student.parent_email.strip().lower() == email.strip().lower()


async def get_student(db: AsyncSession, student_id: UUID) -> Optional[Student]:
    try:
        return (
            await db.execute(
                select(Student)
                .options(selectinload(Student.school_class))
                .where(Student.id == student_id)
                .execution_options(populate_existing=True)
            )
        ).scalar_one_or_none()
    except DBAPIError as e:
        logger.error("Student directory lookup failed for %s: %s", student_id, e)
        raise DependencyFailure("Student directory is unavailable")


async def list_students(
    db: AsyncSession,
    student_id: Optional[UUID] = None,
    class_id: Optional[UUID] = None,
    guardian_email: Optional[str] = None,
) -> List[Student]:
    """Students with their class loaded, ordered by admission number."""
    stmt = select(Student).options(selectinload(Student.school_class))
    if student_id is not None:
        stmt = stmt.where(Student.id == student_id)
    if class_id is not None:
        stmt = stmt.where(Student.class_id == class_id)
    if guardian_email is not None:
        stmt = stmt.where(func.lower(Student.parent_email) == guardian_email.strip().lower())
    stmt = stmt.order_by(Student.admission_number).execution_options(populate_existing=True)
    try:
        result = await db.execute(stmt)
    except DBAPIError as e:
        logger.error("Student directory listing failed: %s", e)
        raise DependencyFailure("Student directory is unavailable")
    return list(result.scalars().all())


async def list_guardian_student_ids(db: AsyncSession, guardian_email: Optional[str]) -> List[UUID]:
    if not guardian_email:
        return []
    return [s.id for s in await list_students(db, guardian_email=guardian_email)]
