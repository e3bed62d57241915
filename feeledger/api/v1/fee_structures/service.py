"""Fee schedule: maintenance of fee structures and the (level, curriculum, year) lookup."""

import logging
from decimal import Decimal
from typing import Iterable, List, Optional
from uuid import UUID

from fastapi import status
from sqlalchemy import select
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from feeledger.core.config import settings
from feeledger.core.exceptions import DependencyFailure, NotFound, ValidationError
from feeledger.core.models import FeeStructure
from feeledger.core.money import to_money

from .schemas import (
    FeeLookupResponse,
    FeeStructureCreate,
    FeeStructureResponse,
    FeeStructureUpdate,
)

logger = logging.getLogger(__name__)

FEE_COMPONENTS = ("tuition_fee", "activity_fee", "transport_fee", "lunch_fee")


def _to_decimal(val) -> Decimal:
    if val is None:
        return Decimal("0")
    return val if isinstance(val, Decimal) else Decimal(str(val))


def _fee_amount(val) -> Decimal:
    amount = to_money(val, "Fee amount")
    if amount < 0:
        raise ValidationError("Fee amount cannot be negative")
    return amount


def _recompute_total(fs: FeeStructure) -> None:
    fs.total_fee = sum((_to_decimal(getattr(fs, c)) for c in FEE_COMPONENTS), Decimal("0"))


def match_fee_structure(
    entries: Iterable[FeeStructure],
    level: Optional[str],
    curriculum: Optional[str],
    academic_year: Optional[str],
) -> Optional[FeeStructure]:
    """Exact match on all three keys. First match in the given order wins."""
    if not level or not curriculum or not academic_year:
        return None
    for entry in entries:
        if (
            entry.level == level
            and entry.curriculum == curriculum
            and entry.academic_year == academic_year
        ):
            return entry
    return None


def fee_total(entry: Optional[FeeStructure]) -> Decimal:
    """Total fee of an entry; a missing schedule counts as zero."""
    if entry is None:
        return Decimal("0")
    return _to_decimal(entry.total_fee)


async def list_fee_structures(db: AsyncSession) -> List[FeeStructure]:
    # created_at/id keep the order deterministic for match_fee_structure.
    stmt = select(FeeStructure).order_by(
        FeeStructure.level,
        FeeStructure.curriculum,
        FeeStructure.academic_year,
        FeeStructure.created_at,
        FeeStructure.id,
    )
    try:
        result = await db.execute(stmt)
    except DBAPIError as e:
        logger.error("Fee schedule listing failed: %s", e)
        raise DependencyFailure("Fee schedule is unavailable")
    return list(result.scalars().all())


async def find_fee_structure(
    db: AsyncSession,
    level: str,
    curriculum: str,
    academic_year: str,
) -> Optional[FeeStructure]:
    stmt = (
        select(FeeStructure)
        .where(
            FeeStructure.level == level,
            FeeStructure.curriculum == curriculum,
            FeeStructure.academic_year == academic_year,
        )
        .order_by(FeeStructure.created_at, FeeStructure.id)
    )
    try:
        result = await db.execute(stmt)
    except DBAPIError as e:
        logger.error("Fee schedule lookup failed: %s", e)
        raise DependencyFailure("Fee schedule is unavailable")
    return result.scalars().first()


async def lookup_fee(
    db: AsyncSession,
    level: str,
    curriculum: str,
    academic_year: str,
) -> FeeLookupResponse:
    entry = await find_fee_structure(db, level, curriculum, academic_year)
    return FeeLookupResponse(
        level=level,
        curriculum=curriculum,
        academic_year=academic_year,
        fee_structure_id=entry.id if entry else None,
        total_fee=fee_total(entry),
        has_schedule=entry is not None,
        currency=settings.currency,
    )


async def get_fee_structure(db: AsyncSession, fee_structure_id: UUID) -> Optional[FeeStructure]:
    return await db.get(FeeStructure, fee_structure_id)


async def create_fee_structure(
    db: AsyncSession,
    payload: FeeStructureCreate,
) -> FeeStructureResponse:
    amounts = {c: _fee_amount(getattr(payload, c)) for c in FEE_COMPONENTS}
    fs = FeeStructure(
        level=payload.level.strip(),
        curriculum=payload.curriculum.strip(),
        academic_year=payload.academic_year.strip(),
        **amounts,
    )
    _recompute_total(fs)
    db.add(fs)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ValidationError(
            "A fee structure already exists for this level, curriculum and academic year",
            status.HTTP_409_CONFLICT,
        )
    except DBAPIError as e:
        await db.rollback()
        logger.error("Fee structure create failed: %s", e)
        raise DependencyFailure("Fee schedule is unavailable")
    await db.refresh(fs)
    logger.info(
        "Created fee structure %s (%s/%s/%s) total=%s",
        fs.id, fs.level, fs.curriculum, fs.academic_year, fs.total_fee,
    )
    return FeeStructureResponse.model_validate(fs)


async def update_fee_structure(
    db: AsyncSession,
    fee_structure_id: UUID,
    payload: FeeStructureUpdate,
) -> FeeStructureResponse:
    fs = await get_fee_structure(db, fee_structure_id)
    if not fs:
        raise NotFound("Fee structure not found")
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    for field, value in changes.items():
        setattr(fs, field, _fee_amount(value))
    _recompute_total(fs)
    try:
        await db.commit()
    except DBAPIError as e:
        await db.rollback()
        logger.error("Fee structure update failed for %s: %s", fee_structure_id, e)
        raise DependencyFailure("Fee schedule is unavailable")
    await db.refresh(fs)
    logger.info("Updated fee structure %s total=%s", fs.id, fs.total_fee)
    return FeeStructureResponse.model_validate(fs)


async def delete_fee_structure(db: AsyncSession, fee_structure_id: UUID) -> None:
    fs = await get_fee_structure(db, fee_structure_id)
    if not fs:
        raise NotFound("Fee structure not found")
    await db.delete(fs)
    try:
        await db.commit()
    except DBAPIError as e:
        await db.rollback()
        logger.error("Fee structure delete failed for %s: %s", fee_structure_id, e)
        raise DependencyFailure("Fee schedule is unavailable")
    logger.info("Deleted fee structure %s", fee_structure_id)
