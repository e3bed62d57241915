"""Balances router: per-student fee position and cohort rollup."""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from feeledger.auth.dependencies import get_current_user
from feeledger.auth.rbac import FEE_READERS, require_roles
from feeledger.auth.schemas import CurrentUser
from feeledger.core.exceptions import ServiceError
from feeledger.db.session import get_db

from .schemas import BalanceReport, BalanceSnapshot
from . import service

router = APIRouter(prefix="/api/v1/balances", tags=["balances"])


@router.get(
    "",
    response_model=BalanceReport,
    dependencies=[Depends(require_roles(*FEE_READERS))],
)
async def compute_balances(
    student_id: Optional[UUID] = Query(None),
    class_id: Optional[UUID] = Query(None),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> BalanceReport:
    try:
        return await service.compute_balances(
            db, current_user, student_id=student_id, class_id=class_id
        )
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get(
    "/{student_id}",
    response_model=BalanceSnapshot,
    dependencies=[Depends(require_roles(*FEE_READERS))],
)
async def get_student_balance(
    student_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> BalanceSnapshot:
    try:
        return await service.get_student_balance(db, current_user, student_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
