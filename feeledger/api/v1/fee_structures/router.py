"""Fee structures router: schedule maintenance (admin) and fee lookup."""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from feeledger.auth.rbac import FEE_READERS, require_roles
from feeledger.core.enums import UserRole
from feeledger.core.exceptions import ServiceError
from feeledger.db.session import get_db

from .schemas import (
    FeeLookupResponse,
    FeeStructureCreate,
    FeeStructureResponse,
    FeeStructureUpdate,
)
from . import service

router = APIRouter(prefix="/api/v1/fee-structures", tags=["fee-structures"])


@router.post(
    "",
    response_model=FeeStructureResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_roles(UserRole.ADMIN))],
)
async def create_fee_structure(
    payload: FeeStructureCreate,
    db: AsyncSession = Depends(get_db),
) -> FeeStructureResponse:
    try:
        return await service.create_fee_structure(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get(
    "",
    response_model=List[FeeStructureResponse],
    dependencies=[Depends(require_roles(*FEE_READERS))],
)
async def list_fee_structures(
    db: AsyncSession = Depends(get_db),
) -> List[FeeStructureResponse]:
    try:
        rows = await service.list_fee_structures(db)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return [FeeStructureResponse.model_validate(fs) for fs in rows]


@router.get(
    "/lookup",
    response_model=FeeLookupResponse,
    dependencies=[Depends(require_roles(*FEE_READERS))],
)
async def lookup_fee(
    level: str = Query(...),
    curriculum: str = Query(...),
    academic_year: str = Query(...),
    db: AsyncSession = Depends(get_db),
) -> FeeLookupResponse:
    try:
        return await service.lookup_fee(db, level, curriculum, academic_year)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.patch(
    "/{fee_structure_id}",
    response_model=FeeStructureResponse,
    dependencies=[Depends(require_roles(UserRole.ADMIN))],
)
async def update_fee_structure(
    fee_structure_id: UUID,
    payload: FeeStructureUpdate,
    db: AsyncSession = Depends(get_db),
) -> FeeStructureResponse:
    try:
        return await service.update_fee_structure(db, fee_structure_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete(
    "/{fee_structure_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_roles(UserRole.ADMIN))],
)
async def delete_fee_structure(
    fee_structure_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> None:
    try:
        await service.delete_fee_structure(db, fee_structure_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
