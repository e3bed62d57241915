"""Payments router: guardian submission, staff/admin review, payment reads."""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from feeledger.auth.dependencies import get_current_user
from feeledger.auth.rbac import FEE_READERS, require_roles
from feeledger.auth.schemas import CurrentUser
from feeledger.core.enums import PaymentStatus, UserRole
from feeledger.core.exceptions import ServiceError
from feeledger.db.session import get_db

from .schemas import (
    PaymentAuditEntry,
    PaymentDetailResponse,
    PaymentResponse,
    PaymentStatusSummaryItem,
    PaymentSubmit,
    PaymentTransitionRequest,
)
from . import service

router = APIRouter(prefix="/api/v1/payments", tags=["payments"])


@router.post(
    "",
    response_model=PaymentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def submit_payment(
    payload: PaymentSubmit,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> PaymentResponse:
    try:
        return await service.submit_payment(db, payload, current_user)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post(
    "/{payment_id}/transition",
    response_model=PaymentResponse,
    dependencies=[Depends(require_roles(UserRole.STAFF, UserRole.ADMIN))],
)
async def transition_payment(
    payment_id: UUID,
    payload: PaymentTransitionRequest,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> PaymentResponse:
    """Move a payment to received (staff/admin), confirmed or rejected (admin)."""
    try:
        return await service.transition_payment(
            db,
            payment_id,
            payload.target_status,
            acting_user_id=current_user.id,
            acting_role=current_user.role,
            rejection_reason=payload.rejection_reason,
        )
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get(
    "",
    response_model=List[PaymentDetailResponse],
    dependencies=[Depends(require_roles(*FEE_READERS))],
)
async def list_payments(
    payment_status: Optional[PaymentStatus] = Query(None, alias="status"),
    student_id: Optional[UUID] = Query(None),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> List[PaymentDetailResponse]:
    try:
        return await service.list_payments(
            db,
            current_user,
            status_filter=payment_status,
            student_id=student_id,
        )
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get(
    "/summary",
    response_model=List[PaymentStatusSummaryItem],
    dependencies=[Depends(require_roles(*FEE_READERS))],
)
async def payment_status_summary(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> List[PaymentStatusSummaryItem]:
    try:
        return await service.payment_status_summary(db, current_user)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get(
    "/{payment_id}",
    response_model=PaymentDetailResponse,
    dependencies=[Depends(require_roles(*FEE_READERS))],
)
async def get_payment(
    payment_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> PaymentDetailResponse:
    try:
        return await service.get_payment_for_user(db, payment_id, current_user)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get(
    "/{payment_id}/history",
    response_model=List[PaymentAuditEntry],
    dependencies=[Depends(require_roles(*FEE_READERS))],
)
async def get_payment_history(
    payment_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> List[PaymentAuditEntry]:
    try:
        return await service.get_payment_history(db, payment_id, current_user)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
