"""Payment schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from feeledger.core.enums import PaymentMethod, PaymentStatus


class PaymentSubmit(BaseModel):
    # Checked by the service: positive, at most two decimal places, fits Numeric(12, 2).
    student_id: UUID
    amount: Decimal
    payment_method: PaymentMethod = PaymentMethod.MOBILE_MONEY
    payment_date: Optional[date] = None
    reference_number: Optional[str] = Field(None, max_length=100)
    proof_ref: Optional[str] = Field(None, max_length=500, description="Reference returned by the proof upload store")
    notes: Optional[str] = None


class PaymentTransitionRequest(BaseModel):
    target_status: PaymentStatus
    rejection_reason: Optional[str] = None


class PaymentResponse(BaseModel):
    id: UUID
    student_id: UUID
    amount: Decimal
    payment_date: date
    payment_method: PaymentMethod
    reference_number: Optional[str] = None
    proof_ref: Optional[str] = None
    status: PaymentStatus
    confirmed_by: Optional[UUID] = None
    confirmed_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    notes: Optional[str] = None
    submitted_by: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class PaymentDetailResponse(PaymentResponse):
    student_name: Optional[str] = None
    admission_number: Optional[str] = None
    allowed_transitions: List[PaymentStatus] = Field(
        default_factory=list,
        description="Statuses the calling user may move this payment to",
    )


class PaymentStatusSummaryItem(BaseModel):
    status: PaymentStatus
    count: int
    total_amount: Decimal


class PaymentAuditEntry(BaseModel):
    id: UUID
    payment_id: UUID
    action: str
    from_status: Optional[str] = None
    to_status: Optional[str] = None
    performed_by: Optional[UUID] = None
    performed_by_role: Optional[str] = None
    remarks: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True
