"""Fee structure schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from feeledger.core.money import MONEY_DECIMAL_PLACES, MONEY_MAX_DIGITS

MONEY_CONSTRAINTS = dict(ge=0, max_digits=MONEY_MAX_DIGITS, decimal_places=MONEY_DECIMAL_PLACES)


class FeeStructureCreate(BaseModel):
    level: str = Field(..., min_length=1, max_length=50)
    curriculum: str = Field(..., min_length=1, max_length=50)
    academic_year: str = Field(..., min_length=1, max_length=20, description="e.g. 2025/2026")
    tuition_fee: Decimal = Field(..., **MONEY_CONSTRAINTS)
    activity_fee: Decimal = Field(Decimal("0"), **MONEY_CONSTRAINTS)
    transport_fee: Decimal = Field(Decimal("0"), **MONEY_CONSTRAINTS)
    lunch_fee: Decimal = Field(Decimal("0"), **MONEY_CONSTRAINTS)


class FeeStructureUpdate(BaseModel):
    tuition_fee: Optional[Decimal] = Field(None, **MONEY_CONSTRAINTS)
    activity_fee: Optional[Decimal] = Field(None, **MONEY_CONSTRAINTS)
    transport_fee: Optional[Decimal] = Field(None, **MONEY_CONSTRAINTS)
    lunch_fee: Optional[Decimal] = Field(None, **MONEY_CONSTRAINTS)


class FeeStructureResponse(BaseModel):
    id: UUID
    level: str
    curriculum: str
    academic_year: str
    tuition_fee: Decimal
    activity_fee: Decimal
    transport_fee: Decimal
    lunch_fee: Decimal
    total_fee: Decimal
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class FeeLookupResponse(BaseModel):
    """Resolved fee for a lookup key. No schedule means a total of zero, not an error."""

    level: str
    curriculum: str
    academic_year: str
    fee_structure_id: Optional[UUID] = None
    total_fee: Decimal
    has_schedule: bool
    currency: str
