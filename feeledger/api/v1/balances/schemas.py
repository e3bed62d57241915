"""Balance ledger schemas. Derived on request, never persisted."""

from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel


class BalanceSnapshot(BaseModel):
    student_id: UUID
    student_name: Optional[str] = None
    admission_number: Optional[str] = None
    class_id: Optional[UUID] = None
    class_name: Optional[str] = None
    total_fee: Decimal
    total_paid: Decimal
    balance: Decimal  # negative means overpaid


class BalanceRollup(BaseModel):
    student_count: int
    total_expected: Decimal
    total_collected: Decimal
    total_outstanding: Decimal
    collection_rate_percent: int


class BalanceReport(BaseModel):
    snapshots: List[BalanceSnapshot]
    rollup: BalanceRollup
    currency: str
