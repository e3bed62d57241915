from enum import Enum


class PaymentStatus(str, Enum):
    PENDING = "pending"
    RECEIVED = "received"
    CONFIRMED = "confirmed"
    REJECTED = "rejected"


class PaymentMethod(str, Enum):
    MOBILE_MONEY = "mpesa"
    BANK_TRANSFER = "bank"
    CASH = "cash"


class UserRole(str, Enum):
    ADMIN = "admin"
    STAFF = "staff"
    PARENT = "parent"  # guardian
    STUDENT = "student"


class PaymentAuditAction(str, Enum):
    SUBMITTED = "payment_submitted"
    RECEIVED = "payment_received"
    CONFIRMED = "payment_confirmed"
    REJECTED = "payment_rejected"
