from feeledger.core.models.class_model import SchoolClass
from feeledger.core.models.student import Student
from feeledger.core.models.fee_structure import FeeStructure
from feeledger.core.models.student_payment import StudentPayment
from feeledger.core.models.payment_audit_log import PaymentAuditLog

__all__ = [
    "SchoolClass",
    "Student",
    "FeeStructure",
    "StudentPayment",
    "PaymentAuditLog",
]
