from feedesk.core.models.tenant import Tenant
from feedesk.core.models.academic_term import AcademicTerm
from feedesk.core.models.school_class import SchoolClass
from feedesk.core.models.student import Student
from feedesk.core.models.fee_structure import FeeStructure
from feedesk.core.models.student_fee import StudentFee
from feedesk.core.models.fee_payment import FeePayment
from feedesk.core.models.receipt_setting import ReceiptSetting
from feedesk.core.models.fee_audit_log import FeeAuditLog

__all__ = [
    "AcademicTerm",
    "FeeAuditLog",
    "FeePayment",
    "FeeStructure",
    "ReceiptSetting",
    "SchoolClass",
    "Student",
    "StudentFee",
    "Tenant",
]
