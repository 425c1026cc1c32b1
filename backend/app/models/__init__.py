from app.models.user import User
from app.models.department import Department
from app.models.approval import Approval
from app.models.request_form import RequestForm
from app.models.project import Project
from app.models.payroll import Payroll, PayrollEntry
from app.models.payment import Payment
from app.models.audit import AuditLog

__all__ = [
    "User",
    "Department",
    "Approval",
    "RequestForm",
    "Project",
    "Payroll", "PayrollEntry",
    "Payment",
    "AuditLog",
]
