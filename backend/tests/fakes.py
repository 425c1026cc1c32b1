"""In-memory stand-ins for the approval store and approver directory.

FakeStore holds real (transient) ORM objects so model helpers such as
Approval.snapshot and Payroll.total_net_pay behave as in production.
"""
import uuid
from decimal import Decimal

from app.models.approval import Approval
from app.models.payment import Payment
from app.models.payroll import Payroll, PayrollEntry
from app.models.project import Project
from app.models.request_form import RequestForm
from app.rules.workflow import ParentKind


# ─── Users ────────────────────────────────────────────────────────────────────

class FakeUser:
    """Minimal user stub for directory lookups and dependency overrides."""

    def __init__(self, email: str, role: str = "employee", permissions: dict | None = None,
                 is_active: bool = True, user_id: uuid.UUID | None = None):
        self.id = user_id or uuid.uuid4()
        self.email = email
        self.full_name = email.split("@")[0].replace(".", " ").title()
        self.role = role
        self.permissions = permissions or {}
        self.department_id = None
        self.is_active = is_active
        self.deleted_at = None

    def has_permission(self, permission: str) -> bool:
        return self.permissions.get(permission) is True


class FakeDirectory:
    def __init__(self):
        self.users: dict[uuid.UUID, FakeUser] = {}

    def add(self, user: FakeUser) -> FakeUser:
        self.users[user.id] = user
        return user

    def get_user(self, db, user_id):
        return self.users.get(user_id)

    def is_active(self, db, user_id) -> bool:
        user = self.users.get(user_id)
        return user is not None and user.is_active

    def has_permission(self, db, user_id, permission) -> bool:
        user = self.users.get(user_id)
        return user is not None and user.is_active and user.has_permission(permission)


# ─── Store ────────────────────────────────────────────────────────────────────

class FakeStore:
    """In-memory approval record store keyed the same way as the real one."""

    def __init__(self):
        self.parents: dict[tuple[str, uuid.UUID], object] = {}
        self.approvals: list[Approval] = []
        self.locks: list[tuple] = []

    # parents
    def add_parent(self, kind: str, parent):
        self.parents[(ParentKind(kind).value, parent.id)] = parent
        return parent

    def load_parent(self, db, kind, parent_id, lock=False):
        if lock:
            self.locks.append(("parent", ParentKind(kind).value, parent_id))
        return self.parents.get((ParentKind(kind).value, parent_id))

    def load_parents(self, db, kind, parent_ids):
        kind = ParentKind(kind).value
        return {pid: self.parents[(kind, pid)] for pid in parent_ids if (kind, pid) in self.parents}

    # approval records
    def record(self, kind: str, parent, level: str, approver: FakeUser, status: str = "pending",
               origin: str = "canonical", can_add_approvers: bool = False) -> Approval:
        approval = Approval(
            id=uuid.uuid4(),
            parent_kind=ParentKind(kind).value,
            parent_id=parent.id,
            level=level,
            origin=origin,
            approver_id=approver.id,
            added_by_id=None,
            status=status,
            action_date=None,
            comments=None,
            can_add_approvers=can_add_approvers,
            sequence=len(self.chain(kind, parent.id)) + 1,
        )
        self.approvals.append(approval)
        return approval

    def chain(self, kind, parent_id) -> list[Approval]:
        kind = ParentKind(kind).value
        return [a for a in self.approvals if a.parent_kind == kind and a.parent_id == parent_id]

    def get_approval(self, db, approval_id, lock=False):
        if lock:
            self.locks.append(("approval", approval_id))
        for approval in self.approvals:
            if approval.id == approval_id:
                return approval
        return None

    def list_approvals(self, db, kind, parent_id, level=None, lock=False):
        if lock:
            self.locks.append(("approvals", ParentKind(kind).value, parent_id))
        rows = self.chain(kind, parent_id)
        if level is not None:
            rows = [a for a in rows if a.level == level]
        return sorted(rows, key=lambda a: a.sequence)

    def save_approval(self, db, record):
        pass

    def add_approval(self, db, kind, parent_id, **fields):
        approval = Approval(
            id=uuid.uuid4(),
            parent_kind=ParentKind(kind).value,
            parent_id=parent_id,
            sequence=len(self.chain(kind, parent_id)) + 1,
            status="pending",
            action_date=None,
            comments=None,
            **fields,
        )
        self.approvals.append(approval)
        return approval

    def list_pending_for_approver(self, db, approver_id):
        return [a for a in reversed(self.approvals) if a.approver_id == approver_id and a.status == "pending"]


# ─── Parent factories ─────────────────────────────────────────────────────────

def make_request(name: str = "Forklift maintenance", status: str = "pending_dept_head") -> RequestForm:
    return RequestForm(
        id=uuid.uuid4(), name=name, amount=Decimal("2400.00"), currency="USD",
        requested_by_id=uuid.uuid4(), status=status,
    )


def make_project(status: str = "pending_director") -> Project:
    return Project(id=uuid.uuid4(), name="Warehouse automation", code="PRJ-7", budget=Decimal("185000.00"),
                   status=status)


def make_payroll(status: str = "pending_dept_head") -> Payroll:
    payroll = Payroll(id=uuid.uuid4(), period_month=3, period_year=2026, status=status)
    payroll.entries = [
        PayrollEntry(id=uuid.uuid4(), user_id=uuid.uuid4(), gross_pay=Decimal("5000"), net_pay=Decimal("4000")),
        PayrollEntry(id=uuid.uuid4(), user_id=uuid.uuid4(), gross_pay=Decimal("3000"), net_pay=Decimal("2500")),
    ]
    return payroll


def make_payment(status: str = "draft") -> Payment:
    return Payment(id=uuid.uuid4(), reference="PAY-0042", currency="USD", total_amount=Decimal("12750.00"),
                   requires_approval=True, status=status)
