"""Seed script: creates users, departments and one in-flight entity of every kind.

Idempotent: checks for existing records before inserting; chains are only
opened for entities that have no approval records yet.
Run: python scripts/seed.py  (from backend/)
"""
import sys
import os
from datetime import datetime, timezone
from decimal import Decimal

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.security import hash_password as get_password_hash
from app.db.session import SyncSessionLocal, sync_engine
from app.models.department import Department
from app.models.payment import Payment
from app.models.payroll import Payroll, PayrollEntry
from app.models.project import Project
from app.models.request_form import RequestForm
from app.models.user import User
from app.services import approval_chain
from app.services import approval_store as store

NOW = datetime.now(timezone.utc)


# ─── Upsert helpers ───────────────────────────────────────────────────────────

def _upsert_user(db: Session, email: str, name: str, role: str, permissions: dict | None = None) -> User:
    user = db.execute(select(User).where(User.email == email)).scalars().first()
    if user:
        print(f"  [skip] User {email}")
        return user
    user = User(
        email=email, full_name=name,
        password_hash=get_password_hash("changeme123"),
        role=role, permissions=permissions or {}, is_active=True,
    )
    db.add(user)
    db.flush()
    print(f"  [new]  User {email} ({role})")
    return user


def _upsert_department(db: Session, code: str, name: str, head: User) -> Department:
    dept = db.execute(select(Department).where(Department.code == code)).scalars().first()
    if dept:
        print(f"  [skip] Department {code}")
        return dept
    dept = Department(code=code, name=name, head_id=head.id)
    db.add(dept)
    db.flush()
    head.department_id = dept.id
    print(f"  [new]  Department {code} (head {head.email})")
    return dept


def _open_once(db: Session, kind: str, parent, opener, *args) -> None:
    if store.list_approvals(db, kind, parent.id):
        print(f"  [skip] {kind} chain for {parent.id}")
        return
    created = opener(db, parent.id, *args)
    print(f"  [new]  {kind} chain for {parent.id} ({len(created)} approvers)")


def seed() -> None:
    with SyncSessionLocal() as db:
        print("── Users ──")
        admin = _upsert_user(
            db, "admin@example.com", "Admin User", "administrator",
            {"manage_approvers": True, "approve_approvals": True},
        )
        ops_head = _upsert_user(db, "ops.head@example.com", "Olivia Ops", "dept_head", {"add_approvers": True})
        eng_head = _upsert_user(db, "eng.head@example.com", "Ethan Eng", "dept_head", {"add_approvers": True})
        director = _upsert_user(db, "director@example.com", "Dana Director", "director")
        ceo = _upsert_user(db, "ceo@example.com", "Chris CEO", "ceo", {"approve_payments": True})
        accountant = _upsert_user(db, "accountant@example.com", "Alex Accountant", "accountant", {"approve_payments": True})
        finance = _upsert_user(db, "finance@example.com", "Fran Finance", "finance_manager", {"approve_payments": True})
        employee = _upsert_user(db, "employee@example.com", "Eve Employee", "employee")
        db.commit()

        print("\n── Departments ──")
        ops = _upsert_department(db, "OPS", "Operations", ops_head)
        eng = _upsert_department(db, "ENG", "Engineering", eng_head)
        employee.department_id = ops.id
        db.commit()

        print("\n── Entities ──")
        request_form = db.execute(
            select(RequestForm).where(RequestForm.name == "Forklift maintenance")
        ).scalars().first()
        if request_form is None:
            request_form = RequestForm(
                name="Forklift maintenance", description="Quarterly service for warehouse forklifts",
                amount=Decimal("2400.00"), currency="USD",
                department_id=ops.id, requested_by_id=employee.id,
            )
            db.add(request_form)
            print("  [new]  Request 'Forklift maintenance'")

        project = db.execute(select(Project).where(Project.code == "PRJ-2026-01")).scalars().first()
        if project is None:
            project = Project(
                name="Warehouse automation", code="PRJ-2026-01", budget=Decimal("185000.00"),
                department_id=eng.id, manager_id=eng_head.id,
            )
            db.add(project)
            print("  [new]  Project PRJ-2026-01")

        payroll = db.execute(
            select(Payroll).where(Payroll.period_month == NOW.month, Payroll.period_year == NOW.year)
        ).scalars().first()
        if payroll is None:
            payroll = Payroll(period_month=NOW.month, period_year=NOW.year, created_by_id=admin.id)
            payroll.entries = [
                PayrollEntry(user_id=employee.id, department_id=ops.id,
                             gross_pay=Decimal("5200.00"), net_pay=Decimal("4100.00")),
                PayrollEntry(user_id=eng_head.id, department_id=eng.id,
                             gross_pay=Decimal("9800.00"), net_pay=Decimal("7350.00")),
            ]
            db.add(payroll)
            print(f"  [new]  {payroll.label}")

        payment = db.execute(select(Payment).where(Payment.reference == "PAY-2026-0001")).scalars().first()
        if payment is None:
            payment = Payment(reference="PAY-2026-0001", currency="USD", total_amount=Decimal("12750.00"))
            db.add(payment)
            print("  [new]  Payment PAY-2026-0001")
        db.commit()

        print("\n── Approval chains ──")
        _open_once(db, "request", request_form, approval_chain.open_request_chain)
        _open_once(db, "project", project, approval_chain.open_project_chain, director.id, ceo.id)
        _open_once(db, "payroll", payroll, approval_chain.open_payroll_chain)
        _open_once(
            db, "payment", payment, approval_chain.open_payment_chain,
            [("accountant", accountant.id), ("finance_manager", finance.id), ("ceo", ceo.id)],
        )

    sync_engine.dispose()
    print("\n✓ Seed complete.")
    print("  admin@example.com       / changeme123  (administrator, manage_approvers)")
    print("  ops.head@example.com    / changeme123  (dept_head, add_approvers)")
    print("  eng.head@example.com    / changeme123  (dept_head, add_approvers)")
    print("  director@example.com    / changeme123  (director)")
    print("  ceo@example.com         / changeme123  (ceo)")
    print("  accountant@example.com  / changeme123  (accountant)")
    print("  finance@example.com     / changeme123  (finance_manager)")


if __name__ == "__main__":
    seed()
