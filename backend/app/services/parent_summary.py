"""Uniform summary of any approvable entity, for worklists and audit text."""
from dataclasses import dataclass
from decimal import Decimal

from app.rules.workflow import ParentKind


@dataclass
class ParentSummary:
    kind: str
    id: str
    name: str
    status: str
    amount: Decimal | None = None
    currency: str | None = None
    department: str | None = None
    reference: str | None = None


def _payroll_departments(payroll) -> str | None:
    """Names of the departments on the run's entries, in entry order."""
    names: list[str] = []
    for entry in payroll.entries:
        department = getattr(entry, "department", None)
        if department is not None and department.name not in names:
            names.append(department.name)
    return ", ".join(names) or None


def summarize(kind: ParentKind | str, parent) -> ParentSummary:
    kind = ParentKind(kind)
    department = getattr(parent, "department", None)
    department_name = department.name if department is not None else None

    if kind is ParentKind.request:
        return ParentSummary(
            kind=kind.value, id=str(parent.id), name=parent.name, status=parent.status,
            amount=parent.amount, currency=parent.currency, department=department_name,
        )
    if kind is ParentKind.project:
        return ParentSummary(
            kind=kind.value, id=str(parent.id), name=parent.name, status=parent.status,
            amount=parent.budget, department=department_name, reference=parent.code,
        )
    if kind is ParentKind.payroll:
        return ParentSummary(
            kind=kind.value, id=str(parent.id), name=parent.label, status=parent.status,
            amount=parent.total_net_pay, department=_payroll_departments(parent),
        )
    return ParentSummary(
        kind=kind.value, id=str(parent.id),
        name=f"Payment {parent.reference}" if parent.reference else "Payment",
        status=parent.status, amount=parent.total_amount, currency=parent.currency,
        reference=parent.reference,
    )


def matches(summary: ParentSummary, search_text: str | None) -> bool:
    """Case-insensitive substring match on name, reference and department."""
    needle = (search_text or "").strip().lower()
    if not needle:
        return True
    haystack = " ".join(filter(None, [summary.name, summary.reference, summary.department]))
    return needle in haystack.lower()
