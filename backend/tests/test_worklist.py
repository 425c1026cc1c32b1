"""Tests for the unified approval view (pending worklist across all kinds)."""
import logging
import uuid
from decimal import Decimal

import pytest

from app.core.errors import Unauthorized, ValidationError
from app.models.department import Department
from app.models.payroll import PayrollEntry
from app.services.worklist import get_worklist
from fakes import FakeUser, make_payment, make_payroll, make_project, make_request


@pytest.fixture
def approver(fake_directory):
    return fake_directory.add(FakeUser("ceo@example.com", "ceo", {"approve_approvals": True}))


# ─── Merge across kinds ───────────────────────────────────────────────────────

def test_worklist_merges_pending_records_of_every_kind(db, fake_store, approver):
    request = fake_store.add_parent("request", make_request())
    project = fake_store.add_parent("project", make_project(status="pending_ceo"))
    payroll = fake_store.add_parent("payroll", make_payroll(status="pending_admin_head"))
    payment = fake_store.add_parent("payment", make_payment())
    fake_store.record("request", request, "admin_head", approver)
    fake_store.record("project", project, "ceo", approver)
    fake_store.record("payroll", payroll, "admin_head", approver)
    fake_store.record("payment", payment, "ceo", approver)

    worklist = get_worklist(db, approver.id)

    assert worklist.total == 4
    assert worklist.counts == {"request": 1, "project": 1, "payroll": 1, "payment": 1}
    # newest first
    assert [item.summary.kind for item in worklist.items] == ["payment", "payroll", "project", "request"]


def test_worklist_items_carry_parent_summary(db, fake_store, approver):
    project = fake_store.add_parent("project", make_project(status="pending_ceo"))
    fake_store.record("project", project, "ceo", approver)
    payroll = fake_store.add_parent("payroll", make_payroll())
    fake_store.record("payroll", payroll, "dept_head", approver)

    items = {item.summary.kind: item.summary for item in get_worklist(db, approver.id).items}

    assert items["project"].name == "Warehouse automation"
    assert items["project"].reference == "PRJ-7"
    assert items["project"].status == "pending_ceo"
    assert str(items["project"].amount) == "185000.00"
    assert items["payroll"].name == "Payroll 03/2026"
    assert items["payroll"].amount == 6500


def test_worklist_excludes_decided_and_other_approvers_records(db, fake_store, approver):
    other = FakeUser("someone@example.com")
    request = fake_store.add_parent("request", make_request())
    fake_store.record("request", request, "dept_head", approver, status="approved")
    fake_store.record("request", request, "admin_head", other)

    worklist = get_worklist(db, approver.id)

    assert worklist.items == []
    assert worklist.counts == {"request": 0, "project": 0, "payroll": 0, "payment": 0}


def test_pending_record_on_closed_parent_is_left_out(db, fake_store, approver):
    """admin_head stays pending after a dept_head rejection but can no longer be acted on."""
    rejected = fake_store.add_parent("request", make_request(status="rejected"))
    fake_store.record("request", rejected, "dept_head", FakeUser("head@example.com"), status="rejected")
    fake_store.record("request", rejected, "admin_head", approver)
    scheduled = fake_store.add_parent("payment", make_payment(status="scheduled"))
    fake_store.record("payment", scheduled, "ceo", approver)
    open_request = fake_store.add_parent("request", make_request(name="Office chairs"))
    fake_store.record("request", open_request, "dept_head", approver)

    worklist = get_worklist(db, approver.id)

    assert [item.summary.id for item in worklist.items] == [str(open_request.id)]
    assert worklist.counts == {"request": 1, "project": 0, "payroll": 0, "payment": 0}


def test_orphaned_record_is_skipped_not_raised(db, fake_store, approver, caplog):
    live = fake_store.add_parent("request", make_request())
    fake_store.record("request", live, "dept_head", approver)
    ghost = make_project(status="pending_ceo")
    fake_store.record("project", ghost, "ceo", approver)  # parent never stored

    with caplog.at_level(logging.WARNING, logger="app.services.worklist"):
        worklist = get_worklist(db, approver.id)

    assert worklist.total == 1
    assert worklist.items[0].summary.id == str(live.id)
    assert "orphaned" in caplog.text


# ─── Filters ──────────────────────────────────────────────────────────────────

def test_search_text_filters_on_name_case_insensitively(db, fake_store, approver):
    forklift = fake_store.add_parent("request", make_request(name="Forklift maintenance"))
    laptops = fake_store.add_parent("request", make_request(name="Laptop refresh"))
    fake_store.record("request", forklift, "dept_head", approver)
    fake_store.record("request", laptops, "dept_head", approver)

    worklist = get_worklist(db, approver.id, search_text="  FORKLIFT ")

    assert [item.summary.name for item in worklist.items] == ["Forklift maintenance"]
    assert worklist.counts["request"] == 1


def test_search_text_matches_payment_reference(db, fake_store, approver):
    payment = fake_store.add_parent("payment", make_payment())
    fake_store.record("payment", payment, "ceo", approver)

    assert get_worklist(db, approver.id, search_text="pay-0042").total == 1
    assert get_worklist(db, approver.id, search_text="nomatch").total == 0


def test_payroll_summary_lists_entry_departments(db, fake_store, approver):
    ops = Department(id=uuid.uuid4(), name="Operations", code="OPS")
    eng = Department(id=uuid.uuid4(), name="Engineering", code="ENG")
    payroll = make_payroll()
    payroll.entries = [
        PayrollEntry(id=uuid.uuid4(), user_id=uuid.uuid4(), department=ops, net_pay=Decimal("4000")),
        PayrollEntry(id=uuid.uuid4(), user_id=uuid.uuid4(), department=eng, net_pay=Decimal("2500")),
        PayrollEntry(id=uuid.uuid4(), user_id=uuid.uuid4(), department=ops, net_pay=Decimal("3000")),
        PayrollEntry(id=uuid.uuid4(), user_id=uuid.uuid4(), net_pay=Decimal("1000")),
    ]
    fake_store.add_parent("payroll", payroll)
    fake_store.record("payroll", payroll, "dept_head", approver)

    worklist = get_worklist(db, approver.id, search_text="engineering")

    assert worklist.total == 1
    assert worklist.items[0].summary.department == "Operations, Engineering"


def test_required_permission_held(db, fake_store, approver):
    request = fake_store.add_parent("request", make_request())
    fake_store.record("request", request, "dept_head", approver)

    assert get_worklist(db, approver.id, required_permission="approve_approvals").total == 1


def test_required_permission_missing_is_unauthorized(db, fake_store, approver):
    with pytest.raises(Unauthorized):
        get_worklist(db, approver.id, required_permission="approve_payments")


def test_missing_actor_is_validation_error(db, fake_store):
    with pytest.raises(ValidationError):
        get_worklist(db, None)


def test_actor_with_nothing_pending_gets_empty_list(db, fake_store, fake_directory):
    assert get_worklist(db, uuid.uuid4()).total == 0
