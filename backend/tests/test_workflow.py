"""Unit tests for the approval workflow state machine (pure, no DB)."""
import pytest

from app.rules.workflow import (
    AdHocLevel,
    CanonicalLevel,
    ChainClosed,
    OutOfSequence,
    ParentKind,
    Transition,
    get_workflow,
    next_status,
)


# ─── Canonical progression ────────────────────────────────────────────────────

def test_request_dept_head_approval_moves_to_admin_head():
    assert next_status("request", "pending_dept_head", "dept_head", "approve") == Transition(
        "pending_admin_head", False
    )


def test_request_final_approval_is_terminal():
    assert next_status("request", "pending_admin_head", "admin_head", "approve") == Transition("approved", True)


def test_project_chain_director_then_ceo():
    first = next_status(ParentKind.project, "pending_director", CanonicalLevel("director"), "approve")
    assert first == Transition("pending_ceo", False)
    second = next_status(ParentKind.project, first.new_status, CanonicalLevel("ceo"), "approve")
    assert second == Transition("approved", True)


def test_payroll_walks_all_three_stages():
    status = "pending_dept_head"
    status = next_status("payroll", status, "dept_head", "approve", ["approved", "approved"]).new_status
    assert status == "pending_admin_head"
    status = next_status("payroll", status, "admin_head", "approve").new_status
    assert status == "pending_accountant"
    assert next_status("payroll", status, "accountant", "approve") == Transition("approved", True)


# ─── All-approvers stages ─────────────────────────────────────────────────────

def test_payroll_dept_head_stage_waits_for_every_head():
    result = next_status("payroll", "pending_dept_head", "dept_head", "approve", ["approved", "pending"])
    assert result == Transition("pending_dept_head", False)


def test_payment_schedules_only_when_every_assigned_approver_signed():
    waiting = next_status("payment", "draft", "finance_manager", "approve", ["approved", "approved", "pending"])
    assert waiting == Transition("draft", False)
    done = next_status("payment", "draft", "ceo", "approve", ["approved", "approved", "approved"])
    assert done == Transition("scheduled", True)


def test_payment_levels_approve_in_any_order():
    assert next_status("payment", "draft", "ceo", "approve", ["approved"]) == Transition("scheduled", True)


# ─── Rejection ────────────────────────────────────────────────────────────────

@pytest.mark.parametrize(
    "kind,status,level,expected",
    [
        ("request", "pending_dept_head", "dept_head", "rejected"),
        ("request", "pending_dept_head", "admin_head", "rejected"),
        ("project", "pending_ceo", "ceo", "rejected"),
        ("payroll", "pending_accountant", "dept_head", "rejected"),
        ("payment", "draft", "accountant", "voided"),
    ],
)
def test_reject_is_absolute_at_any_level(kind, status, level, expected):
    assert next_status(kind, status, level, "reject") == Transition(expected, True)


def test_rejecting_a_delegated_level_rejects_the_parent():
    assert next_status("project", "pending_ceo", AdHocLevel("legal"), "reject") == Transition("rejected", True)


# ─── Delegated levels ─────────────────────────────────────────────────────────

def test_delegated_approval_leaves_status_unchanged():
    assert next_status("request", "pending_dept_head", AdHocLevel("compliance"), "approve") == Transition(
        "pending_dept_head", False
    )


def test_unknown_level_string_is_classified_as_ad_hoc():
    assert get_workflow("request").classify("compliance") == AdHocLevel("compliance")
    assert next_status("request", "pending_admin_head", "compliance", "approve").new_status == "pending_admin_head"


def test_delegated_record_named_like_a_canonical_level_still_does_not_advance():
    result = next_status("request", "pending_dept_head", AdHocLevel("dept_head"), "approve")
    assert result == Transition("pending_dept_head", False)


# ─── Errors ───────────────────────────────────────────────────────────────────

@pytest.mark.parametrize("status", ["approved", "rejected"])
def test_terminal_request_raises_chain_closed(status):
    with pytest.raises(ChainClosed):
        next_status("request", status, "admin_head", "approve")


def test_paid_payment_is_closed():
    with pytest.raises(ChainClosed):
        next_status("payment", "paid", "ceo", "reject")


def test_out_of_sequence_approval_raises():
    with pytest.raises(OutOfSequence):
        next_status("request", "pending_dept_head", "admin_head", "approve")


def test_payroll_in_draft_can_not_be_approved():
    with pytest.raises(OutOfSequence):
        next_status("payroll", "draft", "dept_head", "approve")


def test_unknown_action_raises_value_error():
    with pytest.raises(ValueError):
        next_status("request", "pending_dept_head", "dept_head", "escalate")


def test_unknown_kind_raises_value_error():
    with pytest.raises(ValueError):
        get_workflow("invoice")


# ─── Specs ────────────────────────────────────────────────────────────────────

def test_initial_statuses():
    assert get_workflow("request").initial_status == "pending_dept_head"
    assert get_workflow("project").initial_status == "pending_director"
    assert get_workflow("payroll").initial_status == "pending_dept_head"
    assert get_workflow("payment").initial_status == "draft"


def test_payment_canonical_levels():
    assert get_workflow("payment").canonical_levels == ("accountant", "finance_manager", "ceo")
