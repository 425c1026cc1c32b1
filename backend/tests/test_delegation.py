"""Tests for the add-approver (delegation) service."""
import uuid

import pytest

from app.core.errors import AlreadyProcessed, DuplicateApprover, NotFound, Unauthorized, ValidationError
from app.services.delegation import add_approver
from fakes import FakeUser, make_project, make_request


# ─── Fixtures ─────────────────────────────────────────────────────────────────

@pytest.fixture
def setup(fake_store, fake_directory):
    manager = fake_directory.add(FakeUser("admin@example.com", "administrator", {"manage_approvers": True}))
    head = fake_directory.add(FakeUser("ops.head@example.com", "dept_head", {"add_approvers": True}))
    admin_head = fake_directory.add(FakeUser("hr@example.com", "hr_manager"))
    reviewer = fake_directory.add(FakeUser("legal@example.com"))

    parent = fake_store.add_parent("request", make_request())
    dept = fake_store.record("request", parent, "dept_head", head)
    admin = fake_store.record("request", parent, "admin_head", admin_head)
    return {
        "manager": manager, "head": head, "admin_head": admin_head, "reviewer": reviewer,
        "parent": parent, "records": [dept, admin],
    }


# ─── Additivity ───────────────────────────────────────────────────────────────

def test_add_approver_appends_one_pending_delegated_record(db, fake_store, setup, audit_events):
    parent = setup["parent"]
    before = [(r.id, r.status, r.action_date) for r in fake_store.chain("request", parent.id)]

    record = add_approver(
        db, "request", parent.id, setup["manager"].id, setup["reviewer"].id, "compliance",
        grant_delegation=True,
    )

    chain = fake_store.chain("request", parent.id)
    assert len(chain) == len(before) + 1
    assert [(r.id, r.status, r.action_date) for r in chain[:-1]] == before
    assert chain[-1] is record
    assert record.status == "pending"
    assert record.origin == "delegated"
    assert record.level == "compliance"
    assert record.approver_id == setup["reviewer"].id
    assert record.added_by_id == setup["manager"].id
    assert record.can_add_approvers is True
    assert parent.status == "pending_dept_head"
    db.commit.assert_called_once()


def test_add_approver_emits_audit_event(db, setup, audit_events):
    add_approver(db, "request", setup["parent"].id, setup["manager"].id, setup["reviewer"].id, "compliance")

    event = audit_events[0]
    assert event.action == "APPROVER_ADDED"
    assert event.entity_id == str(setup["parent"].id)
    assert event.actor_email == "admin@example.com"
    assert event.after["approval"]["level"] == "compliance"


def test_add_approvers_holder_on_chain_can_add(db, setup, audit_events):
    record = add_approver(db, "request", setup["parent"].id, setup["head"].id, setup["reviewer"].id, "second_review")
    assert record.can_add_approvers is False


def test_record_capability_allows_adding_without_permission(db, fake_store, fake_directory, setup, audit_events):
    delegate = fake_directory.add(FakeUser("delegate@example.com"))
    fake_store.record("request", setup["parent"], "compliance", delegate, origin="delegated", can_add_approvers=True)

    record = add_approver(db, "request", setup["parent"].id, delegate.id, setup["reviewer"].id, "legal")

    assert record.added_by_id == delegate.id


# ─── Authorization ────────────────────────────────────────────────────────────

def test_grant_without_manage_approvers_is_unauthorized(db, fake_store, setup, audit_events):
    """Delegation can not escalate capability: no record is created."""
    parent = setup["parent"]
    count = len(fake_store.chain("request", parent.id))

    with pytest.raises(Unauthorized):
        add_approver(
            db, "request", parent.id, setup["head"].id, setup["reviewer"].id, "compliance",
            grant_delegation=True,
        )

    assert len(fake_store.chain("request", parent.id)) == count
    db.commit.assert_not_called()
    assert audit_events == []


def test_add_approvers_holder_off_chain_is_unauthorized(db, fake_store, fake_directory, audit_events):
    outsider = fake_directory.add(FakeUser("other.head@example.com", "dept_head", {"add_approvers": True}))
    reviewer = fake_directory.add(FakeUser("legal@example.com"))
    parent = fake_store.add_parent("project", make_project())

    with pytest.raises(Unauthorized):
        add_approver(db, "project", parent.id, outsider.id, reviewer.id, "legal")


def test_approver_without_permission_is_unauthorized(db, setup, audit_events):
    with pytest.raises(Unauthorized):
        add_approver(db, "request", setup["parent"].id, setup["admin_head"].id, setup["reviewer"].id, "legal")


def test_unknown_actor_is_unauthorized(db, setup, audit_events):
    with pytest.raises(Unauthorized):
        add_approver(db, "request", setup["parent"].id, uuid.uuid4(), setup["reviewer"].id, "legal")


# ─── Validation ───────────────────────────────────────────────────────────────

def test_inactive_new_approver_is_validation_error(db, fake_directory, setup, audit_events):
    gone = fake_directory.add(FakeUser("gone@example.com", is_active=False))
    with pytest.raises(ValidationError):
        add_approver(db, "request", setup["parent"].id, setup["manager"].id, gone.id, "legal")


def test_unknown_new_approver_is_validation_error(db, setup, audit_events):
    with pytest.raises(ValidationError):
        add_approver(db, "request", setup["parent"].id, setup["manager"].id, uuid.uuid4(), "legal")


@pytest.mark.parametrize("level", ["", "   ", None])
def test_blank_level_is_validation_error(db, setup, audit_events, level):
    with pytest.raises(ValidationError):
        add_approver(db, "request", setup["parent"].id, setup["manager"].id, setup["reviewer"].id, level)


def test_duplicate_pending_approver_at_level_is_rejected(db, setup, audit_events):
    with pytest.raises(DuplicateApprover):
        add_approver(db, "request", setup["parent"].id, setup["manager"].id, setup["head"].id, "dept_head")


def test_missing_parent_is_not_found(db, setup, audit_events):
    with pytest.raises(NotFound):
        add_approver(db, "project", uuid.uuid4(), setup["manager"].id, setup["reviewer"].id, "legal")


def test_terminal_parent_is_already_processed(db, setup, audit_events):
    setup["parent"].status = "approved"
    with pytest.raises(AlreadyProcessed):
        add_approver(db, "request", setup["parent"].id, setup["manager"].id, setup["reviewer"].id, "legal")
    db.rollback.assert_called_once()


# ─── Transaction and locking ──────────────────────────────────────────────────

def test_parent_is_locked_before_the_chain_is_read(db, fake_store, setup, audit_events):
    parent = setup["parent"]
    add_approver(db, "request", parent.id, setup["manager"].id, setup["reviewer"].id, "compliance")
    assert fake_store.locks[0] == ("parent", "request", parent.id)


def test_commit_failure_rolls_back_and_skips_audit(db, setup, audit_events):
    db.commit.side_effect = RuntimeError("connection lost")

    with pytest.raises(RuntimeError, match="connection lost"):
        add_approver(db, "request", setup["parent"].id, setup["manager"].id, setup["reviewer"].id, "compliance")

    db.rollback.assert_called_once()
    assert audit_events == []
