"""Structured, caller-distinguishable failures raised by the approval services.

Every error carries the parent kind, parent id and level it concerns so the
UI can explain why an action was refused. The API layer maps them to JSON
responses in app.main.
"""
import uuid


class ApprovalError(Exception):
    code = "approval_error"
    status_code = 400

    def __init__(
        self,
        message: str,
        parent_kind: str | None = None,
        parent_id: uuid.UUID | str | None = None,
        level: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.parent_kind = parent_kind
        self.parent_id = parent_id
        self.level = level

    def to_dict(self) -> dict:
        return {
            "detail": self.message,
            "code": self.code,
            "parent_kind": self.parent_kind,
            "parent_id": str(self.parent_id) if self.parent_id is not None else None,
            "level": self.level,
        }


class NotFound(ApprovalError):
    """No approval record (or parent entity) exists for the given target."""

    code = "not_found"
    status_code = 404


class Forbidden(ApprovalError):
    """A record exists but is assigned to a different approver."""

    code = "forbidden"
    status_code = 403


class AlreadyProcessed(ApprovalError):
    """The targeted record, or its whole chain, is no longer pending."""

    code = "already_processed"
    status_code = 409


class LevelMismatch(ApprovalError):
    code = "level_mismatch"
    status_code = 409


class ValidationError(ApprovalError):
    code = "validation_error"
    status_code = 422


class Unauthorized(ApprovalError):
    """Actor lacks the permission needed to add approvers or grant delegation."""

    code = "unauthorized"
    status_code = 403


class DuplicateApprover(ApprovalError):
    code = "duplicate_approver"
    status_code = 409
