"""Approval workflow state machine: pure decision logic.

Architecture principle: this module never touches storage and knows nothing
about approvers. Given a parent's current status, the level acted on and the
action, it computes the parent's next status. Each entity kind supplies its
workflow as data (a WorkflowSpec), so one engine drives all four kinds.
"""
import enum
from dataclasses import dataclass, field
from typing import Iterable


class ParentKind(str, enum.Enum):
    request = "request"
    project = "project"
    payroll = "payroll"
    payment = "payment"


class Action(str, enum.Enum):
    approve = "approve"
    reject = "reject"


class RecordStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


# ─── Levels: canonical stages vs. ad hoc (delegated) sign-offs ───

@dataclass(frozen=True)
class CanonicalLevel:
    name: str


@dataclass(frozen=True)
class AdHocLevel:
    name: str


LevelRef = CanonicalLevel | AdHocLevel


# ─── Workflow specs ───

@dataclass(frozen=True)
class Stage:
    """One pending phase of a parent. A stage may span several levels."""

    pending_status: str
    levels: tuple[str, ...]
    require_all: bool = False  # every canonical record in the stage must approve


@dataclass(frozen=True)
class WorkflowSpec:
    kind: ParentKind
    stages: tuple[Stage, ...]
    success_status: str
    rejected_status: str
    # Post-approval lifecycle states owned by other flows (e.g. paid).
    closed_statuses: frozenset[str] = field(default_factory=frozenset)

    @property
    def initial_status(self) -> str:
        return self.stages[0].pending_status

    @property
    def canonical_levels(self) -> tuple[str, ...]:
        return tuple(level for stage in self.stages for level in stage.levels)

    def is_terminal(self, status: str) -> bool:
        return status in (self.success_status, self.rejected_status) or status in self.closed_statuses

    def stage_index_for_level(self, level: str) -> int | None:
        for idx, stage in enumerate(self.stages):
            if level in stage.levels:
                return idx
        return None

    def stage_index_for_status(self, status: str) -> int | None:
        for idx, stage in enumerate(self.stages):
            if stage.pending_status == status:
                return idx
        return None

    def classify(self, level: str) -> LevelRef:
        if level in self.canonical_levels:
            return CanonicalLevel(level)
        return AdHocLevel(level)


WORKFLOWS: dict[ParentKind, WorkflowSpec] = {
    ParentKind.request: WorkflowSpec(
        kind=ParentKind.request,
        stages=(
            Stage("pending_dept_head", ("dept_head",)),
            Stage("pending_admin_head", ("admin_head",)),
        ),
        success_status="approved",
        rejected_status="rejected",
    ),
    ParentKind.project: WorkflowSpec(
        kind=ParentKind.project,
        stages=(
            Stage("pending_director", ("director",)),
            Stage("pending_ceo", ("ceo",)),
        ),
        success_status="approved",
        rejected_status="rejected",
    ),
    ParentKind.payroll: WorkflowSpec(
        kind=ParentKind.payroll,
        stages=(
            Stage("pending_dept_head", ("dept_head",), require_all=True),
            Stage("pending_admin_head", ("admin_head",)),
            Stage("pending_accountant", ("accountant",)),
        ),
        success_status="approved",
        rejected_status="rejected",
        closed_statuses=frozenset({"processed", "paid"}),
    ),
    # Payments are approver-driven: whoever was assigned, in any order.
    ParentKind.payment: WorkflowSpec(
        kind=ParentKind.payment,
        stages=(
            Stage("draft", ("accountant", "finance_manager", "ceo"), require_all=True),
        ),
        success_status="scheduled",
        rejected_status="voided",
        closed_statuses=frozenset({"partially_paid", "paid"}),
    ),
}


def get_workflow(kind: ParentKind | str) -> WorkflowSpec:
    """Raises ValueError for an unknown kind."""
    return WORKFLOWS[ParentKind(kind)]


# ─── Transitions ───

@dataclass(frozen=True)
class Transition:
    new_status: str
    is_terminal: bool


class TransitionError(Exception):
    pass


class ChainClosed(TransitionError):
    """The parent is already in a terminal state."""


class OutOfSequence(TransitionError):
    """An approval targets a canonical stage that is not the current one."""


def next_status(
    kind: ParentKind | str,
    current_status: str,
    level: LevelRef | str,
    action: Action | str,
    level_outcomes: Iterable[str] = (),
) -> Transition:
    """Compute the parent's next status after one approval action.

    Args:
        kind: Parent entity kind.
        current_status: Parent status read immediately before the mutation.
        level: The level acted on. Plain strings are classified against the
            kind's canonical levels; delegated records pass AdHocLevel.
        action: "approve" or "reject".
        level_outcomes: Statuses of every canonical record in the acted
            stage, including the one being acted on (already resolved).
            Only consulted for stages with require_all.

    Raises:
        ChainClosed: current_status is terminal.
        OutOfSequence: approving a canonical stage other than the current one.
        ValueError: unknown kind or action.
    """
    spec = get_workflow(kind)
    action = Action(action)
    if isinstance(level, str):
        level = spec.classify(level)

    if spec.is_terminal(current_status):
        raise ChainClosed(f"{spec.kind.value} is already {current_status}")

    # Rejection is absolute, whatever the level and however far the chain got.
    if action is Action.reject:
        return Transition(spec.rejected_status, True)

    # Delegated sign-offs are recorded but never move the canonical chain.
    if isinstance(level, AdHocLevel):
        return Transition(current_status, False)

    stage_idx = spec.stage_index_for_level(level.name)
    current_idx = spec.stage_index_for_status(current_status)
    if current_idx is None or stage_idx != current_idx:
        raise OutOfSequence(
            f"{level.name} cannot approve while {spec.kind.value} is {current_status}"
        )

    stage = spec.stages[stage_idx]
    if stage.require_all:
        outcomes = list(level_outcomes)
        if any(s != RecordStatus.approved.value for s in outcomes):
            return Transition(current_status, False)

    if stage_idx + 1 < len(spec.stages):
        return Transition(spec.stages[stage_idx + 1].pending_status, False)
    return Transition(spec.success_status, True)
