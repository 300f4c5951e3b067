"""
Appraisal status transitions.

    new --send/save--> sent --approve--> complete
                        |  ^
                 appeal v  | send
                      returned

The table is the only place that knows which moves are legal. `apply_transition`
persists a move as a compare-and-set UPDATE on the status the caller observed,
so two racing callers cannot both pass the same precondition.
"""
import enum
from typing import Dict
from sqlalchemy.orm import Session

from faculty_appraisal.core.exceptions import NotActionableError
from faculty_appraisal.models.appraisal import Appraisal, AppraisalStatus


class WorkflowAction(str, enum.Enum):
    SEND = "send"
    APPROVE = "approve"
    APPEAL = "appeal"
    # First evaluator save moves a fresh appraisal into review
    PROMOTE = "promote"


TRANSITIONS: Dict[WorkflowAction, Dict[AppraisalStatus, AppraisalStatus]] = {
    WorkflowAction.SEND: {
        AppraisalStatus.NEW: AppraisalStatus.SENT,
        AppraisalStatus.RETURNED: AppraisalStatus.SENT,
        AppraisalStatus.SENT: AppraisalStatus.SENT,
    },
    WorkflowAction.APPROVE: {
        AppraisalStatus.SENT: AppraisalStatus.COMPLETE,
    },
    WorkflowAction.APPEAL: {
        AppraisalStatus.SENT: AppraisalStatus.RETURNED,
    },
    WorkflowAction.PROMOTE: {
        AppraisalStatus.NEW: AppraisalStatus.SENT,
    },
}


def can_apply(current: AppraisalStatus, action: WorkflowAction) -> bool:
    return current in TRANSITIONS[action]


def next_status(current: AppraisalStatus, action: WorkflowAction) -> AppraisalStatus:
    try:
        return TRANSITIONS[action][current]
    except KeyError:
        raise NotActionableError(
            f"Cannot {action.value} an appraisal whose status is '{current.value}'",
            details={"status": current.value, "action": action.value},
        )


def load_for_update(db: Session, appraisal_id: int) -> Appraisal:
    """Row-locked read on backends that support SELECT ... FOR UPDATE."""
    return db.query(Appraisal).filter(Appraisal.id == appraisal_id).with_for_update().first()


def apply_transition(db: Session, appraisal: Appraisal, action: WorkflowAction, **values) -> AppraisalStatus:
    """
    Move `appraisal` along `action` without committing.
    Raises NotActionableError if the move is illegal or the row changed underneath us.
    """
    observed = appraisal.status
    target = next_status(observed, action)
    updated = (
        db.query(Appraisal)
        .filter(Appraisal.id == appraisal.id, Appraisal.status == observed)
        .update({"status": target, **values}, synchronize_session="fetch")
    )
    if updated != 1:
        raise NotActionableError(
            "Appraisal status changed concurrently; reload and retry",
            details={"status": observed.value, "action": action.value},
        )
    return target
