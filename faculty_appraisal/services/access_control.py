"""
Evaluator access control.

Who may evaluate whom is a small rule table keyed by the acting user's role:

- HOD evaluates INSTRUCTOR subjects of their own department, never themself.
- DEAN evaluates HOD subjects whose department belongs to the college they manage.
- ADMIN and INSTRUCTOR never evaluate through this path.

`decide_access` is pure; `authorize_evaluator` loads the appraisal and applies it.
Results are never cached because affiliations can change between requests.
"""
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional
from sqlalchemy.orm import Session, joinedload

from faculty_appraisal.core.exceptions import AccessDeniedError, NotFoundError
from faculty_appraisal.models.appraisal import Appraisal
from faculty_appraisal.models.department import Department
from faculty_appraisal.models.evaluation import EvaluatorRole
from faculty_appraisal.models.user import User, UserRole
from faculty_appraisal.services.directory import Affiliation, affiliation_of


@dataclass(frozen=True)
class AccessDecision:
    authorized: bool
    evaluator_role: Optional[EvaluatorRole] = None


DENIED = AccessDecision(authorized=False)


def _hod_rule(actor: Affiliation, subject: Affiliation) -> AccessDecision:
    same_department = actor.department_id is not None and actor.department_id == subject.department_id
    if same_department and subject.role == UserRole.INSTRUCTOR and actor.user_id != subject.user_id:
        return AccessDecision(authorized=True, evaluator_role=EvaluatorRole.HOD)
    return DENIED


def _dean_rule(actor: Affiliation, subject: Affiliation) -> AccessDecision:
    manages_college = actor.managed_college_id is not None and actor.managed_college_id == subject.college_id
    if manages_college and subject.role == UserRole.HOD:
        return AccessDecision(authorized=True, evaluator_role=EvaluatorRole.DEAN)
    return DENIED


def _never(actor: Affiliation, subject: Affiliation) -> AccessDecision:
    return DENIED


ACCESS_RULES: Dict[UserRole, Callable[[Affiliation, Affiliation], AccessDecision]] = {
    UserRole.HOD: _hod_rule,
    UserRole.DEAN: _dean_rule,
    UserRole.ADMIN: _never,
    UserRole.INSTRUCTOR: _never,
}


def decide_access(actor: Affiliation, subject: Affiliation) -> AccessDecision:
    """Apply the rule for the actor's role to the appraised subject."""
    return ACCESS_RULES[actor.role](actor, subject)


def _load_appraisal(db: Session, appraisal_id: int) -> Optional[Appraisal]:
    return (
        db.query(Appraisal)
        .options(
            joinedload(Appraisal.faculty)
            .joinedload(User.department)
            .joinedload(Department.college)
        )
        .filter(Appraisal.id == appraisal_id)
        .first()
    )


def authorize_evaluator(db: Session, appraisal_id: int, acting_user: User) -> AccessDecision:
    """
    Decide whether `acting_user` may evaluate the appraisal and as which role.
    Raises NotFoundError when the appraisal does not exist. Read-only.
    """
    appraisal = _load_appraisal(db, appraisal_id)
    if appraisal is None:
        raise NotFoundError(f"Appraisal {appraisal_id} not found")
    return decide_access(affiliation_of(acting_user), affiliation_of(appraisal.faculty))


def require_evaluator(db: Session, appraisal_id: int, acting_user: User) -> EvaluatorRole:
    """Guard used before any evaluation mutation; raises AccessDeniedError when unauthorized."""
    decision = authorize_evaluator(db, appraisal_id, acting_user)
    if not decision.authorized:
        raise AccessDeniedError("You are not allowed to evaluate this appraisal")
    return decision.evaluator_role


def reviewable_appraisals(db: Session, acting_user: User, cycle_id: int) -> List[Appraisal]:
    """Appraisals in `cycle_id` that the acting user is authorized to evaluate."""
    actor = affiliation_of(acting_user)
    if actor.role == UserRole.HOD:
        if actor.department_id is None:
            return []
        candidates = db.query(Appraisal).join(User, Appraisal.faculty_id == User.id).filter(
            Appraisal.cycle_id == cycle_id,
            User.department_id == actor.department_id,
            User.role == UserRole.INSTRUCTOR,
        )
    elif actor.role == UserRole.DEAN:
        if actor.managed_college_id is None:
            return []
        candidates = (
            db.query(Appraisal)
            .join(User, Appraisal.faculty_id == User.id)
            .join(Department, User.department_id == Department.id)
            .filter(
                Appraisal.cycle_id == cycle_id,
                Department.college_id == actor.managed_college_id,
                User.role == UserRole.HOD,
            )
        )
    else:
        return []

    # The SQL pre-filter narrows the set; the rule table stays the single source of truth
    return [
        appraisal for appraisal in candidates.order_by(Appraisal.id).all()
        if decide_access(actor, affiliation_of(appraisal.faculty)).authorized
    ]
