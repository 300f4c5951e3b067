from typing import Optional
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session
from faculty_appraisal.core.config import settings
from faculty_appraisal.core.limiter import limiter
from faculty_appraisal.database import get_db
from faculty_appraisal.models.user import User, UserRole
from faculty_appraisal.routers.auth_deps import get_current_user, require_role
from faculty_appraisal.schemas.achievement import AchievementSummary
from faculty_appraisal.schemas.appraisal import AppraisalResponse, ReviewItem, ReviewList, WorkflowResult
from faculty_appraisal.schemas.evaluation import (
    AccessResponse, CapabilitiesSectionInput, EvaluationResponse, PerformanceSectionInput,
)
from faculty_appraisal.services.access_control import authorize_evaluator, require_evaluator, reviewable_appraisals
from faculty_appraisal.services.achievements import summarize
from faculty_appraisal.services.cycles import require_active_cycle
from faculty_appraisal.services.evaluations import EvaluationService
from faculty_appraisal.services.workflow import AppraisalWorkflowService

router = APIRouter(prefix="/reviews", tags=["reviews"])


@router.get("", response_model=ReviewList)
def list_reviews(
    cycle_id: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role([UserRole.HOD, UserRole.DEAN])),
):
    """Appraisals the caller evaluates in the given (default: active) cycle."""
    if cycle_id is None:
        cycle_id = require_active_cycle(db).id
    items = [
        ReviewItem(
            appraisal=AppraisalResponse.model_validate(a),
            faculty_name=a.faculty.full_name,
            faculty_email=a.faculty.email,
            department_id=a.faculty.department_id,
        )
        for a in reviewable_appraisals(db, current_user, cycle_id)
    ]
    return ReviewList(cycle_id=cycle_id, items=items)


@router.get("/{appraisal_id}/access", response_model=AccessResponse)
def check_access(
    appraisal_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    decision = authorize_evaluator(db, appraisal_id, current_user)
    return AccessResponse(authorized=decision.authorized, evaluator_role=decision.evaluator_role)


@router.get("/{appraisal_id}/achievements", response_model=AchievementSummary)
def review_achievements(
    appraisal_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Everything the faculty member recorded, grouped by kind, with the counts used for scoring."""
    require_evaluator(db, appraisal_id, current_user)
    return summarize(db, appraisal_id)


@router.get("/{appraisal_id}/evaluation", response_model=Optional[EvaluationResponse])
def get_evaluation(
    appraisal_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return EvaluationService(db).get(appraisal_id, current_user)


@router.put("/{appraisal_id}/performance", response_model=EvaluationResponse)
@limiter.limit(settings.workflow_rate_limit)
def save_performance(
    request: Request,
    appraisal_id: int,
    body: PerformanceSectionInput,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return EvaluationService(db).save_performance(appraisal_id, current_user, body)


@router.put("/{appraisal_id}/capabilities", response_model=EvaluationResponse)
@limiter.limit(settings.workflow_rate_limit)
def save_capabilities(
    request: Request,
    appraisal_id: int,
    body: CapabilitiesSectionInput,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return EvaluationService(db).save_capabilities(appraisal_id, current_user, body)


@router.post("/{appraisal_id}/send", response_model=WorkflowResult)
@limiter.limit(settings.workflow_rate_limit)
def send_scores(
    request: Request,
    appraisal_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    appraisal = AppraisalWorkflowService(db).send(appraisal_id, current_user)
    return WorkflowResult(appraisal=AppraisalResponse.model_validate(appraisal))
