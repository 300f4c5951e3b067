from typing import List, Optional
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session
from faculty_appraisal.core.config import settings
from faculty_appraisal.core.limiter import limiter
from faculty_appraisal.database import get_db
from faculty_appraisal.models.achievement import AchievementKind
from faculty_appraisal.models.user import User
from faculty_appraisal.routers.auth_deps import get_current_user
from faculty_appraisal.schemas.achievement import AchievementCreate, AchievementResponse, AchievementUpdate
from faculty_appraisal.schemas.appraisal import (
    AppealCreate, AppealResponse, AppraisalResponse, ApproveRequest, WorkflowResult,
)
from faculty_appraisal.services import appeals as appeal_service
from faculty_appraisal.services.achievements import AchievementService
from faculty_appraisal.services.workflow import AppraisalWorkflowService

router = APIRouter(prefix="/appraisals", tags=["appraisals"])


@router.get("/current", response_model=AppraisalResponse)
def current_appraisal(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """The caller's appraisal for the active cycle, created on first access."""
    return AppraisalWorkflowService(db).get_or_create_current(current_user)


@router.post("/current/approve", response_model=WorkflowResult)
@limiter.limit(settings.workflow_rate_limit)
def approve_appraisal(
    request: Request,
    body: ApproveRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    appraisal = AppraisalWorkflowService(db).approve(body.appraisal_id, current_user)
    return WorkflowResult(appraisal=AppraisalResponse.model_validate(appraisal))


@router.post("/current/appeal", response_model=WorkflowResult, status_code=201)
@limiter.limit(settings.workflow_rate_limit)
def appeal_appraisal(
    request: Request,
    body: AppealCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    appraisal, appeal = appeal_service.raise_appeal(db, current_user, body.message)
    return WorkflowResult(
        appraisal=AppraisalResponse.model_validate(appraisal),
        appeal=AppealResponse.model_validate(appeal),
    )


@router.get("/current/achievements", response_model=List[AchievementResponse])
def list_achievements(
    kind: Optional[AchievementKind] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return AchievementService(db).list_current(current_user, kind)


@router.post("/current/achievements", response_model=AchievementResponse, status_code=201)
@limiter.limit(settings.workflow_rate_limit)
def add_achievement(
    request: Request,
    body: AchievementCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return AchievementService(db).add(current_user, body)


@router.patch("/current/achievements/{achievement_id}", response_model=AchievementResponse)
@limiter.limit(settings.workflow_rate_limit)
def update_achievement(
    request: Request,
    achievement_id: int,
    body: AchievementUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return AchievementService(db).update(current_user, achievement_id, body)


@router.delete("/current/achievements/{achievement_id}")
@limiter.limit(settings.workflow_rate_limit)
def delete_achievement(
    request: Request,
    achievement_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    AchievementService(db).delete(current_user, achievement_id)
    return {"success": True}
