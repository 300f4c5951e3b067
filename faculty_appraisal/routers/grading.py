from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from faculty_appraisal.database import get_db
from faculty_appraisal.models.user import User
from faculty_appraisal.routers.auth_deps import get_current_user
from faculty_appraisal.schemas.grading import EffectiveGradingConfig
from faculty_appraisal.services.grading import resolve_effective_config

router = APIRouter(prefix="/grading", tags=["grading"])


@router.get("/effective", response_model=EffectiveGradingConfig)
def effective_config(
    cycle_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return EffectiveGradingConfig.from_config(resolve_effective_config(db, cycle_id))
