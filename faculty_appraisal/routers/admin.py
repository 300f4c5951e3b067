from typing import List
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from faculty_appraisal.database import get_db
from faculty_appraisal.models.user import User
from faculty_appraisal.routers.auth_deps import require_admin
from faculty_appraisal.schemas.appraisal import AppealResolve, AppealResponse
from faculty_appraisal.schemas.cycle import CycleCreate, CycleResponse
from faculty_appraisal.schemas.grading import EffectiveGradingConfig, GradingConfigInput
from faculty_appraisal.services import appeals as appeal_service
from faculty_appraisal.services import cycles as cycle_service
from faculty_appraisal.services import grading as grading_service

router = APIRouter(
    prefix="/admin",
    tags=["admin"],
    dependencies=[Depends(require_admin())]
)


@router.post("/cycles", response_model=CycleResponse, status_code=201)
def create_cycle(data: CycleCreate, db: Session = Depends(get_db)):
    return cycle_service.create_cycle(db, data)


@router.get("/cycles", response_model=List[CycleResponse])
def list_cycles(db: Session = Depends(get_db)):
    return cycle_service.list_cycles(db)


@router.post("/cycles/{cycle_id}/activate", response_model=CycleResponse)
def activate_cycle(cycle_id: int, db: Session = Depends(get_db)):
    return cycle_service.activate_cycle(db, cycle_id)


@router.post("/cycles/{cycle_id}/deactivate", response_model=CycleResponse)
def deactivate_cycle(cycle_id: int, db: Session = Depends(get_db)):
    return cycle_service.deactivate_cycle(db, cycle_id)


@router.put("/grading/global", response_model=EffectiveGradingConfig)
def save_global_config(data: GradingConfigInput, db: Session = Depends(get_db)):
    return EffectiveGradingConfig.from_config(grading_service.upsert_global_config(db, data))


@router.put("/grading/cycles/{cycle_id}", response_model=EffectiveGradingConfig)
def save_cycle_config(cycle_id: int, data: GradingConfigInput, db: Session = Depends(get_db)):
    return EffectiveGradingConfig.from_config(grading_service.upsert_cycle_config(db, cycle_id, data))


@router.get("/appeals", response_model=List[AppealResponse])
def list_appeals(
    open_only: bool = Query(False, description="Only appeals that have not been resolved"),
    db: Session = Depends(get_db),
):
    return appeal_service.list_appeals(db, open_only=open_only)


@router.post("/appeals/{appeal_id}/resolve", response_model=AppealResponse)
def resolve_appeal(
    appeal_id: int,
    body: AppealResolve,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin()),
):
    return appeal_service.resolve_appeal(db, appeal_id, current_user, body.resolution_note)
