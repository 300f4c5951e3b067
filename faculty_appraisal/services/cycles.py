import logging
from typing import List, Optional
from sqlalchemy.orm import Session

from faculty_appraisal.core.exceptions import ActiveCycleRequiredError, NotFoundError
from faculty_appraisal.models.appraisal_cycle import AppraisalCycle
from faculty_appraisal.schemas.cycle import CycleCreate

logger = logging.getLogger(__name__)


def create_cycle(db: Session, data: CycleCreate) -> AppraisalCycle:
    cycle = AppraisalCycle(**data.model_dump(), is_active=False)
    db.add(cycle)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(cycle)
    return cycle


def list_cycles(db: Session) -> List[AppraisalCycle]:
    return db.query(AppraisalCycle).order_by(AppraisalCycle.id.desc()).all()


def get_active_cycle(db: Session) -> Optional[AppraisalCycle]:
    return db.query(AppraisalCycle).filter(AppraisalCycle.is_active.is_(True)).first()


def require_active_cycle(db: Session) -> AppraisalCycle:
    cycle = get_active_cycle(db)
    if cycle is None:
        raise ActiveCycleRequiredError()
    return cycle


def _deactivate_all(db: Session) -> None:
    db.query(AppraisalCycle).filter(AppraisalCycle.is_active.is_(True)).update(
        {"is_active": False}, synchronize_session="fetch"
    )


def _mark_active(db: Session, cycle_id: int) -> None:
    db.query(AppraisalCycle).filter(AppraisalCycle.id == cycle_id).update(
        {"is_active": True}, synchronize_session="fetch"
    )


def activate_cycle(db: Session, cycle_id: int) -> AppraisalCycle:
    """
    Make `cycle_id` the only active cycle.
    Deactivate-all and activate-one commit together or not at all.
    """
    cycle = db.query(AppraisalCycle).filter(AppraisalCycle.id == cycle_id).with_for_update().first()
    if cycle is None:
        raise NotFoundError(f"Appraisal cycle {cycle_id} not found")
    try:
        _deactivate_all(db)
        _mark_active(db, cycle_id)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(cycle)
    logger.info(f"Appraisal cycle {cycle_id} activated")
    return cycle


def deactivate_cycle(db: Session, cycle_id: int) -> AppraisalCycle:
    cycle = db.get(AppraisalCycle, cycle_id)
    if cycle is None:
        raise NotFoundError(f"Appraisal cycle {cycle_id} not found")
    cycle.is_active = False
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(cycle)
    return cycle
