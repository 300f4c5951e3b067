"""
Grading configuration resolution and administration.
A cycle-scoped config always wins over the GLOBAL one; within a scope the most
recently updated row wins.
"""
import logging
from typing import Optional
from sqlalchemy import case, or_, and_
from sqlalchemy.orm import Session

from faculty_appraisal.core.exceptions import ConfigNotFoundError, NotFoundError
from faculty_appraisal.models.appraisal_cycle import AppraisalCycle
from faculty_appraisal.models.grading_config import GradingConfig, GradingScope
from faculty_appraisal.schemas.grading import GradingConfigInput

logger = logging.getLogger(__name__)


def resolve_effective_config(db: Session, cycle_id: int) -> GradingConfig:
    config = (
        db.query(GradingConfig)
        .filter(
            or_(
                and_(GradingConfig.scope == GradingScope.CYCLE, GradingConfig.cycle_id == cycle_id),
                GradingConfig.scope == GradingScope.GLOBAL,
            )
        )
        .order_by(
            case((GradingConfig.scope == GradingScope.CYCLE, 0), else_=1),
            GradingConfig.updated_at.desc(),
            GradingConfig.id.desc(),
        )
        .first()
    )
    if config is None:
        raise ConfigNotFoundError(cycle_id)
    return config


def _apply(config: GradingConfig, data: GradingConfigInput) -> GradingConfig:
    payload = data.model_dump(mode="json")
    for field, value in payload.items():
        setattr(config, field, value)
    return config


def upsert_global_config(db: Session, data: GradingConfigInput) -> GradingConfig:
    """Update the authoritative GLOBAL config, creating it when none exists."""
    config = (
        db.query(GradingConfig)
        .filter(GradingConfig.scope == GradingScope.GLOBAL)
        .order_by(GradingConfig.updated_at.desc(), GradingConfig.id.desc())
        .first()
    )
    if config is None:
        config = GradingConfig(scope=GradingScope.GLOBAL, cycle_id=None)
        db.add(config)
    _apply(config, data)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(config)
    logger.info(f"Global grading config {config.id} saved")
    return config


def upsert_cycle_config(db: Session, cycle_id: int, data: GradingConfigInput) -> GradingConfig:
    if db.get(AppraisalCycle, cycle_id) is None:
        raise NotFoundError(f"Appraisal cycle {cycle_id} not found")
    config: Optional[GradingConfig] = (
        db.query(GradingConfig)
        .filter(GradingConfig.scope == GradingScope.CYCLE, GradingConfig.cycle_id == cycle_id)
        .first()
    )
    if config is None:
        config = GradingConfig(scope=GradingScope.CYCLE, cycle_id=cycle_id)
        db.add(config)
    _apply(config, data)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(config)
    logger.info(f"Grading config {config.id} saved for cycle {cycle_id}")
    return config
