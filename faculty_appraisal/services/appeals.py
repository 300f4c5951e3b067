import logging
from datetime import datetime, timezone
from typing import List, Optional, Tuple
from sqlalchemy.orm import Session

from faculty_appraisal.core.exceptions import AccessDeniedError, NotActionableError, NotFoundError
from faculty_appraisal.models.appeal import Appeal
from faculty_appraisal.models.appraisal import Appraisal
from faculty_appraisal.models.user import User
from faculty_appraisal.services.workflow import AppraisalWorkflowService

logger = logging.getLogger(__name__)


def raise_appeal(db: Session, acting_user: User, message: Optional[str] = None) -> Tuple[Appraisal, Appeal]:
    return AppraisalWorkflowService(db).raise_appeal(acting_user, message)


def list_appeals(db: Session, open_only: bool = False) -> List[Appeal]:
    query = db.query(Appeal)
    if open_only:
        query = query.filter(Appeal.resolved_at.is_(None))
    return query.order_by(Appeal.created_at.desc(), Appeal.id.desc()).all()


def resolve_appeal(db: Session, appeal_id: int, administrator: User, resolution_note: Optional[str] = None) -> Appeal:
    """
    Close an appeal with a note. Leaves the appraisal status alone: the
    evaluator's next Send moves it back to `sent`.
    """
    if not administrator.is_admin:
        raise AccessDeniedError("Only administrators can resolve appeals")

    appeal = db.query(Appeal).filter(Appeal.id == appeal_id).with_for_update().first()
    if appeal is None:
        raise NotFoundError(f"Appeal {appeal_id} not found")

    updated = (
        db.query(Appeal)
        .filter(Appeal.id == appeal_id, Appeal.resolved_at.is_(None))
        .update(
            {
                "resolved_at": datetime.now(timezone.utc),
                "resolution_note": resolution_note,
                "resolved_by_id": administrator.id,
            },
            synchronize_session="fetch",
        )
    )
    if updated != 1:
        db.rollback()
        raise NotActionableError(f"Appeal {appeal_id} is already resolved")
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(appeal)
    logger.info(f"Appeal {appeal_id} resolved by admin {administrator.id}")
    return appeal
