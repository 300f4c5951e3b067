"""
Appraisal workflow: the transitions driven by evaluators (send), the appraised
faculty member (approve, appeal) and the evaluator's score saves (recalculate).
"""
from typing import Optional, Tuple
from sqlalchemy.exc import IntegrityError

from faculty_appraisal.core.config import settings
from faculty_appraisal.core.exceptions import (
    AccessDeniedError,
    IncompleteEvaluationError,
    NotActionableError,
    NotFoundError,
)
from faculty_appraisal.models.appeal import Appeal
from faculty_appraisal.models.appraisal import Appraisal, AppraisalStatus
from faculty_appraisal.models.evaluation import Evaluation, EvaluatorRole
from faculty_appraisal.models.user import User
from faculty_appraisal.services import cache
from faculty_appraisal.services.access_control import require_evaluator
from faculty_appraisal.services.appraisal_state import WorkflowAction, apply_transition, can_apply, load_for_update
from faculty_appraisal.services.base import BaseService
from faculty_appraisal.services.cycles import require_active_cycle
from faculty_appraisal.services.scoring import compute_total
from faculty_appraisal.services.signatures import SignatureService


class AppraisalWorkflowService(BaseService):

    def _get_appraisal(self, appraisal_id: int, lock: bool = False) -> Appraisal:
        if lock:
            appraisal = load_for_update(self.db, appraisal_id)
        else:
            appraisal = self.db.get(Appraisal, appraisal_id)
        if appraisal is None:
            raise NotFoundError(f"Appraisal {appraisal_id} not found")
        return appraisal

    def _get_evaluation(self, appraisal_id: int, role: EvaluatorRole) -> Optional[Evaluation]:
        return self.db.query(Evaluation).filter(
            Evaluation.appraisal_id == appraisal_id,
            Evaluation.role == role,
        ).first()

    def get_or_create_current(self, user: User) -> Appraisal:
        """The user's appraisal for the active cycle, created as `new` on first access."""
        cycle = require_active_cycle(self.db)
        appraisal = self.db.query(Appraisal).filter(
            Appraisal.faculty_id == user.id,
            Appraisal.cycle_id == cycle.id,
        ).first()
        if appraisal is not None:
            return appraisal

        appraisal = Appraisal(faculty_id=user.id, cycle_id=cycle.id, status=AppraisalStatus.NEW)
        self.db.add(appraisal)
        try:
            self.db.commit()
        except IntegrityError:
            # Another request created it first
            self.db.rollback()
            return self.db.query(Appraisal).filter(
                Appraisal.faculty_id == user.id,
                Appraisal.cycle_id == cycle.id,
            ).one()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(appraisal)
        self.log_info(f"Created appraisal {appraisal.id} for user {user.id} in cycle {cycle.id}")
        return appraisal

    def apply_totals(self, appraisal: Appraisal, evaluation: Evaluation) -> float:
        """
        Write `evaluation`'s total and category scores onto `appraisal` without
        committing, promoting a `new` appraisal to `sent`. A completed appraisal
        is never re-scored, even if it completed after the caller read it.
        """
        total = compute_total(evaluation)
        scores = {
            "total_score": total,
            "research_score": evaluation.research_pts,
            "university_service_score": evaluation.university_service_pts,
            "community_service_score": evaluation.community_service_pts,
            "teaching_quality_score": evaluation.teaching_quality_pts,
        }
        if can_apply(appraisal.status, WorkflowAction.PROMOTE):
            apply_transition(self.db, appraisal, WorkflowAction.PROMOTE, **scores)
            return total

        updated = (
            self.db.query(Appraisal)
            .filter(Appraisal.id == appraisal.id, Appraisal.status != AppraisalStatus.COMPLETE)
            .update(scores, synchronize_session="fetch")
        )
        if updated != 1:
            raise NotActionableError(
                "A completed appraisal can no longer be re-scored",
                details={"status": AppraisalStatus.COMPLETE.value},
            )
        return total

    def recalculate_total(self, appraisal_id: int, evaluator_role: EvaluatorRole) -> Optional[float]:
        """
        Recompute the appraisal total from this role's evaluation.
        No-op when the role has not saved anything yet.
        """
        evaluation = self._get_evaluation(appraisal_id, evaluator_role)
        if evaluation is None:
            return None
        appraisal = self._get_appraisal(appraisal_id, lock=True)
        try:
            total = self.apply_totals(appraisal, evaluation)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(appraisal)
        return total

    def send(self, appraisal_id: int, acting_user: User) -> Appraisal:
        evaluator_role = require_evaluator(self.db, appraisal_id, acting_user)
        evaluation = self._get_evaluation(appraisal_id, evaluator_role)
        if evaluation is None or not evaluation.is_complete:
            raise IncompleteEvaluationError()

        appraisal = self._get_appraisal(appraisal_id, lock=True)
        try:
            apply_transition(self.db, appraisal, WorkflowAction.SEND)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(appraisal)
        self.log_info(f"Appraisal {appraisal_id} sent by {evaluator_role.value} {acting_user.id}")

        cache.invalidate_path(cache.review_page_path(evaluator_role, appraisal_id))
        return appraisal

    def approve(self, appraisal_id: int, acting_user: User) -> Appraisal:
        appraisal = self._get_appraisal(appraisal_id, lock=True)
        if appraisal.faculty_id != acting_user.id:
            raise AccessDeniedError("You can only approve your own appraisal")
        try:
            apply_transition(self.db, appraisal, WorkflowAction.APPROVE)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(appraisal)
        self.log_info(f"Appraisal {appraisal_id} approved by faculty {acting_user.id}")

        SignatureService.sign(
            self.db,
            appraisal_id=appraisal.id,
            signer_id=acting_user.id,
            signer_role=acting_user.role.value,
            note="Approved",
        )
        return appraisal

    def _create_appeal(self, appraisal: Appraisal, acting_user: User, message: str) -> Appeal:
        appeal = Appeal(appraisal_id=appraisal.id, by_user_id=acting_user.id, message=message)
        self.db.add(appeal)
        self.db.flush()
        return appeal

    def raise_appeal(self, acting_user: User, message: Optional[str] = None) -> Tuple[Appraisal, Appeal]:
        """
        Return the caller's `sent` appraisal for the active cycle and record why.
        The status change and the Appeal row commit together or not at all.
        """
        cycle = require_active_cycle(self.db)
        appraisal = self.db.query(Appraisal).filter(
            Appraisal.faculty_id == acting_user.id,
            Appraisal.cycle_id == cycle.id,
        ).with_for_update().first()
        if appraisal is None:
            raise NotActionableError("You have no appraisal in the active cycle to appeal")

        limit = settings.max_appeals_per_appraisal
        if limit and self.db.query(Appeal).filter(Appeal.appraisal_id == appraisal.id).count() >= limit:
            raise NotActionableError(f"This appraisal has already been appealed {limit} time(s)")

        try:
            apply_transition(self.db, appraisal, WorkflowAction.APPEAL)
            appeal = self._create_appeal(appraisal, acting_user, message or "")
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(appraisal)
        self.db.refresh(appeal)
        self.log_info(f"Appeal {appeal.id} raised on appraisal {appraisal.id}")
        return appraisal, appeal
