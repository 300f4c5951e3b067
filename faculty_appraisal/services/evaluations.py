"""
Evaluator entry: saving the performance and capabilities sections of an
evaluation. A save writes the evaluation and re-runs the appraisal total in one
transaction, under the appraisal's row lock.
"""
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy.exc import IntegrityError

from faculty_appraisal.core.exceptions import NotActionableError, NotFoundError
from faculty_appraisal.models.achievement import AchievementKind
from faculty_appraisal.models.appraisal import Appraisal, AppraisalStatus
from faculty_appraisal.models.evaluation import Evaluation, EvaluatorRole
from faculty_appraisal.models.user import User
from faculty_appraisal.schemas.evaluation import CapabilitiesSectionInput, PerformanceSectionInput
from faculty_appraisal.services import cache
from faculty_appraisal.services.access_control import require_evaluator
from faculty_appraisal.services.achievements import achievement_counts, teaching_average
from faculty_appraisal.services.appraisal_state import load_for_update
from faculty_appraisal.services.base import BaseService
from faculty_appraisal.services.grading import resolve_effective_config
from faculty_appraisal.services.scoring import score_capabilities, score_performance
from faculty_appraisal.services.workflow import AppraisalWorkflowService


def _merge_rubric(existing: Any, patch: Dict[str, Any]) -> Dict[str, Any]:
    base = dict(existing) if isinstance(existing, dict) else {}
    base.update(patch)
    return base


class EvaluationService(BaseService):

    def get(self, appraisal_id: int, acting_user: User) -> Optional[Evaluation]:
        role = require_evaluator(self.db, appraisal_id, acting_user)
        return self._find(appraisal_id, role)

    def _find(self, appraisal_id: int, role: EvaluatorRole) -> Optional[Evaluation]:
        return self.db.query(Evaluation).filter(
            Evaluation.appraisal_id == appraisal_id,
            Evaluation.role == role,
        ).first()

    def _editable_appraisal(self, appraisal_id: int) -> Appraisal:
        """Row-locked read; the lock is held until the save commits."""
        appraisal = load_for_update(self.db, appraisal_id)
        if appraisal is None:
            raise NotFoundError(f"Appraisal {appraisal_id} not found")
        if appraisal.status == AppraisalStatus.COMPLETE:
            self.db.rollback()
            raise NotActionableError("A completed appraisal can no longer be re-scored")
        return appraisal

    def _write(
        self,
        appraisal_id: int,
        role: EvaluatorRole,
        acting_user: User,
        values: Dict[str, Any],
        rubric_patch: Optional[Dict[str, Any]] = None,
    ) -> Evaluation:
        appraisal = self._editable_appraisal(appraisal_id)
        try:
            evaluation = self._find(appraisal_id, role)
            if evaluation is None:
                evaluation = Evaluation(appraisal_id=appraisal_id, role=role)
                self.db.add(evaluation)
            if rubric_patch is not None:
                values = {**values, "rubric": _merge_rubric(evaluation.rubric, rubric_patch)}
            values = {**values, "computed_by_id": acting_user.id, "computed_at": datetime.now(timezone.utc)}
            for field, value in values.items():
                setattr(evaluation, field, value)
            self.db.flush()
            AppraisalWorkflowService(self.db).apply_totals(appraisal, evaluation)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return evaluation

    def _save(
        self,
        appraisal_id: int,
        role: EvaluatorRole,
        acting_user: User,
        values: Dict[str, Any],
        rubric_patch: Optional[Dict[str, Any]] = None,
    ) -> Evaluation:
        try:
            evaluation = self._write(appraisal_id, role, acting_user, values, rubric_patch)
        except IntegrityError:
            # Lost a creation race on (appraisal_id, role); the winner's row now exists
            evaluation = self._write(appraisal_id, role, acting_user, values, rubric_patch)
        self.db.refresh(evaluation)
        cache.invalidate_path(cache.review_page_path(role, appraisal_id))
        return evaluation

    def save_performance(self, appraisal_id: int, acting_user: User, data: PerformanceSectionInput) -> Evaluation:
        role = require_evaluator(self.db, appraisal_id, acting_user)
        appraisal = self.db.get(Appraisal, appraisal_id)
        config = resolve_effective_config(self.db, appraisal.cycle_id)

        counts = achievement_counts(self.db, appraisal_id)
        university = data.university_service_count
        if university is None:
            university = counts[AchievementKind.UNIVERSITY_SERVICE]
        community = data.community_service_count
        if community is None:
            community = counts[AchievementKind.COMMUNITY_SERVICE]
        teaching = data.teaching_eval_avg
        if teaching is None:
            teaching = teaching_average(self.db, appraisal_id)

        values = score_performance(
            research_band=data.research_band,
            university_service_count=university,
            community_service_count=community,
            teaching_eval_avg=teaching,
            config=config,
        )
        if data.notes is not None:
            values["notes"] = data.notes

        evaluation = self._save(appraisal_id, role, acting_user, values)
        self.log_info(f"Performance section saved for appraisal {appraisal_id} by {role.value}")
        return evaluation

    def save_capabilities(self, appraisal_id: int, acting_user: User, data: CapabilitiesSectionInput) -> Evaluation:
        role = require_evaluator(self.db, appraisal_id, acting_user)

        total, overall, selections = score_capabilities(data.selections)
        values = {
            "capabilities_pts": total,
            "capabilities_band": overall.value,
        }
        rubric_patch = {
            "capabilities": {
                "total": total,
                "overall_band": overall.value,
                "selections": selections,
                "note": data.note,
            }
        }

        evaluation = self._save(appraisal_id, role, acting_user, values, rubric_patch)
        self.log_info(f"Capabilities section saved for appraisal {appraisal_id} by {role.value}")
        return evaluation
