"""
Faculty-reported achievements on the caller's current appraisal, and the
aggregates evaluators score from: service counts and the teaching average.
"""
from collections import Counter
from typing import Dict, List, Optional
from sqlalchemy.orm import Session

from faculty_appraisal.core.exceptions import AppException, NotActionableError, NotFoundError
from faculty_appraisal.models.achievement import Achievement, AchievementKind
from faculty_appraisal.models.appraisal import Appraisal, AppraisalStatus
from faculty_appraisal.models.user import User
from faculty_appraisal.schemas.achievement import (
    AchievementCreate, AchievementResponse, AchievementSummary, AchievementUpdate,
)
from faculty_appraisal.services.base import BaseService
from faculty_appraisal.services.workflow import AppraisalWorkflowService


def _for_appraisal(db: Session, appraisal_id: int, kind: Optional[AchievementKind] = None) -> List[Achievement]:
    query = db.query(Achievement).filter(Achievement.appraisal_id == appraisal_id)
    if kind is not None:
        query = query.filter(Achievement.kind == kind)
    return query.order_by(Achievement.id.desc()).all()


def achievement_counts(db: Session, appraisal_id: int) -> Dict[AchievementKind, int]:
    """Number of recorded items per kind; kinds with nothing recorded map to 0."""
    counts = Counter(a.kind for a in _for_appraisal(db, appraisal_id))
    return {kind: counts.get(kind, 0) for kind in AchievementKind}


def teaching_average(db: Session, appraisal_id: int) -> float:
    """Mean student evaluation over the recorded courses; 0 without courses. Unrated courses count as 0."""
    courses = _for_appraisal(db, appraisal_id, AchievementKind.COURSE)
    if not courses:
        return 0.0
    return sum(c.students_eval_avg or 0 for c in courses) / len(courses)


def summarize(db: Session, appraisal_id: int) -> AchievementSummary:
    items = _for_appraisal(db, appraisal_id)
    grouped: Dict[AchievementKind, List[AchievementResponse]] = {kind: [] for kind in AchievementKind}
    for item in items:
        grouped[item.kind].append(AchievementResponse.model_validate(item))
    research = Counter(
        item.research_kind or "OTHER" for item in items if item.kind == AchievementKind.RESEARCH
    )
    return AchievementSummary(
        appraisal_id=appraisal_id,
        counts={kind: len(grouped[kind]) for kind in AchievementKind},
        research_by_kind=dict(research),
        teaching_eval_avg=round(teaching_average(db, appraisal_id), 2),
        items=grouped,
    )


class AchievementService(BaseService):

    def _current(self, user: User) -> Appraisal:
        return AppraisalWorkflowService(self.db).get_or_create_current(user)

    def _editable_current(self, user: User) -> Appraisal:
        appraisal = self._current(user)
        if appraisal.status == AppraisalStatus.COMPLETE:
            raise NotActionableError("A completed appraisal can no longer be changed")
        return appraisal

    def _owned(self, appraisal: Appraisal, achievement_id: int) -> Achievement:
        achievement = self.db.get(Achievement, achievement_id)
        # Items of other appraisals are reported as missing, not forbidden
        if achievement is None or achievement.appraisal_id != appraisal.id:
            raise NotFoundError(f"Achievement {achievement_id} not found")
        return achievement

    def list_current(self, user: User, kind: Optional[AchievementKind] = None) -> List[Achievement]:
        return _for_appraisal(self.db, self._current(user).id, kind)

    def add(self, user: User, data: AchievementCreate) -> Achievement:
        appraisal = self._editable_current(user)
        achievement = Achievement(appraisal_id=appraisal.id, **data.model_dump())
        self.db.add(achievement)
        self.commit()
        self.db.refresh(achievement)
        self.log_info(f"Achievement {achievement.id} ({achievement.kind.value}) added to appraisal {appraisal.id}")
        return achievement

    def update(self, user: User, achievement_id: int, data: AchievementUpdate) -> Achievement:
        appraisal = self._editable_current(user)
        achievement = self._owned(appraisal, achievement_id)
        changes = data.model_dump(exclude_unset=True)

        if achievement.kind != AchievementKind.COURSE and (
            changes.get("students_count") is not None or changes.get("students_eval_avg") is not None
        ):
            raise AppException("students_count and students_eval_avg only apply to courses", error_code="INVALID_ACHIEVEMENT")
        if achievement.kind != AchievementKind.RESEARCH and changes.get("research_kind") is not None:
            raise AppException("research_kind only applies to research", error_code="INVALID_ACHIEVEMENT")
        start = changes.get("start_date", achievement.start_date)
        end = changes.get("end_date", achievement.end_date)
        if start and end and end < start:
            raise AppException("end_date must not be before start_date", error_code="INVALID_ACHIEVEMENT")

        for field, value in changes.items():
            setattr(achievement, field, value)
        self.commit()
        self.db.refresh(achievement)
        return achievement

    def delete(self, user: User, achievement_id: int) -> None:
        appraisal = self._editable_current(user)
        achievement = self._owned(appraisal, achievement_id)
        self.db.delete(achievement)
        self.commit()
        self.log_info(f"Achievement {achievement_id} removed from appraisal {appraisal.id}")
