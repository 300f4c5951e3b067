from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from datetime import date, datetime
from typing import Any, Dict, List, Optional
from faculty_appraisal.models.achievement import AchievementKind


def _normalize_code(value: Optional[str]) -> Optional[str]:
    # "refereed paper" / "Refereed-Paper" -> "REFEREED_PAPER"
    if value is None:
        return None
    return value.strip().upper().replace(" ", "_").replace("-", "_") or None


def _check_dates(start: Optional[date], end: Optional[date]) -> None:
    if start and end and end < start:
        raise ValueError("end_date must not be before start_date")


class AchievementFields(BaseModel):
    organization: Optional[str] = Field(None, max_length=300)
    participation: Optional[str] = Field(None, max_length=100)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    research_kind: Optional[str] = Field(None, max_length=50)
    course_code: Optional[str] = Field(None, max_length=50)
    students_count: Optional[int] = Field(None, ge=0)
    students_eval_avg: Optional[float] = Field(None, ge=0, le=100)
    details: Optional[Dict[str, Any]] = None

    @field_validator("research_kind")
    @classmethod
    def normalize_research_kind(cls, v: Optional[str]) -> Optional[str]:
        return _normalize_code(v)


class AchievementCreate(AchievementFields):
    kind: AchievementKind
    title: str = Field(..., min_length=1, max_length=300)

    @model_validator(mode="after")
    def check_consistency(self):
        _check_dates(self.start_date, self.end_date)
        if self.kind != AchievementKind.COURSE and (
            self.students_eval_avg is not None or self.students_count is not None
        ):
            raise ValueError("students_count and students_eval_avg only apply to courses")
        if self.kind != AchievementKind.RESEARCH and self.research_kind is not None:
            raise ValueError("research_kind only applies to research")
        return self


class AchievementUpdate(AchievementFields):
    """Partial update; the kind of an achievement cannot change."""
    title: Optional[str] = Field(None, min_length=1, max_length=300)

    @model_validator(mode="after")
    def check_dates(self):
        _check_dates(self.start_date, self.end_date)
        if "title" in self.model_fields_set and self.title is None:
            raise ValueError("title cannot be cleared")
        return self


class AchievementResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    appraisal_id: int
    kind: AchievementKind
    title: str
    organization: Optional[str] = None
    participation: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    research_kind: Optional[str] = None
    course_code: Optional[str] = None
    students_count: Optional[int] = None
    students_eval_avg: Optional[float] = None
    details: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None


class AchievementSummary(BaseModel):
    """What an evaluator sees before scoring the performance section."""
    appraisal_id: int
    counts: Dict[AchievementKind, int]
    research_by_kind: Dict[str, int]
    teaching_eval_avg: float
    items: Dict[AchievementKind, List[AchievementResponse]]
