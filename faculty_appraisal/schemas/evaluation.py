from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import Any, Dict, Optional
import enum
from faculty_appraisal.models.evaluation import EvaluatorRole


class Band(str, enum.Enum):
    HIGH = "HIGH"
    EXCEEDS = "EXCEEDS"
    MEETS = "MEETS"
    PARTIAL = "PARTIAL"
    NEEDS = "NEEDS"


class CapabilitiesRubric(BaseModel):
    """Typed view of rubric["capabilities"]; only the numeric total is read."""
    # Sibling keys (overall_band, selections, note) are display data and may hold anything
    model_config = ConfigDict(extra="ignore")

    total: float = Field(..., strict=True, allow_inf_nan=False)


class EvaluationRubric(BaseModel):
    # Other rubric keys are carried through untouched
    model_config = ConfigDict(extra="allow")

    capabilities: Optional[CapabilitiesRubric] = None


class PerformanceSectionInput(BaseModel):
    research_band: Band
    # Left out, these are taken from the achievements the faculty member recorded
    university_service_count: Optional[int] = Field(None, ge=0)
    community_service_count: Optional[int] = Field(None, ge=0)
    teaching_eval_avg: Optional[float] = Field(None, ge=0, le=100)
    notes: Optional[str] = None


class CapabilitiesSelections(BaseModel):
    institutional_commitment: Optional[Band] = None
    collaboration_teamwork: Optional[Band] = None
    professionalism: Optional[Band] = None
    client_service: Optional[Band] = None
    achieving_results: Optional[Band] = None
    customer_service: Optional[Band] = None
    leading_individuals: Optional[Band] = None
    leading_change: Optional[Band] = None
    strategic_vision: Optional[Band] = None


class CapabilitiesSectionInput(BaseModel):
    selections: CapabilitiesSelections = CapabilitiesSelections()
    note: Optional[str] = None


class EvaluationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    appraisal_id: int
    role: EvaluatorRole
    performance_pts: Optional[float] = None
    research_pts: Optional[float] = None
    research_band: Optional[str] = None
    university_service_pts: Optional[float] = None
    university_service_band: Optional[str] = None
    community_service_pts: Optional[float] = None
    community_service_band: Optional[str] = None
    teaching_quality_pts: Optional[float] = None
    teaching_quality_band: Optional[str] = None
    capabilities_pts: Optional[float] = None
    capabilities_band: Optional[str] = None
    rubric: Optional[Dict[str, Any]] = None
    computed_at: Optional[datetime] = None


class AccessResponse(BaseModel):
    authorized: bool
    evaluator_role: Optional[EvaluatorRole] = None
