from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from datetime import datetime
from typing import Dict, List, Optional
from faculty_appraisal.models.grading_config import GradingScope, DEFAULT_TEACHING_BANDS
from faculty_appraisal.schemas.evaluation import Band


class GradingConfigInput(BaseModel):
    """Admin payload for the GLOBAL or a CYCLE-scoped grading config."""
    research_weight: float = Field(30, ge=0)
    university_service_weight: float = Field(20, ge=0)
    community_service_weight: float = Field(20, ge=0)
    teaching_quality_weight: float = Field(30, ge=0)
    service_points_per_item: float = Field(4, gt=0)
    service_max_points: float = Field(20, gt=0)
    teaching_bands: List[float] = Field(default_factory=lambda: list(DEFAULT_TEACHING_BANDS))
    research_map: Dict[Band, float] = {}

    @field_validator("teaching_bands")
    @classmethod
    def check_teaching_bands(cls, v: List[float]) -> List[float]:
        if len(v) != 4:
            raise ValueError("teaching_bands must hold 4 thresholds (HIGH, EXCEEDS, MEETS, PARTIAL)")
        if any(t <= 0 or t > 100 for t in v):
            raise ValueError("teaching_bands thresholds must be within (0, 100]")
        if any(a <= b for a, b in zip(v, v[1:])):
            raise ValueError("teaching_bands must be strictly descending")
        return v

    @field_validator("research_map")
    @classmethod
    def check_research_map(cls, v: Dict[Band, float]) -> Dict[Band, float]:
        if any(points < 0 for points in v.values()):
            raise ValueError("research_map points must be non-negative")
        return v

    @model_validator(mode="after")
    def check_weights_total(self):
        total = (
            self.research_weight + self.university_service_weight
            + self.community_service_weight + self.teaching_quality_weight
        )
        if abs(total - 100) > 1e-6:
            raise ValueError(f"category weights must sum to 100 (got {total:g})")
        return self


class CategoryWeights(BaseModel):
    research: float
    university_service: float
    community_service: float
    teaching: float


class ServiceParams(BaseModel):
    points_per_item: float
    max_points: float


class EffectiveGradingConfig(BaseModel):
    id: int
    scope: GradingScope
    cycle_id: Optional[int] = None
    weights: CategoryWeights
    service_params: ServiceParams
    teaching_bands: List[float]
    research_map: Dict[str, float]
    updated_at: Optional[datetime] = None

    @classmethod
    def from_config(cls, config) -> "EffectiveGradingConfig":
        return cls(
            id=config.id,
            scope=config.scope,
            cycle_id=config.cycle_id,
            weights=CategoryWeights(
                research=config.research_weight,
                university_service=config.university_service_weight,
                community_service=config.community_service_weight,
                teaching=config.teaching_quality_weight,
            ),
            service_params=ServiceParams(
                points_per_item=config.service_points_per_item,
                max_points=config.service_max_points,
            ),
            teaching_bands=list(config.teaching_bands or []),
            research_map=dict(config.research_map or {}),
            updated_at=config.updated_at,
        )
