from datetime import datetime, timezone
from sqlalchemy import Column, Integer, Float, Enum, ForeignKey, DateTime, JSON
from sqlalchemy.orm import relationship
from faculty_appraisal.database import Base
import enum


class GradingScope(str, enum.Enum):
    GLOBAL = "GLOBAL"
    CYCLE = "CYCLE"


DEFAULT_TEACHING_BANDS = [90, 80, 60, 50]


def _utcnow():
    return datetime.now(timezone.utc)


class GradingConfig(Base):
    __tablename__ = "grading_configs"

    id = Column(Integer, primary_key=True, index=True)
    scope = Column(Enum(GradingScope), default=GradingScope.GLOBAL, nullable=False, index=True)
    cycle_id = Column(Integer, ForeignKey("appraisal_cycles.id"), nullable=True, index=True)

    # Maximum points per category; they sum to 100
    research_weight = Column(Float, nullable=False, default=30)
    university_service_weight = Column(Float, nullable=False, default=20)
    community_service_weight = Column(Float, nullable=False, default=20)
    teaching_quality_weight = Column(Float, nullable=False, default=30)

    service_points_per_item = Column(Float, nullable=False, default=4)
    service_max_points = Column(Float, nullable=False, default=20)

    # Descending student-evaluation thresholds for HIGH/EXCEEDS/MEETS/PARTIAL
    teaching_bands = Column(JSON, nullable=False, default=lambda: list(DEFAULT_TEACHING_BANDS))
    # Optional explicit band -> points table for research
    research_map = Column(JSON, nullable=False, default=dict)

    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    cycle = relationship("AppraisalCycle", back_populates="grading_configs")

    def __repr__(self):
        return f"<GradingConfig {self.scope.value} cycle={self.cycle_id}>"
