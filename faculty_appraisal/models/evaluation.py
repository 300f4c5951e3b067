from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, Float, Enum, ForeignKey, DateTime, JSON, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from faculty_appraisal.database import Base
import enum


class EvaluatorRole(str, enum.Enum):
    HOD = "HOD"
    DEAN = "DEAN"


def _utcnow():
    return datetime.now(timezone.utc)


class Evaluation(Base):
    """One evaluator role's scored input into an appraisal."""
    __tablename__ = "evaluations"
    __table_args__ = (
        UniqueConstraint("appraisal_id", "role", name="uq_evaluation_appraisal_role"),
    )

    id = Column(Integer, primary_key=True, index=True)
    appraisal_id = Column(Integer, ForeignKey("appraisals.id"), nullable=False, index=True)
    role = Column(Enum(EvaluatorRole), nullable=False)

    # Section 1: performance (sum of the four category points)
    performance_pts = Column(Float, nullable=True)
    research_pts = Column(Float, nullable=True)
    research_band = Column(String, nullable=True)
    university_service_pts = Column(Float, nullable=True)
    university_service_band = Column(String, nullable=True)
    community_service_pts = Column(Float, nullable=True)
    community_service_band = Column(String, nullable=True)
    teaching_quality_pts = Column(Float, nullable=True)
    teaching_quality_band = Column(String, nullable=True)

    # Section 2: capabilities
    capabilities_pts = Column(Float, nullable=True)
    capabilities_band = Column(String, nullable=True)

    # Free-form rubric payload; capabilities subtotal lives at rubric["capabilities"]["total"]
    rubric = Column(JSON, nullable=True)
    notes = Column(Text, nullable=True)

    computed_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    computed_at = Column(DateTime(timezone=True), nullable=True)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    appraisal = relationship("Appraisal", back_populates="evaluations")

    @property
    def is_complete(self) -> bool:
        """Both sections have been scored."""
        return self.performance_pts is not None and self.capabilities_pts is not None
