from datetime import datetime, timezone
from sqlalchemy import Column, Integer, Float, Enum, ForeignKey, DateTime, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from faculty_appraisal.database import Base
import enum


class AppraisalStatus(str, enum.Enum):
    NEW = "new"
    SENT = "sent"
    RETURNED = "returned"
    COMPLETE = "complete"


def _utcnow():
    return datetime.now(timezone.utc)


class Appraisal(Base):
    __tablename__ = "appraisals"
    __table_args__ = (
        UniqueConstraint("faculty_id", "cycle_id", name="uq_appraisal_faculty_cycle"),
    )

    id = Column(Integer, primary_key=True, index=True)
    faculty_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    cycle_id = Column(Integer, ForeignKey("appraisal_cycles.id"), nullable=False, index=True)

    status = Column(
        Enum(AppraisalStatus, name="appraisal_status", values_callable=lambda e: [m.value for m in e]),
        default=AppraisalStatus.NEW,
        nullable=False,
    )

    research_score = Column(Float, nullable=True)
    university_service_score = Column(Float, nullable=True)
    community_service_score = Column(Float, nullable=True)
    teaching_quality_score = Column(Float, nullable=True)
    total_score = Column(Float, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    faculty = relationship("User", back_populates="appraisals")
    cycle = relationship("AppraisalCycle", back_populates="appraisals")
    evaluations = relationship("Evaluation", back_populates="appraisal", cascade="all, delete-orphan")
    appeals = relationship("Appeal", back_populates="appraisal", cascade="all, delete-orphan", order_by="Appeal.created_at")
    signatures = relationship("Signature", back_populates="appraisal", order_by="Signature.signed_at")
    achievements = relationship("Achievement", back_populates="appraisal", cascade="all, delete-orphan", order_by="Achievement.id")

    def __repr__(self):
        return f"<Appraisal {self.id} faculty={self.faculty_id} cycle={self.cycle_id} {self.status.value}>"
