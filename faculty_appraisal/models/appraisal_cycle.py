from sqlalchemy import Column, Integer, String, Date, Boolean, DateTime, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from faculty_appraisal.database import Base


class AppraisalCycle(Base):
    __tablename__ = "appraisal_cycles"
    __table_args__ = (
        UniqueConstraint("academic_year", "semester", name="uq_cycle_year_semester"),
    )

    id = Column(Integer, primary_key=True, index=True)
    academic_year = Column(String, nullable=False)  # e.g. "2024-2025"
    semester = Column(String, nullable=False)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    # At most one cycle is active system-wide; see services.cycles.activate_cycle
    is_active = Column(Boolean, default=False, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    appraisals = relationship("Appraisal", back_populates="cycle")
    grading_configs = relationship("GradingConfig", back_populates="cycle")

    def __repr__(self):
        return f"<AppraisalCycle {self.academic_year} {self.semester}{' (active)' if self.is_active else ''}>"
