from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, Float, Date, Enum, ForeignKey, DateTime, JSON
from sqlalchemy.orm import relationship
from faculty_appraisal.database import Base
import enum


class AchievementKind(str, enum.Enum):
    """Kinds of faculty-reported activity recorded against an appraisal."""
    AWARD = "award"
    COURSE = "course"
    RESEARCH = "research"
    SCIENTIFIC = "scientific"
    UNIVERSITY_SERVICE = "university_service"
    COMMUNITY_SERVICE = "community_service"


def _utcnow():
    return datetime.now(timezone.utc)


class Achievement(Base):
    __tablename__ = "achievements"

    id = Column(Integer, primary_key=True, index=True)
    appraisal_id = Column(Integer, ForeignKey("appraisals.id"), nullable=False, index=True)
    kind = Column(
        Enum(AchievementKind, name="achievement_kind", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        index=True,
    )

    # Award name, course title, paper title, or committee/task
    title = Column(String, nullable=False)
    # Granting body, publisher, organizing authority or venue
    organization = Column(String, nullable=True)
    participation = Column(String, nullable=True)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)

    # Research only: PUBLISHED, ACCEPTED, REFEREED_PAPER, ...
    research_kind = Column(String, nullable=True)

    # Courses only
    course_code = Column(String, nullable=True)
    students_count = Column(Integer, nullable=True)
    students_eval_avg = Column(Float, nullable=True)

    details = Column(JSON, nullable=True)

    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    appraisal = relationship("Appraisal", back_populates="achievements")

    def __repr__(self):
        return f"<Achievement {self.id} {self.kind.value} appraisal={self.appraisal_id}>"
