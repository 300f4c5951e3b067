from datetime import datetime, timezone
from sqlalchemy import Column, Integer, Text, ForeignKey, DateTime
from sqlalchemy.orm import relationship
from faculty_appraisal.database import Base


def _utcnow():
    return datetime.now(timezone.utc)


class Appeal(Base):
    __tablename__ = "appeals"

    id = Column(Integer, primary_key=True, index=True)
    appraisal_id = Column(Integer, ForeignKey("appraisals.id"), nullable=False, index=True)
    by_user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    message = Column(Text, nullable=False, default="")
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    # Set once by an administrator; never cleared
    resolved_at = Column(DateTime(timezone=True), nullable=True)
    resolution_note = Column(Text, nullable=True)
    resolved_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)

    appraisal = relationship("Appraisal", back_populates="appeals")
    by_user = relationship("User", foreign_keys=[by_user_id])

    @property
    def is_resolved(self) -> bool:
        return self.resolved_at is not None
