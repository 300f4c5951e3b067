from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, Text, ForeignKey, DateTime
from sqlalchemy.orm import relationship
from faculty_appraisal.database import Base


def _utcnow():
    return datetime.now(timezone.utc)


class Signature(Base):
    """Append-only sign-off trail for an appraisal."""
    __tablename__ = "signatures"

    id = Column(Integer, primary_key=True, index=True)
    appraisal_id = Column(Integer, ForeignKey("appraisals.id"), nullable=False, index=True)
    signer_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    signer_role = Column(String, nullable=False)
    note = Column(Text, nullable=True)
    signed_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    appraisal = relationship("Appraisal", back_populates="signatures")
