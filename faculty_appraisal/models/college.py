from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from faculty_appraisal.database import Base


class College(Base):
    __tablename__ = "colleges"
    
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, unique=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    
    departments = relationship("Department", back_populates="college")
    dean = relationship("User", back_populates="managed_college", uselist=False)

    def __repr__(self):
        return f"<College {self.name}>"
