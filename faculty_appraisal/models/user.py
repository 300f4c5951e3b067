"""
User Model.
Carries the role and org affiliation used by the evaluator access rules.
"""
from sqlalchemy import Column, Integer, String, Enum, DateTime, Boolean, ForeignKey
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum
from faculty_appraisal.database import Base


class UserRole(str, enum.Enum):
    """
    Faculty roles.

    - ADMIN: Manages cycles, grading configuration and appeals
    - DEAN: Evaluates the HODs of the college they manage
    - HOD: Evaluates the instructors of their own department
    - INSTRUCTOR: Appraised faculty member
    """
    ADMIN = "ADMIN"
    DEAN = "DEAN"
    HOD = "HOD"
    INSTRUCTOR = "INSTRUCTOR"


class User(Base):
    __tablename__ = "users"
    
    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    full_name = Column(String, nullable=True)
    
    role = Column(Enum(UserRole), default=UserRole.INSTRUCTOR, nullable=False)
    
    department_id = Column(Integer, ForeignKey("departments.id"), nullable=True, index=True)
    # Only set for deans; unique so a college has at most one managing dean
    managed_college_id = Column(Integer, ForeignKey("colleges.id"), nullable=True, unique=True)
    
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    department = relationship("Department", back_populates="members")
    managed_college = relationship("College", back_populates="dean")
    appraisals = relationship("Appraisal", back_populates="faculty", cascade="all, delete-orphan")
    
    def __repr__(self):
        return f"<User {self.email} ({self.role.value})>"
    
    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
