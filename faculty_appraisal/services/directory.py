"""
Organization directory: read-only view of users and their org affiliation.
"""
from dataclasses import dataclass
from typing import Optional
from faculty_appraisal.models.user import User, UserRole


@dataclass(frozen=True)
class Affiliation:
    user_id: int
    role: UserRole
    department_id: Optional[int] = None
    college_id: Optional[int] = None
    managed_college_id: Optional[int] = None


def affiliation_of(user: User) -> Affiliation:
    """Build an Affiliation from an already loaded User row."""
    department = user.department
    return Affiliation(
        user_id=user.id,
        role=user.role,
        department_id=user.department_id,
        college_id=department.college_id if department is not None else None,
        managed_college_id=user.managed_college_id if user.role == UserRole.DEAN else None,
    )
