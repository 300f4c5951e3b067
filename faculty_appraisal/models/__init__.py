# Models package
# Importing modules here ensures they are registered with SQLAlchemy Base
from . import (
    college, department, user,
    appraisal_cycle, appraisal, evaluation,
    grading_config, appeal, signature, achievement
)

# Explicit class exports for cleaner imports
from .college import College
from .department import Department
from .user import User, UserRole
from .appraisal_cycle import AppraisalCycle
from .appraisal import Appraisal, AppraisalStatus
from .evaluation import Evaluation, EvaluatorRole
from .grading_config import GradingConfig, GradingScope
from .appeal import Appeal
from .signature import Signature
from .achievement import Achievement, AchievementKind

__all__ = [
    "College",
    "Department",
    "User",
    "UserRole",
    "AppraisalCycle",
    "Appraisal",
    "AppraisalStatus",
    "Evaluation",
    "EvaluatorRole",
    "GradingConfig",
    "GradingScope",
    "Appeal",
    "Signature",
    "Achievement",
    "AchievementKind",
]
