"""
Identity and RBAC dependencies.
The upstream authentication layer forwards the authenticated user's id in a
trusted header; this module only resolves it to a User row.
"""
import logging
from fastapi import Depends, Request
from sqlalchemy.orm import Session
from typing import List, Callable
from faculty_appraisal.core.config import settings
from faculty_appraisal.core.exceptions import AuthenticationError, AccessDeniedError
from faculty_appraisal.database import get_db
from faculty_appraisal.models.user import User, UserRole

logger = logging.getLogger(__name__)


def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    """
    Resolves the acting principal from the identity header.
    """
    raw_id = request.headers.get(settings.identity_header)
    if not raw_id:
        logger.warning("Authentication failed: missing identity header")
        raise AuthenticationError("Not authenticated")
    try:
        user_id = int(raw_id)
    except ValueError:
        logger.warning(f"Authentication failed: malformed identity header {raw_id!r}")
        raise AuthenticationError("Invalid identity")

    user = db.get(User, user_id)
    if user is None:
        logger.warning(f"Authentication failed: user {user_id} not found in database")
        raise AuthenticationError("User not found")
    if not user.is_active:
        logger.warning(f"Authentication failed: user {user_id} is inactive")
        raise AccessDeniedError("User is inactive")
    return user


def require_role(allowed_roles: List[UserRole]) -> Callable:
    """
    Dependency factory that checks if the user has one of the allowed roles.
    
    Usage:
        @router.get("/admin-only")
        def admin_endpoint(user: User = Depends(require_role([UserRole.ADMIN]))):
            ...
    """
    def role_checker(current_user: User = Depends(get_current_user)):
        if current_user.role not in allowed_roles:
            raise AccessDeniedError(f"Access denied. Required roles: {[r.value for r in allowed_roles]}")
        return current_user
    return role_checker


def require_admin():
    """Shorthand for requiring the admin role."""
    return require_role([UserRole.ADMIN])
