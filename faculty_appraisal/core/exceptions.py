from typing import Any, Dict, Optional

class AppException(Exception):
    def __init__(
        self, 
        message: str, 
        status_code: int = 400, 
        error_code: str = "BUSINESS_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details
        super().__init__(self.message)

class AuthenticationError(AppException):
    def __init__(self, message: str = "Could not validate credentials"):
        super().__init__(
            message=message,
            status_code=401,
            error_code="AUTH_FAILED"
        )

class AccessDeniedError(AppException):
    """Custom permission error. Named AccessDeniedError to avoid shadowing Python's built-in PermissionError."""
    def __init__(self, message: str = "Insufficient permissions"):
        super().__init__(
            message=message,
            status_code=403,
            error_code="PERMISSION_DENIED"
        )

class NotFoundError(AppException):
    def __init__(self, message: str = "Resource not found", error_code: str = "NOT_FOUND"):
        super().__init__(
            message=message,
            status_code=404,
            error_code=error_code
        )

class ConfigNotFoundError(NotFoundError):
    def __init__(self, cycle_id: Optional[int] = None):
        super().__init__(
            message=f"No grading configuration found for cycle {cycle_id}",
            error_code="CONFIG_NOT_FOUND"
        )

class NotActionableError(AppException):
    """Raised when a workflow action is attempted from a state that does not allow it."""
    def __init__(self, message: str = "Appraisal is not in a state that allows this action", details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=409,
            error_code="NOT_ACTIONABLE",
            details=details
        )

class IncompleteEvaluationError(AppException):
    def __init__(self, message: str = "Both sections must have scores before sending."):
        super().__init__(
            message=message,
            status_code=400,
            error_code="INCOMPLETE_EVALUATION"
        )

class ActiveCycleRequiredError(AppException):
    def __init__(self, message: str = "No active appraisal cycle"):
        super().__init__(
            message=message,
            status_code=400,
            error_code="ACTIVE_CYCLE_REQUIRED"
        )
