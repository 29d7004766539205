"""
Custom Exceptions for the Project Portal
========================================

Raise these from services and dependencies instead of building HTTP
responses by hand. The handler registered in ``portal.main`` renders every
``PortalError`` as ``{"error": ..., "code": ..., "details": ...}`` with the
status code carried by the exception class.

Usage:
    from portal.core.exceptions import ProjectNotFoundError, AuthorizationError

    if not project:
        raise ProjectNotFoundError(project_id)

    if not caller.is_mentor_of(project):
        raise AuthorizationError("Only the project mentor can approve or reject the project")
"""

from typing import Optional, Any, Dict


class PortalError(Exception):
    """Base exception for all portal errors"""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: Optional[Any] = None
    ):
        self.message = message
        self.code = code
        self.details = details if details is not None else {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.message,
            "code": self.code,
            "details": self.details
        }


# ============================================
# Authentication & Authorization Errors
# ============================================

class AuthenticationError(PortalError):
    """No resolvable identity for the request"""

    status_code = 401

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message, code="AUTH_FAILED")


class InvalidTokenError(AuthenticationError):
    """JWT token is invalid or expired"""

    def __init__(self, message: str = "Could not validate credentials"):
        super().__init__(message)
        self.code = "INVALID_TOKEN"


class AuthorizationError(PortalError):
    """Authenticated, but without the required relationship to the resource"""

    status_code = 403

    def __init__(self, message: str = "Not authorized"):
        super().__init__(message, code="NOT_AUTHORIZED")


# ============================================
# Resource Errors (404-type)
# ============================================

class ResourceNotFoundError(PortalError):
    """Base class for not found errors"""

    status_code = 404

    def __init__(self, resource_type: str, resource_id: Optional[str] = None, message: Optional[str] = None):
        super().__init__(
            message or f"{resource_type} not found",
            code=f"{resource_type.upper().replace(' ', '_')}_NOT_FOUND",
            details={"resource_type": resource_type, "resource_id": resource_id}
        )


class UserNotFoundError(ResourceNotFoundError):
    def __init__(self, user_id: Optional[str] = None):
        super().__init__("User", user_id)


class StudentNotFoundError(ResourceNotFoundError):
    def __init__(self, student_id: Optional[str] = None, message: str = "Student not found"):
        super().__init__("Student", student_id, message)


class TeacherNotFoundError(ResourceNotFoundError):
    def __init__(self, teacher_id: Optional[str] = None, message: str = "Teacher not found"):
        super().__init__("Teacher", teacher_id, message)


class ProjectNotFoundError(ResourceNotFoundError):
    def __init__(self, project_id: Optional[str] = None):
        super().__init__("Project", project_id)


class TeamMemberNotFoundError(ResourceNotFoundError):
    def __init__(self, team_member_id: Optional[str] = None):
        super().__init__("Team member", team_member_id)


class NotificationNotFoundError(ResourceNotFoundError):
    def __init__(self, notification_id: Optional[str] = None):
        super().__init__("Notification", notification_id)


# ============================================
# Validation Errors (400-type)
# ============================================

class ValidationError(PortalError):
    """Input validation failed"""

    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(message, code="VALIDATION_ERROR", details=details)


class ConflictError(ValidationError):
    """Request conflicts with current state (reported as 400)"""

    def __init__(self, message: str):
        super().__init__(message)
        self.code = "CONFLICT"


# ============================================
# Workflow Errors (500-type)
# ============================================

class ProjectOperationError(PortalError):
    """A multi-step project operation failed and was rolled back"""

    status_code = 500

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message, code="PROJECT_OPERATION_FAILED", details=details or "Unknown error")
