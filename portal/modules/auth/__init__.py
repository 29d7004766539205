# Authentication module

from portal.modules.auth.dependencies import get_current_user, get_caller
from portal.modules.auth.roles import Caller, StudentRole, TeacherRole, Role

__all__ = [
    "get_current_user",
    "get_caller",
    "Caller",
    "StudentRole",
    "TeacherRole",
    "Role",
]
