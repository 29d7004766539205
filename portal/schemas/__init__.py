# Pydantic schemas
from portal.schemas.base import CamelModel, MessageResponse
from portal.schemas.auth import (
    RegisterRequest,
    RegisterResponse,
    LoginRequest,
    TokenResponse,
    MeResponse,
)
from portal.schemas.project import (
    ProjectCreate,
    ProjectUpdate,
    ApprovalRequest,
    TeamMemberAdd,
    ProjectOut,
    ProjectDetail,
    TeamMemberOut,
    TeamMemberRemoved,
)
from portal.schemas.notification import NotificationOut, NotificationWithProject, ReadAllResponse
from portal.schemas.profile import ProfileOut, ProfileUpdate
