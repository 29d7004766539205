# Re-export all models for convenient imports
from portal.models.user import User, UserRole, Student, Teacher, Experience, Certification
from portal.models.team import Team, TeamMember, TeamRole, MembershipState
from portal.models.project import (
    Project,
    ProjectType,
    ProjectStatus,
    ApprovalStatus,
    Approval,
    ResearchPaper,
    Media,
)
from portal.models.notification import Notification, NotificationType

__all__ = [
    # User
    "User",
    "UserRole",
    "Student",
    "Teacher",
    "Experience",
    "Certification",
    # Team
    "Team",
    "TeamMember",
    "TeamRole",
    "MembershipState",
    # Project
    "Project",
    "ProjectType",
    "ProjectStatus",
    "ApprovalStatus",
    "Approval",
    "ResearchPaper",
    "Media",
    # Notification
    "Notification",
    "NotificationType",
]
