from portal.services.email_service import EmailService, email_service
from portal.services.notification_service import NotificationService
from portal.services.project_workflow import ProjectWorkflowService
from portal.services.team_service import TeamService

__all__ = [
    "EmailService",
    "email_service",
    "NotificationService",
    "ProjectWorkflowService",
    "TeamService",
]
