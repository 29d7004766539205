"""
Email Service for the Project Portal
====================================
Sends project lifecycle notifications over SMTP.

Delivery is best-effort: every public method returns True/False and logs
failures instead of raising, so a mail outage never fails the request that
triggered it.
"""

import aiosmtplib
import enum
import html
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from typing import Optional

from portal.core.config import settings
from portal.core.logging_config import logger


class RecipientRole(str, enum.Enum):
    """How the recipient relates to the project in an assignment email"""
    TEAM_LEAD = "TEAM_LEAD"
    MENTOR = "MENTOR"
    PROJECT_LEAD = "PROJECT_LEAD"


ROLE_TEXT = {
    RecipientRole.TEAM_LEAD: "team lead",
    RecipientRole.MENTOR: "mentor",
    RecipientRole.PROJECT_LEAD: "project lead",
}


def build_project_notification(
    project_title: str,
    project_type: str,
    role: RecipientRole,
    status: Optional[str] = None,
    created_by: Optional[str] = None,
    comment: Optional[str] = None,
) -> tuple:
    """Return (subject, text body) for an assignment or decision email"""
    if status:
        subject = f"Project {status.lower()}: {project_title}"
        body = f'Your project "{project_title}" has been {status.lower()} by {created_by}.'
        if comment:
            body += f"\n\nComment: {comment}"
    else:
        subject = f"New Project Assignment: {project_title}"
        body = (
            f"You have been assigned as the {ROLE_TEXT[role]} for the project "
            f'"{project_title}" of type {project_type}.'
        )
    return subject, body


class EmailService:
    """Async email service using SMTP"""

    def __init__(self):
        self.smtp_host = settings.SMTP_HOST
        self.smtp_port = settings.SMTP_PORT
        self.smtp_user = settings.SMTP_USER
        self.smtp_password = settings.SMTP_PASSWORD
        self.start_tls = settings.SMTP_START_TLS
        self.from_email = settings.EMAIL_FROM
        self.from_name = settings.EMAIL_FROM_NAME

    @property
    def is_configured(self) -> bool:
        """Check if email service is properly configured"""
        return bool(self.smtp_user and self.smtp_password)

    async def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None
    ) -> bool:
        """
        Send an email asynchronously.

        Returns True if successful, False otherwise.
        """
        if not self.is_configured:
            logger.warning("[Email] Email service not configured, skipping email send")
            return False

        try:
            message = MIMEMultipart("alternative")
            message["From"] = f"{self.from_name} <{self.from_email}>"
            message["To"] = to_email
            message["Subject"] = subject

            # Plain text first so HTML is preferred by clients
            if text_content:
                message.attach(MIMEText(text_content, "plain"))
            message.attach(MIMEText(html_content, "html"))

            await aiosmtplib.send(
                message,
                hostname=self.smtp_host,
                port=self.smtp_port,
                username=self.smtp_user,
                password=self.smtp_password,
                start_tls=self.start_tls
            )

            logger.info(f"[Email/SMTP] Successfully sent email to {to_email}: {subject}")
            return True

        except Exception as e:
            logger.error(f"[Email/SMTP] Failed to send email to {to_email}: {e}")
            return False

    async def send_project_notification_email(
        self,
        to_email: str,
        project_title: str,
        project_type: str,
        role: RecipientRole,
        status: Optional[str] = None,
        created_by: Optional[str] = None,
        comment: Optional[str] = None,
    ) -> bool:
        """Tell a lead or mentor about a new assignment or a mentor decision"""
        subject, body = build_project_notification(
            project_title, project_type, role, status, created_by, comment
        )

        html_body = html.escape(body).replace("\n", "<br>")
        html_content = f"""
        <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
            <h2 style="color: #1a56db;">Project Notification</h2>
            <p>{html_body}</p>
            <p style="margin-top: 20px; color: #6b7280;">
                This is an automated notification from the Project Portal.
            </p>
        </div>
        """

        return await self.send_email(to_email, subject, html_content, body)


# Singleton instance
email_service = EmailService()
