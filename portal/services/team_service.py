"""
Team Membership Service
Adds and removes students on a project's team.

Membership rows are never deleted: leaving sets left_at, and adding a
student who left before reactivates the same row.
"""

from typing import Optional
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from portal.core.exceptions import (
    AuthorizationError,
    ConflictError,
    ProjectOperationError,
    StudentNotFoundError,
    TeamMemberNotFoundError,
    ValidationError,
)
from portal.core.logging_config import logger
from portal.models.notification import NotificationType
from portal.models.team import TeamMember, TeamRole
from portal.models.user import Student
from portal.modules.auth.roles import Caller
from portal.schemas.project import TeamMemberAdd
from portal.services.notification_service import NotificationService
from portal.services.project_workflow import get_project_or_404

MANAGE_TEAM_DENIED = "Only the project mentor or lead can manage team members"


class TeamService:
    """Service for team membership operations"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.notifications = NotificationService(db)

    async def get_membership(self, team_id: str, student_id: str) -> Optional[TeamMember]:
        """The (student, team) row, active or not"""
        result = await self.db.execute(
            select(TeamMember).where(
                TeamMember.team_id == team_id,
                TeamMember.student_id == student_id,
            )
        )
        return result.scalar_one_or_none()

    async def add_member(self, caller: Caller, project_id: str, data: TeamMemberAdd) -> TeamMember:
        project = await get_project_or_404(self.db, project_id)

        if not caller.can_manage(project):
            raise AuthorizationError(MANAGE_TEAM_DENIED)

        if not project.team_id:
            raise ValidationError("Project does not have a team")

        if not data.student_id:
            raise ValidationError("Student ID is required", field="studentId")

        result = await self.db.execute(select(Student).where(Student.id == data.student_id))
        student = result.scalar_one_or_none()
        if not student:
            raise StudentNotFoundError(data.student_id)

        # Plain values survive a rollback; ORM attributes would be expired
        team_id = project.team_id
        student_id = student.id
        student_user_id = student.user_id
        message = f"You have been added to the team for the project: {project.title}"
        role = data.role or TeamRole.MEMBER

        try:
            member = await self._upsert(team_id, student_id, role)
            self.notifications.notify(student_user_id, NotificationType.TEAM_UPDATE, message, project_id)
            await self.db.commit()
        except IntegrityError:
            # A concurrent request inserted the same (student, team) pair first
            await self.db.rollback()
            logger.warning(f"Duplicate membership insert for student {student_id} in team {team_id}, retrying")
            try:
                member = await self._upsert(team_id, student_id, role)
                self.notifications.notify(student_user_id, NotificationType.TEAM_UPDATE, message, project_id)
                await self.db.commit()
            except IntegrityError as e:
                await self.db.rollback()
                logger.log_error_with_context(e, "add_team_member")
                raise ProjectOperationError("Failed to add team member", str(e))

        logger.info(f"Student {student_id} joined team {team_id} as {role}")
        return member

    async def _upsert(self, team_id: str, student_id: str, role: str) -> TeamMember:
        existing = await self.get_membership(team_id, student_id)
        if existing is not None:
            if existing.is_active:
                raise ConflictError("Student is already a member of this team")
            existing.rejoin(role)
            await self.db.flush()
            return existing

        member = TeamMember(team_id=team_id, student_id=student_id, role=role)
        self.db.add(member)
        await self.db.flush()
        return member

    async def remove_member(self, caller: Caller, project_id: str, team_member_id: Optional[str]) -> TeamMember:
        project = await get_project_or_404(self.db, project_id)

        if not caller.can_manage(project):
            raise AuthorizationError(MANAGE_TEAM_DENIED)

        if not team_member_id:
            raise ValidationError("Team member ID is required", field="teamMemberId")

        result = await self.db.execute(
            select(TeamMember)
            .options(selectinload(TeamMember.student))
            .where(TeamMember.id == team_member_id)
        )
        member = result.scalar_one_or_none()
        if not member:
            raise TeamMemberNotFoundError(team_member_id)

        if member.team_id != project.team_id:
            raise ValidationError("Team member does not belong to this project")

        if member.student_id == project.lead_id:
            raise ConflictError("Cannot remove the project lead from the team")

        if not member.is_active:
            # Already gone; keep the first left_at
            return member

        member.leave()
        self.notifications.notify(
            member.student.user_id,
            NotificationType.TEAM_UPDATE,
            f"You have been removed from the team for the project: {project.title}",
            project.id,
        )
        await self.db.commit()

        logger.info(f"Removed member {member.id} from team {member.team_id}")
        return member
