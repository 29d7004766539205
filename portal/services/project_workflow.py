"""
Project Workflow Service
========================
Business rules for the project lifecycle:

- creation by a teacher (APPROVED, names a lead) or a student (PENDING, names a mentor)
- mentor approval / rejection with an append-only Approval trail
- updates by mentor or lead, including research paper and media sync
- deletion by mentor, lead or any teacher

Every multi-table write happens in one transaction. Emails go out only after
the commit and never fail the operation.
"""

from typing import List, Optional
from sqlalchemy import select, update, delete, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from portal.core.exceptions import (
    AuthorizationError,
    ProjectNotFoundError,
    ProjectOperationError,
    StudentNotFoundError,
    TeacherNotFoundError,
    ValidationError,
)
from portal.core.logging_config import logger
from portal.models.notification import NotificationType
from portal.models.project import (
    Approval,
    ApprovalStatus,
    Media,
    Project,
    ProjectStatus,
    ResearchPaper,
)
from portal.models.team import Team, TeamMember, TeamRole
from portal.models.user import Student, Teacher
from portal.modules.auth.roles import Caller
from portal.schemas.project import (
    ApprovalRequest,
    MediaIn,
    ProjectCreate,
    ProjectUpdate,
    ResearchPaperIn,
    parse_ids,
    parse_items,
)
from portal.services.email_service import RecipientRole, email_service
from portal.services.notification_service import NotificationService


# Scalar fields that may be cleared by sending null
NULLABLE_FIELDS = ("github_link", "start_date", "end_date")
# Scalar fields that ignore null
REQUIRED_FIELDS = ("title", "description", "type")


def project_detail_options():
    """Loader options for a project with everything the detail view renders"""
    return [
        selectinload(Project.lead).selectinload(Student.user),
        selectinload(Project.mentor).selectinload(Teacher.user),
        selectinload(Project.team)
        .selectinload(Team.members)
        .selectinload(TeamMember.student)
        .selectinload(Student.user),
        selectinload(Project.approvals),
        selectinload(Project.research_papers),
        selectinload(Project.media),
    ]


async def get_project_or_404(db: AsyncSession, project_id: str, *options) -> Project:
    result = await db.execute(
        select(Project).options(*options).where(Project.id == project_id)
    )
    project = result.scalar_one_or_none()
    if not project:
        raise ProjectNotFoundError(project_id)
    return project


class ProjectWorkflowService:
    """Service for project lifecycle operations"""

    def __init__(self, db: AsyncSession, mailer=None):
        self.db = db
        self.mailer = mailer or email_service
        self.notifications = NotificationService(db)

    # =====================================================
    # QUERIES
    # =====================================================

    async def list_projects(self, caller: Caller, scope: str = "all") -> List[Project]:
        """
        'all': every project past the PENDING stage.
        'my': projects the caller mentors, leads, or is an active member of.
        """
        stmt = (
            select(Project)
            .options(*project_detail_options())
            .order_by(Project.created_at.desc())
        )

        if scope == "my":
            conditions = []
            if caller.teacher is not None:
                conditions.append(Project.mentor_id == caller.teacher.id)
            if caller.student is not None:
                member_of = select(TeamMember.team_id).where(
                    TeamMember.student_id == caller.student.id,
                    TeamMember.left_at.is_(None),
                )
                conditions.append(Project.lead_id == caller.student.id)
                conditions.append(Project.team_id.in_(member_of))
            if not conditions:
                return []
            stmt = stmt.where(or_(*conditions))
        else:
            stmt = stmt.where(Project.status != ProjectStatus.PENDING)

        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def get_project_detail(self, project_id: str) -> Project:
        result = await self.db.execute(
            select(Project)
            .options(*project_detail_options())
            .where(Project.id == project_id)
            .execution_options(populate_existing=True)
        )
        project = result.scalar_one_or_none()
        if not project:
            raise ProjectNotFoundError(project_id)
        return project

    # =====================================================
    # CREATION
    # =====================================================

    async def create_project(self, caller: Caller, data: ProjectCreate) -> Project:
        if not data.title or not data.description or not data.type:
            raise ValidationError("Missing required fields: title, description, and type are required")

        teacher_creating = caller.is_teacher and bool(data.team_lead_id)
        student_creating = caller.is_student and bool(data.mentor_id)

        if teacher_creating == student_creating:
            if not teacher_creating:
                if caller.is_teacher and not data.team_lead_id:
                    raise ValidationError("Teacher must specify a team lead for the project", field="teamLeadId")
                if caller.is_student and not data.mentor_id:
                    raise ValidationError("Student must specify a mentor for the project", field="mentorId")
            raise ValidationError("Invalid project creation request. Could not determine creation mode.")

        if teacher_creating:
            lead = await self._get_student(data.team_lead_id)
            mentor = caller.teacher
            initial_status = ProjectStatus.APPROVED
            recipient_user = lead.user
            recipient_role = RecipientRole.TEAM_LEAD
            message = f"You have been assigned as the team lead for the project: {data.title}"
        else:
            mentor = await self._get_teacher(data.mentor_id)
            lead = caller.student
            initial_status = ProjectStatus.PENDING
            recipient_user = mentor.user
            recipient_role = RecipientRole.MENTOR
            message = f"You have been assigned as mentor for the project: {data.title}"

        recipient_user_id = recipient_user.id
        recipient_email = recipient_user.email
        created_by = caller.user.username

        team = Team(name=f"{data.title} Team", description=f"Team for {data.title}")
        team.members.append(TeamMember(student_id=lead.id, role=TeamRole.LEAD))

        project = Project(
            title=data.title,
            description=data.description,
            type=data.type,
            status=initial_status,
            github_link=data.github_link or None,
            start_date=data.start_date,
            end_date=data.end_date,
            lead_id=lead.id,
            mentor_id=mentor.id,
            team=team,
        )
        self.db.add(project)

        try:
            await self.db.flush()
            self.notifications.notify(
                recipient_user_id, NotificationType.PROJECT_APPROVAL, message, project.id
            )
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.log_error_with_context(e, "create_project")
            raise ProjectOperationError("Failed to create project", str(e))

        logger.log_workflow_event(
            f"created as {initial_status.value}", project.id,
            lead_id=project.lead_id, mentor_id=project.mentor_id,
        )

        await self._send_email(
            recipient_email,
            project_title=project.title,
            project_type=project.type.value,
            role=recipient_role,
            created_by=created_by,
        )
        return project

    # =====================================================
    # APPROVAL
    # =====================================================

    async def decide(self, caller: Caller, project_id: str, data: ApprovalRequest) -> Project:
        """Record a mentor's APPROVED/REJECTED decision. Repeated calls append repeated rows."""
        if not caller.is_teacher:
            raise AuthorizationError("Only teachers can approve or reject projects")

        decision = data.decision()
        if decision is None:
            raise ValidationError("Invalid status. Must be either APPROVED or REJECTED", field="status")

        project = await get_project_or_404(
            self.db, project_id,
            selectinload(Project.lead).selectinload(Student.user),
        )

        if not caller.is_mentor_of(project):
            raise AuthorizationError("Only the project mentor can approve or reject the project")

        if project.status != ProjectStatus.PENDING:
            logger.warning(
                f"Project {project.id} re-decided: {project.status.value} -> {decision.value}"
            )

        mentor_name = caller.user.username
        lead_user = project.lead.user
        lead_user_id = lead_user.id
        lead_email = lead_user.email
        verb = decision.value.lower()

        project.status = ProjectStatus(decision.value)
        self.db.add(Approval(
            project_id=project.id,
            mentor_id=caller.teacher.id,
            status=decision,
            comment=data.comment,
        ))
        self.notifications.notify(
            lead_user_id,
            NotificationType.PROJECT_APPROVAL if decision == ApprovalStatus.APPROVED
            else NotificationType.PROJECT_UPDATE,
            f'Your project "{project.title}" has been {verb} by {mentor_name}',
            project.id,
        )

        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.log_error_with_context(e, "decide_project")
            raise ProjectOperationError("Failed to process project approval", str(e))

        logger.log_workflow_event(verb, project.id, mentor=mentor_name)

        await self._send_email(
            lead_email,
            project_title=project.title,
            project_type=project.type.value,
            role=RecipientRole.PROJECT_LEAD,
            status=decision.value,
            created_by=mentor_name,
            comment=data.comment,
        )
        return project

    # =====================================================
    # UPDATE
    # =====================================================

    async def update_project(self, caller: Caller, project_id: str, data: ProjectUpdate) -> Project:
        project = await get_project_or_404(self.db, project_id)

        if not caller.can_manage(project):
            raise AuthorizationError("Only the project mentor or lead can update the project")

        if project.is_locked:
            raise ValidationError(f"A {project.status.value} project cannot be edited")

        sent = data.model_fields_set

        if data.status is not None and "status" in sent and not project.can_move_to(data.status):
            raise ValidationError(
                f"Cannot change project status from {project.status.value} to {data.status.value}",
                field="status",
            )

        project_key = project.id
        title_before = project.title

        try:
            for field in REQUIRED_FIELDS + ("status",):
                value = getattr(data, field)
                if field in sent and value is not None:
                    setattr(project, field, value)
            for field in NULLABLE_FIELDS:
                if field in sent:
                    setattr(project, field, getattr(data, field))

            papers = parse_items(ResearchPaperIn, data.research_papers, "Research papers must be an array")
            await self._sync_children(
                ResearchPaper, project_key, papers, parse_ids(data.papers_to_delete), "Research paper"
            )
            media = parse_items(MediaIn, data.media, "Media must be an array")
            await self._sync_children(
                Media, project_key, media, parse_ids(data.media_to_delete), "Media item"
            )

            await self.db.commit()
        except ValueError as e:
            # Malformed arrays or items; pydantic's ValidationError is a ValueError
            await self.db.rollback()
            logger.warning(f"Update of project {project_key} rolled back: {e}")
            raise ProjectOperationError("Failed to update project", str(e))
        except ProjectOperationError as e:
            await self.db.rollback()
            logger.warning(f"Update of project {project_key} rolled back: {e.details}")
            raise
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.log_error_with_context(e, "update_project")
            raise ProjectOperationError("Failed to update project", str(e))

        updated = await self.get_project_detail(project_key)

        active_members = [m for m in updated.team.members if m.is_active] if updated.team else []
        for member in active_members:
            self.notifications.notify(
                member.student.user_id,
                NotificationType.PROJECT_UPDATE,
                f'The project "{updated.title}" has been updated',
                updated.id,
            )
        if active_members:
            await self.db.commit()

        logger.log_workflow_event(
            "updated", project_key,
            title_changed=updated.title != title_before,
            notified=len(active_members),
        )
        return updated

    async def _sync_children(self, model, project_id: str, items, to_delete: List[str], label: str) -> None:
        """Upsert by id and delete listed ids, all scoped to one project"""
        for item in items:
            if item.id:
                owned = (model.id == item.id, model.project_id == project_id)
                # Only the fields sent are changed
                values = item.model_dump(exclude_unset=True, exclude={"id"})
                if values:
                    result = await self.db.execute(update(model).where(*owned).values(**values))
                    found = result.rowcount > 0
                else:
                    found = await self.db.scalar(select(model.id).where(*owned)) is not None
                if not found:
                    raise ProjectOperationError(
                        "Failed to update project",
                        f"{label} {item.id} does not belong to this project",
                    )
            else:
                missing = [field for field in item.insert_requires if getattr(item, field) is None]
                if missing:
                    raise ProjectOperationError(
                        "Failed to update project",
                        f"New {label.lower()} is missing: {', '.join(missing)}",
                    )
                self.db.add(model(project_id=project_id, **item.model_dump(exclude_none=True, exclude={"id"})))

        if to_delete:
            await self.db.execute(
                delete(model).where(model.id.in_(to_delete), model.project_id == project_id)
            )

    # =====================================================
    # DELETION
    # =====================================================

    async def delete_project(self, caller: Caller, project_id: str) -> None:
        """Hard delete. Approvals, papers, media and notifications cascade; the team goes too."""
        project = await get_project_or_404(self.db, project_id, selectinload(Project.team))

        if not caller.can_delete(project):
            raise AuthorizationError("Only the project mentor, team lead, or a teacher can delete this project")

        project_key = project.id
        team = project.team

        try:
            await self.db.delete(project)
            if team is not None:
                await self.db.delete(team)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.log_error_with_context(e, "delete_project")
            raise ProjectOperationError("Failed to delete project", str(e))

        logger.log_workflow_event("deleted", project_key)

    # =====================================================
    # HELPERS
    # =====================================================

    async def _get_student(self, student_id: str) -> Student:
        result = await self.db.execute(
            select(Student).options(selectinload(Student.user)).where(Student.id == student_id)
        )
        student = result.scalar_one_or_none()
        if not student:
            raise StudentNotFoundError(student_id, "Team lead not found")
        return student

    async def _get_teacher(self, teacher_id: str) -> Teacher:
        result = await self.db.execute(
            select(Teacher).options(selectinload(Teacher.user)).where(Teacher.id == teacher_id)
        )
        teacher = result.scalar_one_or_none()
        if not teacher:
            raise TeacherNotFoundError(teacher_id, "Mentor not found")
        return teacher

    async def _send_email(self, to_email: Optional[str], **kwargs) -> None:
        """Best-effort; the operation has already been committed"""
        if not to_email:
            return
        try:
            sent = await self.mailer.send_project_notification_email(to_email, **kwargs)
        except Exception as e:
            logger.warning(f"[Email] Project notification to {to_email} failed: {e}")
            return
        if not sent:
            logger.info(f"[Email] Project notification to {to_email} not delivered")
