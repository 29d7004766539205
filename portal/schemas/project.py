"""Pydantic schemas for the project lifecycle"""
from pydantic import Field, field_validator
from typing import Optional, List, Any, ClassVar, Tuple
from datetime import datetime

from portal.models.project import ProjectType, ProjectStatus, ApprovalStatus
from portal.schemas.base import CamelModel


# ==================== Requests ====================

class ProjectCreate(CamelModel):
    """
    Create a project. Exactly one counterpart id is used:
    team_lead_id when a teacher creates, mentor_id when a student creates.
    """
    title: Optional[str] = None
    description: Optional[str] = None
    type: Optional[ProjectType] = None
    github_link: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    team_lead_id: Optional[str] = None
    mentor_id: Optional[str] = None


class ResearchPaperIn(CamelModel):
    """With an id only the fields sent are updated; without one it is inserted"""
    insert_requires: ClassVar[Tuple[str, ...]] = ("title",)

    id: Optional[str] = None
    title: Optional[str] = None
    authors: Optional[List[str]] = None
    abstract: Optional[str] = None
    url: Optional[str] = None
    published_at: Optional[datetime] = None


class MediaIn(CamelModel):
    insert_requires: ClassVar[Tuple[str, ...]] = ("title", "type", "url")

    id: Optional[str] = None
    title: Optional[str] = None
    type: Optional[str] = None
    url: Optional[str] = None
    description: Optional[str] = None


def parse_items(model, raw: Any, message: str) -> list:
    """Validate a loosely typed array field. Raises ValueError on a non-list or a bad item."""
    if not raw:
        return []
    if not isinstance(raw, list):
        raise ValueError(message)
    return [model.model_validate(item) for item in raw]


def parse_ids(raw: Any) -> List[str]:
    """Delete lists that are not arrays are ignored"""
    if not isinstance(raw, list):
        return []
    return [str(item) for item in raw]


class ProjectUpdate(CamelModel):
    """Only fields present in the request body are applied"""
    title: Optional[str] = None
    description: Optional[str] = None
    type: Optional[ProjectType] = None
    status: Optional[ProjectStatus] = None
    github_link: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    # Checked inside the update transaction, see parse_items
    research_papers: Optional[Any] = None
    media: Optional[Any] = None
    papers_to_delete: Optional[Any] = None
    media_to_delete: Optional[Any] = None

    @field_validator("title", mode="before")
    @classmethod
    def title_must_be_string(cls, value: Any) -> Any:
        if value is not None and not isinstance(value, str):
            raise ValueError("Title must be a string")
        return value

    @field_validator("description", mode="before")
    @classmethod
    def description_must_be_string(cls, value: Any) -> Any:
        if value is not None and not isinstance(value, str):
            raise ValueError("Description must be a string")
        return value


class ApprovalRequest(CamelModel):
    """status is checked after the caller's role, so it stays a plain value here"""
    status: Optional[Any] = None
    comment: Optional[str] = None

    def decision(self) -> Optional[ApprovalStatus]:
        if self.status in (ApprovalStatus.APPROVED.value, ApprovalStatus.REJECTED.value):
            return ApprovalStatus(self.status)
        return None


class TeamMemberAdd(CamelModel):
    student_id: Optional[str] = None
    role: Optional[str] = Field(None, max_length=50)


# ==================== Responses ====================

class UserBrief(CamelModel):
    id: str
    username: str
    email: str
    avatar_url: Optional[str] = None


class StudentBrief(CamelModel):
    id: str
    year: Optional[int] = None
    roll_number: Optional[str] = None
    user: UserBrief


class TeacherBrief(CamelModel):
    id: str
    designation: Optional[str] = None
    user: UserBrief


class TeamMemberOut(CamelModel):
    id: str
    team_id: str
    student_id: str
    role: str
    joined_at: datetime
    left_at: Optional[datetime] = None


class TeamMemberDetail(TeamMemberOut):
    student: StudentBrief


class TeamMemberRemoved(CamelModel):
    message: str
    team_member: TeamMemberOut


class TeamOut(CamelModel):
    id: str
    name: str
    description: Optional[str] = None
    members: List[TeamMemberDetail] = []


class ApprovalOut(CamelModel):
    id: str
    project_id: str
    mentor_id: str
    status: ApprovalStatus
    comment: Optional[str] = None
    created_at: datetime


class ResearchPaperOut(CamelModel):
    id: str
    title: str
    authors: List[str] = []
    abstract: Optional[str] = None
    url: Optional[str] = None
    published_at: Optional[datetime] = None


class MediaOut(CamelModel):
    id: str
    title: str
    type: str
    url: str
    description: Optional[str] = None


class ProjectOut(CamelModel):
    id: str
    title: str
    description: str
    type: ProjectType
    status: ProjectStatus
    github_link: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    lead_id: str
    mentor_id: str
    team_id: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class ProjectDetail(ProjectOut):
    lead: StudentBrief
    mentor: TeacherBrief
    team: Optional[TeamOut] = None
    approvals: List[ApprovalOut] = []
    research_papers: List[ResearchPaperOut] = []
    media: List[MediaOut] = []
