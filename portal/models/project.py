from sqlalchemy import Column, String, DateTime, Enum as SQLEnum, Text, ForeignKey, JSON, Index
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from portal.core.database import Base
from portal.core.types import GUID, generate_uuid


class ProjectType(str, enum.Enum):
    """Academic project categories"""
    CAPSTONE = "CAPSTONE"
    THAPAR = "THAPAR"
    R_D = "R_D"
    INTERNATIONAL = "INTERNATIONAL"
    RESEARCH = "RESEARCH"


class ProjectStatus(str, enum.Enum):
    """Project lifecycle status"""
    PENDING = "PENDING"        # Student-created, waiting on the mentor
    APPROVED = "APPROVED"
    ONGOING = "ONGOING"
    COMPLETED = "COMPLETED"
    REJECTED = "REJECTED"


class ApprovalStatus(str, enum.Enum):
    """Outcome recorded by a mentor decision"""
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


# Statuses a mentor decision has not yet unlocked for editing
LOCKED_STATUSES = frozenset({ProjectStatus.PENDING, ProjectStatus.REJECTED})

# Forward-only progress moves allowed through a project update
PROGRESS_TRANSITIONS = {
    ProjectStatus.APPROVED: frozenset({ProjectStatus.ONGOING, ProjectStatus.COMPLETED}),
    ProjectStatus.ONGOING: frozenset({ProjectStatus.COMPLETED}),
}


class Project(Base):
    """Project model"""
    __tablename__ = "projects"

    __table_args__ = (
        Index('ix_projects_lead_id', 'lead_id'),
        Index('ix_projects_mentor_id', 'mentor_id'),
        Index('ix_projects_status', 'status'),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    type = Column(SQLEnum(ProjectType), nullable=False)
    status = Column(SQLEnum(ProjectStatus), default=ProjectStatus.PENDING, nullable=False)

    github_link = Column(String(500), nullable=True)
    start_date = Column(DateTime, nullable=True)
    end_date = Column(DateTime, nullable=True)

    lead_id = Column(GUID, ForeignKey("students.id"), nullable=False)
    mentor_id = Column(GUID, ForeignKey("teachers.id"), nullable=False)
    team_id = Column(GUID, ForeignKey("teams.id"), unique=True, nullable=True)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    lead = relationship("Student", back_populates="led_projects", foreign_keys=[lead_id])
    mentor = relationship("Teacher", back_populates="mentored_projects", foreign_keys=[mentor_id])
    team = relationship("Team", back_populates="project")
    approvals = relationship("Approval", back_populates="project", cascade="all, delete-orphan",
                             order_by="Approval.created_at")
    research_papers = relationship("ResearchPaper", back_populates="project", cascade="all, delete-orphan")
    media = relationship("Media", back_populates="project", cascade="all, delete-orphan")
    notifications = relationship("Notification", back_populates="project", cascade="all, delete-orphan")

    @property
    def is_locked(self) -> bool:
        return self.status in LOCKED_STATUSES

    def can_move_to(self, status: ProjectStatus) -> bool:
        return status == self.status or status in PROGRESS_TRANSITIONS.get(self.status, frozenset())

    def __repr__(self):
        return f"<Project {self.title} ({self.status.value if self.status else None})>"


class Approval(Base):
    """Append-only record of a mentor decision"""
    __tablename__ = "approvals"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    project_id = Column(GUID, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    mentor_id = Column(GUID, ForeignKey("teachers.id"), nullable=False)

    status = Column(SQLEnum(ApprovalStatus), nullable=False)
    comment = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    project = relationship("Project", back_populates="approvals")
    mentor = relationship("Teacher")


class ResearchPaper(Base):
    __tablename__ = "research_papers"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    project_id = Column(GUID, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)

    title = Column(String(500), nullable=False)
    authors = Column(JSON, default=list, nullable=False)  # ["A. Author", "B. Author"]
    abstract = Column(Text, nullable=True)
    url = Column(Text, nullable=True)
    published_at = Column(DateTime, nullable=True)

    project = relationship("Project", back_populates="research_papers")


class Media(Base):
    __tablename__ = "media"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    project_id = Column(GUID, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)

    title = Column(String(500), nullable=False)
    type = Column(String(50), nullable=False)  # image, video, document...
    url = Column(Text, nullable=False)
    description = Column(Text, nullable=True)

    project = relationship("Project", back_populates="media")
