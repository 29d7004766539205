"""Team models backing a project's collaboration group"""
from sqlalchemy import Column, String, DateTime, Text, ForeignKey, UniqueConstraint, Index
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from portal.core.database import Base
from portal.core.types import GUID, generate_uuid


class TeamRole:
    """Well-known member roles. The column is free-form, so these are not exhaustive."""
    LEAD = "LEAD"
    MEMBER = "MEMBER"


class MembershipState(str, enum.Enum):
    """Derived from left_at: null means the student is still on the team"""
    ACTIVE = "ACTIVE"
    LEFT = "LEFT"


class Team(Base):
    """Team model - exactly one per project"""
    __tablename__ = "teams"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    project = relationship("Project", back_populates="team", uselist=False)
    members = relationship("TeamMember", back_populates="team", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Team {self.name}>"


class TeamMember(Base):
    """Team member - soft deleted by setting left_at"""
    __tablename__ = "team_members"

    __table_args__ = (
        UniqueConstraint('student_id', 'team_id', name='uq_team_members_student_team'),
        Index('ix_team_members_team_id', 'team_id'),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    team_id = Column(GUID, ForeignKey("teams.id", ondelete="CASCADE"), nullable=False)
    student_id = Column(GUID, ForeignKey("students.id", ondelete="CASCADE"), nullable=False)

    role = Column(String(50), default=TeamRole.MEMBER, nullable=False)

    joined_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    left_at = Column(DateTime, nullable=True)

    # Relationships
    team = relationship("Team", back_populates="members")
    student = relationship("Student", back_populates="team_memberships")

    @property
    def state(self) -> MembershipState:
        return MembershipState.ACTIVE if self.left_at is None else MembershipState.LEFT

    @property
    def is_active(self) -> bool:
        return self.left_at is None

    def leave(self) -> None:
        self.left_at = datetime.utcnow()

    def rejoin(self, role: str) -> None:
        self.left_at = None
        self.joined_at = datetime.utcnow()
        self.role = role

    def __repr__(self):
        return f"<TeamMember {self.student_id} in {self.team_id} ({self.state.value})>"
