from sqlalchemy import Column, String, DateTime, Date, Enum as SQLEnum, Integer, Text, ForeignKey, JSON
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from portal.core.database import Base
from portal.core.types import GUID, generate_uuid


class UserRole(str, enum.Enum):
    """Role chosen at registration"""
    STUDENT = "STUDENT"
    TEACHER = "TEACHER"


class User(Base):
    """User model - owns at most one Student and one Teacher profile"""
    __tablename__ = "users"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    email = Column(String(255), unique=True, index=True, nullable=False)
    username = Column(String(100), nullable=False)
    hashed_password = Column(String(255), nullable=False)

    role = Column(SQLEnum(UserRole), default=UserRole.STUDENT, nullable=False)

    # Profile fields
    department = Column(String(255), nullable=True)
    bio = Column(Text, nullable=True)
    avatar_url = Column(Text, nullable=True)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    student = relationship("Student", back_populates="user", uselist=False, cascade="all, delete-orphan")
    teacher = relationship("Teacher", back_populates="user", uselist=False, cascade="all, delete-orphan")
    experiences = relationship("Experience", back_populates="user", cascade="all, delete-orphan")
    certifications = relationship("Certification", back_populates="user", cascade="all, delete-orphan")
    notifications = relationship("Notification", back_populates="user", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<User {self.email}>"


class Student(Base):
    """Student sub-profile"""
    __tablename__ = "students"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)

    year = Column(Integer, nullable=True)
    roll_number = Column(String(50), nullable=True)
    skills = Column(JSON, default=list, nullable=False)

    user = relationship("User", back_populates="student")
    led_projects = relationship("Project", back_populates="lead", foreign_keys="Project.lead_id")
    team_memberships = relationship("TeamMember", back_populates="student")

    def __repr__(self):
        return f"<Student {self.id} of {self.user_id}>"


class Teacher(Base):
    """Teacher sub-profile"""
    __tablename__ = "teachers"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)

    designation = Column(String(255), nullable=True)
    skills = Column(JSON, default=list, nullable=False)

    user = relationship("User", back_populates="teacher")
    mentored_projects = relationship("Project", back_populates="mentor", foreign_keys="Project.mentor_id")

    def __repr__(self):
        return f"<Teacher {self.id} of {self.user_id}>"


class Experience(Base):
    """Work experience entry on a user profile"""
    __tablename__ = "experiences"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    position = Column(String(255), nullable=False)
    company = Column(String(255), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)
    description = Column(Text, nullable=True)

    user = relationship("User", back_populates="experiences")


class Certification(Base):
    """Certification entry on a user profile"""
    __tablename__ = "certifications"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    title = Column(String(255), nullable=False)
    issuer = Column(String(255), nullable=False)
    issue_date = Column(Date, nullable=False)
    expiry_date = Column(Date, nullable=True)
    credential_id = Column(String(255), nullable=True)
    credential_url = Column(Text, nullable=True)

    user = relationship("User", back_populates="certifications")
