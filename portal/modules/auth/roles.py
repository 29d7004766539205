"""
Caller role resolution
======================

A user may own a Student profile, a Teacher profile, or both. The profiles
are resolved once per request into a ``Caller`` holding explicit role
values, so handlers never poke at optional relationships directly.
"""

from dataclasses import dataclass
from typing import Optional, Tuple, Union

from portal.models.user import User, Student, Teacher
from portal.models.project import Project


@dataclass(frozen=True)
class StudentRole:
    profile: Student


@dataclass(frozen=True)
class TeacherRole:
    profile: Teacher


Role = Union[StudentRole, TeacherRole]


@dataclass(frozen=True)
class Caller:
    """The authenticated user plus the roles they can act in"""
    user: User
    roles: Tuple[Role, ...] = ()

    @classmethod
    def from_user(cls, user: User) -> "Caller":
        """Build from a user whose student/teacher relationships are already loaded"""
        roles = []
        if user.student is not None:
            roles.append(StudentRole(user.student))
        if user.teacher is not None:
            roles.append(TeacherRole(user.teacher))
        return cls(user=user, roles=tuple(roles))

    @property
    def student(self) -> Optional[Student]:
        for role in self.roles:
            if isinstance(role, StudentRole):
                return role.profile
        return None

    @property
    def teacher(self) -> Optional[Teacher]:
        for role in self.roles:
            if isinstance(role, TeacherRole):
                return role.profile
        return None

    @property
    def is_student(self) -> bool:
        return self.student is not None

    @property
    def is_teacher(self) -> bool:
        return self.teacher is not None

    def is_mentor_of(self, project: Project) -> bool:
        teacher = self.teacher
        return teacher is not None and teacher.id == project.mentor_id

    def is_lead_of(self, project: Project) -> bool:
        student = self.student
        return student is not None and student.id == project.lead_id

    def can_manage(self, project: Project) -> bool:
        """Mentor or lead: may update the project and manage its team"""
        return self.is_mentor_of(project) or self.is_lead_of(project)

    def can_delete(self, project: Project) -> bool:
        """Any teacher, plus the project's own mentor and lead"""
        return self.is_teacher or self.can_manage(project)
