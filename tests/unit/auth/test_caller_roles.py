"""
Unit Tests for Caller role resolution and project permissions
"""
from portal.models.project import Project
from portal.models.user import User, Student, Teacher
from portal.modules.auth.roles import Caller, StudentRole, TeacherRole


def make_user(student_id=None, teacher_id=None) -> User:
    user = User(id="user-1", email="u@college.edu", username="u", hashed_password="x")
    if student_id:
        user.student = Student(id=student_id)
    if teacher_id:
        user.teacher = Teacher(id=teacher_id)
    return user


def make_project(lead_id="s-lead", mentor_id="t-mentor") -> Project:
    return Project(id="p-1", title="Drone", lead_id=lead_id, mentor_id=mentor_id)


class TestCallerFromUser:

    def test_student_only(self):
        caller = Caller.from_user(make_user(student_id="s-1"))

        assert caller.is_student
        assert not caller.is_teacher
        assert caller.student.id == "s-1"
        assert caller.teacher is None
        assert isinstance(caller.roles[0], StudentRole)

    def test_teacher_only(self):
        caller = Caller.from_user(make_user(teacher_id="t-1"))

        assert caller.is_teacher
        assert not caller.is_student
        assert isinstance(caller.roles[0], TeacherRole)

    def test_both_profiles(self):
        caller = Caller.from_user(make_user(student_id="s-1", teacher_id="t-1"))

        assert caller.is_student and caller.is_teacher
        assert len(caller.roles) == 2

    def test_no_profiles(self):
        caller = Caller.from_user(make_user())

        assert caller.roles == ()
        assert not caller.can_delete(make_project())


class TestProjectPermissions:

    def test_mentor_manages(self):
        caller = Caller.from_user(make_user(teacher_id="t-mentor"))
        project = make_project()

        assert caller.is_mentor_of(project)
        assert caller.can_manage(project)
        assert caller.can_delete(project)

    def test_lead_manages(self):
        caller = Caller.from_user(make_user(student_id="s-lead"))
        project = make_project()

        assert caller.is_lead_of(project)
        assert caller.can_manage(project)
        assert caller.can_delete(project)

    def test_other_teacher_deletes_but_does_not_manage(self):
        caller = Caller.from_user(make_user(teacher_id="t-other"))
        project = make_project()

        assert not caller.can_manage(project)
        assert caller.can_delete(project)

    def test_other_student_has_no_rights(self):
        caller = Caller.from_user(make_user(student_id="s-other"))
        project = make_project()

        assert not caller.can_manage(project)
        assert not caller.can_delete(project)
