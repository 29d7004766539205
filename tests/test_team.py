import pytest
from datetime import datetime
from httpx import AsyncClient
from sqlalchemy import select, func

from portal.models.notification import Notification, NotificationType
from portal.models.team import TeamMember, TeamRole
from portal.services.team_service import TeamService


async def add_member(client, project_id, student_id, headers, **extra):
    return await client.post(
        f"/api/v1/projects/{project_id}/team",
        json={"studentId": student_id, **extra},
        headers=headers,
    )


async def remove_member(client, project_id, member_id, headers):
    return await client.delete(
        f"/api/v1/projects/{project_id}/team?teamMemberId={member_id}",
        headers=headers,
    )


async def membership_count(db_session, student_id) -> int:
    return await db_session.scalar(
        select(func.count()).select_from(TeamMember).where(TeamMember.student_id == student_id)
    )


# ==================== Adding ====================

@pytest.mark.asyncio
async def test_mentor_adds_member(client: AsyncClient, db_session, approved_project, teacher_headers, other_student):
    response = await add_member(client, approved_project["id"], other_student.id, teacher_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["studentId"] == other_student.id
    assert data["teamId"] == approved_project["teamId"]
    assert data["role"] == TeamRole.MEMBER
    assert data["leftAt"] is None

    result = await db_session.execute(
        select(Notification).where(Notification.user_id == other_student.user_id)
    )
    notification = result.scalar_one()
    assert notification.type == NotificationType.TEAM_UPDATE
    assert notification.message == "You have been added to the team for the project: Smart Irrigation System"


@pytest.mark.asyncio
async def test_lead_adds_member_with_role(client: AsyncClient, approved_project, student_headers, other_student):
    response = await add_member(
        client, approved_project["id"], other_student.id, student_headers, role="Hardware"
    )

    assert response.status_code == 200
    assert response.json()["role"] == "Hardware"


@pytest.mark.asyncio
async def test_duplicate_member_rejected(client: AsyncClient, db_session, approved_project, teacher_headers, other_student):
    await add_member(client, approved_project["id"], other_student.id, teacher_headers)
    response = await add_member(client, approved_project["id"], other_student.id, teacher_headers)

    assert response.status_code == 400
    assert response.json()["error"] == "Student is already a member of this team"
    assert await membership_count(db_session, other_student.id) == 1


@pytest.mark.asyncio
async def test_lead_is_already_a_member(client: AsyncClient, approved_project, teacher_headers, student):
    response = await add_member(client, approved_project["id"], student.id, teacher_headers)

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_add_requires_student_id(client: AsyncClient, approved_project, teacher_headers):
    response = await client.post(
        f"/api/v1/projects/{approved_project['id']}/team", json={}, headers=teacher_headers
    )

    assert response.status_code == 400
    assert response.json()["error"] == "Student ID is required"


@pytest.mark.asyncio
async def test_add_unknown_student(client: AsyncClient, approved_project, teacher_headers):
    response = await add_member(
        client, approved_project["id"], "00000000-0000-0000-0000-000000000000", teacher_headers
    )

    assert response.status_code == 404
    assert response.json()["error"] == "Student not found"


@pytest.mark.asyncio
async def test_add_to_missing_project(client: AsyncClient, teacher_headers, other_student):
    response = await add_member(
        client, "00000000-0000-0000-0000-000000000000", other_student.id, teacher_headers
    )

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_outsiders_cannot_add(client: AsyncClient, approved_project, other_teacher_headers, other_student, other_student_headers):
    for headers in (other_teacher_headers, other_student_headers):
        response = await add_member(client, approved_project["id"], other_student.id, headers)
        assert response.status_code == 403
        assert response.json()["error"] == "Only the project mentor or lead can manage team members"


@pytest.mark.asyncio
async def test_concurrent_insert_is_retried(
    client: AsyncClient, db_session, approved_project, teacher_headers, other_student, monkeypatch
):
    """The losing request sees the winner's row on retry"""
    db_session.add(TeamMember(
        team_id=approved_project["teamId"],
        student_id=other_student.id,
        role=TeamRole.MEMBER,
    ))
    await db_session.commit()

    original = TeamService.get_membership
    calls = []

    async def stale_lookup(self, team_id, student_id):
        calls.append(student_id)
        if len(calls) == 1:
            return None
        return await original(self, team_id, student_id)

    monkeypatch.setattr(TeamService, "get_membership", stale_lookup)

    response = await add_member(client, approved_project["id"], other_student.id, teacher_headers)

    assert len(calls) == 2
    assert response.status_code == 400
    assert response.json()["error"] == "Student is already a member of this team"
    assert await membership_count(db_session, other_student.id) == 1


@pytest.mark.asyncio
async def test_concurrent_insert_reactivates_left_row(
    client: AsyncClient, db_session, approved_project, teacher_headers, other_student, monkeypatch
):
    left_row = TeamMember(
        team_id=approved_project["teamId"],
        student_id=other_student.id,
        role=TeamRole.MEMBER,
        left_at=datetime.utcnow(),
    )
    db_session.add(left_row)
    await db_session.commit()
    left_row_id = left_row.id

    original = TeamService.get_membership
    calls = []

    async def stale_lookup(self, team_id, student_id):
        calls.append(student_id)
        if len(calls) == 1:
            return None
        return await original(self, team_id, student_id)

    monkeypatch.setattr(TeamService, "get_membership", stale_lookup)

    response = await add_member(client, approved_project["id"], other_student.id, teacher_headers)

    assert response.status_code == 200
    assert response.json()["id"] == left_row_id
    assert response.json()["leftAt"] is None
    assert await membership_count(db_session, other_student.id) == 1


# ==================== Removing ====================

@pytest.mark.asyncio
async def test_remove_member_sets_left_at(client: AsyncClient, db_session, approved_project, teacher_headers, other_student):
    added = await add_member(client, approved_project["id"], other_student.id, teacher_headers)
    member_id = added.json()["id"]

    response = await remove_member(client, approved_project["id"], member_id, teacher_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "Team member removed successfully"
    assert data["teamMember"]["id"] == member_id
    assert data["teamMember"]["leftAt"] is not None

    result = await db_session.execute(
        select(Notification.message)
        .where(Notification.user_id == other_student.user_id)
        .order_by(Notification.created_at)
    )
    assert result.scalars().all()[-1] == (
        "You have been removed from the team for the project: Smart Irrigation System"
    )


@pytest.mark.asyncio
async def test_remove_then_readd_reuses_row(client: AsyncClient, db_session, approved_project, teacher_headers, other_student):
    added = await add_member(client, approved_project["id"], other_student.id, teacher_headers)
    member_id = added.json()["id"]
    await remove_member(client, approved_project["id"], member_id, teacher_headers)

    readded = await add_member(client, approved_project["id"], other_student.id, teacher_headers)

    assert readded.status_code == 200
    assert readded.json()["id"] == member_id
    assert readded.json()["leftAt"] is None
    assert await membership_count(db_session, other_student.id) == 1


@pytest.mark.asyncio
async def test_removing_twice_keeps_first_left_at(client: AsyncClient, approved_project, teacher_headers, other_student):
    added = await add_member(client, approved_project["id"], other_student.id, teacher_headers)
    member_id = added.json()["id"]

    first = await remove_member(client, approved_project["id"], member_id, teacher_headers)
    second = await remove_member(client, approved_project["id"], member_id, teacher_headers)

    assert second.status_code == 200
    assert second.json()["teamMember"]["leftAt"] == first.json()["teamMember"]["leftAt"]


@pytest.mark.asyncio
async def test_lead_cannot_be_removed(client: AsyncClient, approved_project, teacher_headers, student_headers):
    detail = await client.get(f"/api/v1/projects/{approved_project['id']}", headers=student_headers)
    lead_member_id = detail.json()["team"]["members"][0]["id"]

    response = await remove_member(client, approved_project["id"], lead_member_id, teacher_headers)

    assert response.status_code == 400
    assert response.json()["error"] == "Cannot remove the project lead from the team"


@pytest.mark.asyncio
async def test_remove_requires_member_id(client: AsyncClient, approved_project, teacher_headers):
    response = await client.delete(f"/api/v1/projects/{approved_project['id']}/team", headers=teacher_headers)

    assert response.status_code == 400
    assert response.json()["error"] == "Team member ID is required"


@pytest.mark.asyncio
async def test_remove_unknown_member(client: AsyncClient, approved_project, teacher_headers):
    response = await remove_member(
        client, approved_project["id"], "00000000-0000-0000-0000-000000000000", teacher_headers
    )

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_remove_member_of_another_project(
    client: AsyncClient, approved_project, teacher_headers, other_student, project_payload
):
    other = await client.post(
        "/api/v1/projects",
        json={**project_payload, "title": "Weather Station", "teamLeadId": other_student.id},
        headers=teacher_headers,
    )
    detail = await client.get(f"/api/v1/projects/{other.json()['id']}", headers=teacher_headers)
    foreign_member_id = detail.json()["team"]["members"][0]["id"]

    response = await remove_member(client, approved_project["id"], foreign_member_id, teacher_headers)

    assert response.status_code == 400
    assert response.json()["error"] == "Team member does not belong to this project"


@pytest.mark.asyncio
async def test_outsiders_cannot_remove(client: AsyncClient, approved_project, teacher_headers, other_student, other_student_headers):
    added = await add_member(client, approved_project["id"], other_student.id, teacher_headers)

    response = await remove_member(client, approved_project["id"], added.json()["id"], other_student_headers)

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_second_insert_conflict_reports_details(
    client: AsyncClient, db_session, approved_project, teacher_headers, other_student, monkeypatch
):
    """If the retry also collides, the caller gets a 500 with details"""
    db_session.add(TeamMember(
        team_id=approved_project["teamId"],
        student_id=other_student.id,
        role=TeamRole.MEMBER,
    ))
    await db_session.commit()

    async def always_stale(self, team_id, student_id):
        return None

    monkeypatch.setattr(TeamService, "get_membership", always_stale)

    response = await add_member(client, approved_project["id"], other_student.id, teacher_headers)

    assert response.status_code == 500
    body = response.json()
    assert body["error"] == "Failed to add team member"
    assert body["code"] == "PROJECT_OPERATION_FAILED"
    assert "UNIQUE" in body["details"].upper()
    assert await membership_count(db_session, other_student.id) == 1
