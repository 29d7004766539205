"""
Project lifecycle endpoints

POST   /projects                   create (teacher names a lead, student names a mentor)
GET    /projects?status=all|my     list
GET    /projects/{id}              detail
PUT    /projects/{id}              update fields, papers and media
DELETE /projects/{id}              delete
POST   /projects/{id}/approve      mentor decision
POST   /projects/{id}/team         add member
DELETE /projects/{id}/team         remove member (?teamMemberId=)
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from portal.core.database import get_db
from portal.modules.auth.dependencies import get_caller
from portal.modules.auth.roles import Caller
from portal.schemas.base import MessageResponse
from portal.schemas.project import (
    ApprovalRequest,
    ProjectCreate,
    ProjectDetail,
    ProjectOut,
    ProjectUpdate,
    TeamMemberAdd,
    TeamMemberOut,
    TeamMemberRemoved,
)
from portal.services.project_workflow import ProjectWorkflowService
from portal.services.team_service import TeamService


router = APIRouter()


@router.post("", response_model=ProjectOut)
async def create_project(
    data: ProjectCreate,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db)
):
    return await ProjectWorkflowService(db).create_project(caller, data)


@router.get("", response_model=List[ProjectDetail])
async def list_projects(
    scope: str = Query("all", alias="status", pattern="^(all|my)$"),
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db)
):
    """'all' lists every project past PENDING, 'my' the caller's own"""
    return await ProjectWorkflowService(db).list_projects(caller, scope)


@router.get("/{project_id}", response_model=ProjectDetail)
async def get_project(
    project_id: str,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db)
):
    return await ProjectWorkflowService(db).get_project_detail(project_id)


@router.put("/{project_id}", response_model=ProjectDetail)
async def update_project(
    project_id: str,
    data: ProjectUpdate,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db)
):
    return await ProjectWorkflowService(db).update_project(caller, project_id, data)


@router.delete("/{project_id}", response_model=MessageResponse)
async def delete_project(
    project_id: str,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db)
):
    await ProjectWorkflowService(db).delete_project(caller, project_id)
    return MessageResponse(message="Project deleted successfully")


@router.post("/{project_id}/approve", response_model=ProjectOut)
async def approve_project(
    project_id: str,
    data: ApprovalRequest,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db)
):
    return await ProjectWorkflowService(db).decide(caller, project_id, data)


@router.post("/{project_id}/team", response_model=TeamMemberOut)
async def add_team_member(
    project_id: str,
    data: TeamMemberAdd,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db)
):
    return await TeamService(db).add_member(caller, project_id, data)


@router.delete("/{project_id}/team", response_model=TeamMemberRemoved)
async def remove_team_member(
    project_id: str,
    team_member_id: Optional[str] = Query(None, alias="teamMemberId"),
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db)
):
    member = await TeamService(db).remove_member(caller, project_id, team_member_id)
    return TeamMemberRemoved(
        message="Team member removed successfully",
        team_member=TeamMemberOut.model_validate(member),
    )
