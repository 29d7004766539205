"""Profile of the signed-in user, including experiences and certifications"""

from fastapi import APIRouter, Depends
from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from portal.core.database import get_db
from portal.core.exceptions import UserNotFoundError
from portal.core.logging_config import logger
from portal.models.user import User, Experience, Certification
from portal.modules.auth.dependencies import get_current_user
from portal.schemas.base import MessageResponse
from portal.schemas.profile import ProfileOut, ProfileUpdate, ExperienceData, CertificationData


router = APIRouter()


async def load_profile(db: AsyncSession, user_id: str) -> User:
    result = await db.execute(
        select(User)
        .options(
            selectinload(User.student),
            selectinload(User.teacher),
            selectinload(User.experiences),
            selectinload(User.certifications),
        )
        .where(User.id == user_id)
        .execution_options(populate_existing=True)
    )
    user = result.scalar_one_or_none()
    if not user:
        raise UserNotFoundError(user_id)
    return user


@router.get("", response_model=ProfileOut, response_model_exclude_none=True)
async def get_profile(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    user = await load_profile(db, current_user.id)

    profile = ProfileOut(
        name=user.username,
        email=user.email,
        bio=user.bio,
        department=user.department,
        experiences=[ExperienceData.model_validate(e) for e in user.experiences],
        certifications=[CertificationData.model_validate(c) for c in user.certifications],
    )
    if user.student is not None:
        profile.year = user.student.year
        profile.roll_number = user.student.roll_number
        profile.skills = list(user.student.skills or [])
    elif user.teacher is not None:
        profile.designation = user.teacher.designation
        profile.skills = list(user.teacher.skills or [])
    return profile


@router.put("", response_model=MessageResponse)
async def update_profile(
    data: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Update user and role fields; experiences/certifications, when sent, replace the stored lists"""
    user = current_user
    sent = data.model_fields_set

    if data.name:
        user.username = data.name
    if "bio" in sent:
        user.bio = data.bio
    if "department" in sent:
        user.department = data.department

    if user.student is not None:
        if "year" in sent:
            user.student.year = data.year
        if "roll_number" in sent:
            user.student.roll_number = data.roll_number
        if data.skills is not None:
            user.student.skills = data.skills
    elif user.teacher is not None:
        if "designation" in sent:
            user.teacher.designation = data.designation
        if data.skills is not None:
            user.teacher.skills = data.skills

    if data.experiences is not None:
        await db.execute(delete(Experience).where(Experience.user_id == user.id))
        db.add_all([Experience(user_id=user.id, **e.model_dump()) for e in data.experiences])

    if data.certifications is not None:
        await db.execute(delete(Certification).where(Certification.user_id == user.id))
        db.add_all([Certification(user_id=user.id, **c.model_dump()) for c in data.certifications])

    await db.commit()
    logger.info(f"Profile updated for user {user.id}")

    return MessageResponse(message="Profile updated successfully")
