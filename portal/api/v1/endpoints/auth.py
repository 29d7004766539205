from fastapi import APIRouter, Depends, status, Request
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from portal.core.database import get_db
from portal.core.exceptions import AuthenticationError, ConflictError, ValidationError
from portal.core.security import verify_password, get_password_hash, create_access_token
from portal.core.logging_config import logger, set_user_id
from portal.core.rate_limiter import limiter
from portal.models.user import User, UserRole, Student, Teacher
from portal.schemas.auth import (
    RegisterRequest,
    RegisterResponse,
    LoginRequest,
    TokenResponse,
    UserSummary,
    MeResponse,
    StudentProfileOut,
    TeacherProfileOut,
)
from portal.modules.auth.dependencies import get_current_user


router = APIRouter()


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("3/minute")
async def register(
    request: Request,
    user_data: RegisterRequest,
    db: AsyncSession = Depends(get_db)
):
    """Register a user together with their student or teacher profile (rate limited: 3/min)"""
    client_ip = request.client.host if request.client else "unknown"

    if not user_data.email or not user_data.username or not user_data.password or not user_data.role:
        raise ValidationError("Missing required fields")

    result = await db.execute(
        select(User).where(User.email == user_data.email)
    )
    if result.scalar_one_or_none():
        logger.log_auth_event(
            event="register",
            success=False,
            user_email=user_data.email,
            reason="Email already registered",
            client_ip=client_ip
        )
        raise ConflictError("Email already registered")

    profile = user_data.profile_data

    user = User(
        email=user_data.email,
        username=user_data.username,
        hashed_password=get_password_hash(user_data.password),
        role=user_data.role,
        department=profile.department if profile else None,
    )

    # Exactly one sub-profile, created with the user
    if user_data.role == UserRole.STUDENT:
        user.student = Student(
            year=profile.year if profile else None,
            roll_number=profile.roll_number if profile else None,
            skills=[],
        )
    else:
        user.teacher = Teacher(
            designation=profile.designation if profile else None,
            skills=[],
        )

    db.add(user)
    await db.commit()

    logger.log_auth_event(
        event="register",
        success=True,
        user_email=user.email,
        client_ip=client_ip,
        user_role=user.role.value
    )

    return RegisterResponse(
        message="User registered successfully",
        user=UserSummary(id=user.id, email=user.email, username=user.username, role=user.role),
    )


@router.post("/login", response_model=TokenResponse)
@limiter.limit("5/minute")
async def login(
    request: Request,
    credentials: LoginRequest,
    db: AsyncSession = Depends(get_db)
):
    """Login user (rate limited: 5/min)"""
    client_ip = request.client.host if request.client else "unknown"

    result = await db.execute(
        select(User).where(User.email == credentials.email)
    )
    user = result.scalar_one_or_none()

    if not user or not verify_password(credentials.password, user.hashed_password):
        logger.log_auth_event(
            event="login",
            success=False,
            user_email=credentials.email,
            reason="Invalid credentials",
            client_ip=client_ip
        )
        raise AuthenticationError("Incorrect email or password")

    set_user_id(user.id)

    access_token = create_access_token({
        "sub": user.id,
        "email": user.email,
        "role": user.role.value
    })

    logger.log_auth_event(
        event="login",
        success=True,
        user_email=user.email,
        client_ip=client_ip,
        user_role=user.role.value
    )

    return TokenResponse(
        access_token=access_token,
        user=UserSummary(id=user.id, email=user.email, username=user.username, role=user.role),
    )


@router.get("/me", response_model=MeResponse)
async def get_current_user_info(
    current_user: User = Depends(get_current_user)
):
    """Current user with both role profiles; role reads TEACHER whenever a teacher profile exists"""
    return MeResponse(
        id=current_user.id,
        email=current_user.email,
        username=current_user.username,
        department=current_user.department,
        bio=current_user.bio,
        avatar_url=current_user.avatar_url,
        role=UserRole.TEACHER if current_user.teacher is not None else UserRole.STUDENT,
        student=StudentProfileOut.model_validate(current_user.student) if current_user.student else None,
        teacher=TeacherProfileOut.model_validate(current_user.teacher) if current_user.teacher else None,
    )
