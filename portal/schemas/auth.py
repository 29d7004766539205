from pydantic import EmailStr, Field
from typing import Optional, List

from portal.models.user import UserRole
from portal.schemas.base import CamelModel


class RegisterProfileData(CamelModel):
    """Role-specific fields captured at registration"""
    department: Optional[str] = None
    year: Optional[int] = None
    roll_number: Optional[str] = None
    designation: Optional[str] = None


class RegisterRequest(CamelModel):
    """Required fields are checked by the endpoint so the message matches the other 400s"""
    email: Optional[EmailStr] = None
    username: Optional[str] = None
    password: Optional[str] = Field(None, max_length=128)
    role: Optional[UserRole] = None
    profile_data: Optional[RegisterProfileData] = None


class UserSummary(CamelModel):
    id: str
    email: str
    username: str
    role: UserRole


class RegisterResponse(CamelModel):
    message: str
    user: UserSummary


class LoginRequest(CamelModel):
    email: EmailStr
    password: str


class TokenResponse(CamelModel):
    access_token: str
    token_type: str = "bearer"
    user: UserSummary


class StudentProfileOut(CamelModel):
    id: str
    year: Optional[int] = None
    roll_number: Optional[str] = None
    skills: List[str] = []


class TeacherProfileOut(CamelModel):
    id: str
    designation: Optional[str] = None
    skills: List[str] = []


class MeResponse(CamelModel):
    id: str
    email: str
    username: str
    department: Optional[str] = None
    bio: Optional[str] = None
    avatar_url: Optional[str] = None
    role: UserRole
    student: Optional[StudentProfileOut] = None
    teacher: Optional[TeacherProfileOut] = None
