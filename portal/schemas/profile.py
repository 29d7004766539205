from typing import Optional, List
from datetime import date

from portal.schemas.base import CamelModel


class ExperienceData(CamelModel):
    position: str
    company: str
    start_date: date
    end_date: Optional[date] = None
    description: Optional[str] = None


class CertificationData(CamelModel):
    title: str
    issuer: str
    issue_date: date
    expiry_date: Optional[date] = None
    credential_id: Optional[str] = None
    credential_url: Optional[str] = None


class ProfileOut(CamelModel):
    """Role-specific keys are left out for the other role"""
    name: str
    email: str
    bio: Optional[str] = None
    department: Optional[str] = None
    year: Optional[int] = None
    roll_number: Optional[str] = None
    designation: Optional[str] = None
    skills: List[str] = []
    experiences: List[ExperienceData] = []
    certifications: List[CertificationData] = []


class ProfileUpdate(CamelModel):
    name: Optional[str] = None
    bio: Optional[str] = None
    department: Optional[str] = None
    year: Optional[int] = None
    roll_number: Optional[str] = None
    designation: Optional[str] = None
    skills: Optional[List[str]] = None
    experiences: Optional[List[ExperienceData]] = None
    certifications: Optional[List[CertificationData]] = None
