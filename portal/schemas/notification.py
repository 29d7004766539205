from typing import Optional
from datetime import datetime

from portal.models.notification import NotificationType
from portal.schemas.base import CamelModel


class ProjectRef(CamelModel):
    id: str
    title: str


class NotificationOut(CamelModel):
    id: str
    user_id: str
    project_id: Optional[str] = None
    type: NotificationType
    message: str
    read: bool
    created_at: datetime


class NotificationWithProject(NotificationOut):
    project: Optional[ProjectRef] = None


class ReadAllResponse(CamelModel):
    message: str
    count: int
