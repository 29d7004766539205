from sqlalchemy import Column, DateTime, Enum as SQLEnum, Text, ForeignKey, Boolean, Index
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from portal.core.database import Base
from portal.core.types import GUID, generate_uuid


class NotificationType(str, enum.Enum):
    PROJECT_APPROVAL = "PROJECT_APPROVAL"
    PROJECT_UPDATE = "PROJECT_UPDATE"
    TEAM_UPDATE = "TEAM_UPDATE"


class Notification(Base):
    """In-app notification created as a side effect of lifecycle events"""
    __tablename__ = "notifications"

    __table_args__ = (
        Index('ix_notifications_user_read', 'user_id', 'read'),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    project_id = Column(GUID, ForeignKey("projects.id", ondelete="CASCADE"), nullable=True)

    type = Column(SQLEnum(NotificationType), nullable=False)
    message = Column(Text, nullable=False)
    read = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    user = relationship("User", back_populates="notifications")
    project = relationship("Project", back_populates="notifications")

    def __repr__(self):
        return f"<Notification {self.type.value if self.type else None} for {self.user_id}>"
