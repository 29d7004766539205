# API endpoints
from . import auth, projects, notifications, profile, health

__all__ = ["auth", "projects", "notifications", "profile", "health"]
