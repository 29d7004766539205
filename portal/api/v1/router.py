from fastapi import APIRouter
from portal.api.v1.endpoints import auth, projects, notifications, profile, health

api_router = APIRouter()

api_router.include_router(health.router)
api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
api_router.include_router(projects.router, prefix="/projects", tags=["Projects"])
api_router.include_router(notifications.router, prefix="/notifications", tags=["Notifications"])
api_router.include_router(profile.router, prefix="/profile", tags=["Profile"])
