from fastapi import APIRouter

from devhub.api.admin import router as admin_router
from devhub.api.auth import router as auth_router
from devhub.api.events import router as events_router
from devhub.api.invitations import router as invitations_router
from devhub.api.messages import router as messages_router
from devhub.api.teams import router as teams_router
from devhub.api.users import router as users_router

api_router = APIRouter(prefix="/api")

api_router.include_router(auth_router)
api_router.include_router(users_router)
api_router.include_router(teams_router)
api_router.include_router(invitations_router)
api_router.include_router(messages_router)
api_router.include_router(events_router)
api_router.include_router(admin_router)
