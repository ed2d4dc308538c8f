from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from devhub.core.dependencies import get_current_user, get_services
from devhub.models.records import UserRecord
from devhub.services.container import DevHubServices

router = APIRouter(tags=["events"])


@router.get("/events", summary="Change notifications (server-sent events)")
async def change_events(
    current_user: UserRecord = Depends(get_current_user),
    services: DevHubServices = Depends(get_services),
):
    """Stream a ``data_changed`` event whenever any shared data changes."""
    return StreamingResponse(
        services.events.stream(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
