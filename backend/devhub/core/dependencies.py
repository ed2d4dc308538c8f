import uuid

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from devhub.config import settings
from devhub.core.security import decode_token
from devhub.models.records import UserRecord
from devhub.services.container import DevHubServices

bearer_scheme = HTTPBearer(auto_error=False)


def get_services(request: Request) -> DevHubServices:
    return request.app.state.services


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    services: DevHubServices = Depends(get_services),
) -> UserRecord:
    """Resolve the bearer access token to an active user record."""
    unauthorized = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Not authenticated",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None:
        raise unauthorized

    payload = decode_token(credentials.credentials)
    if payload is None or payload.get("type") != "access":
        raise unauthorized

    try:
        user_id = uuid.UUID(payload.get("sub", ""))
    except ValueError:
        raise unauthorized

    user = await services.users.find_by_id(user_id)
    if user is None or not user.is_active:
        raise unauthorized
    return user


async def require_admin(current_user: UserRecord = Depends(get_current_user)) -> UserRecord:
    if current_user.email not in settings.admin_email_list:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return current_user
