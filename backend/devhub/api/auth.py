import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, status

from devhub.core.dependencies import get_current_user, get_services
from devhub.core.errors import raise_for_result
from devhub.core.security import create_access_token, create_refresh_token, decode_token
from devhub.models.records import UserRecord
from devhub.schemas.auth import AuthResponse, LoginRequest, RefreshRequest, SignupRequest, TokenResponse
from devhub.schemas.user import UserResponse
from devhub.services.container import DevHubServices

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _token_pair(user: UserRecord) -> dict:
    token_data = {"sub": str(user.id), "email": user.email}
    return {
        "access_token": create_access_token(token_data),
        "refresh_token": create_refresh_token(token_data),
    }


# ---------------------------------------------------------------------------
# Signup / login
# ---------------------------------------------------------------------------


@router.post("/signup", response_model=AuthResponse, status_code=201, summary="Register a new account")
async def signup(request: SignupRequest, services: DevHubServices = Depends(get_services)):
    """Create an account and return a token pair for it."""
    user = raise_for_result(
        await services.users.register(request.name.strip(), request.email, request.password)
    )
    return AuthResponse(user=UserResponse.model_validate(user), **_token_pair(user))


@router.post("/login", response_model=AuthResponse, summary="Log in with email and password")
async def login(request: LoginRequest, services: DevHubServices = Depends(get_services)):
    user = raise_for_result(await services.users.authenticate(request.email, request.password))
    logger.info(f"User {user.id} logged in", extra={"user_id": str(user.id)})
    return AuthResponse(user=UserResponse.model_validate(user), **_token_pair(user))


# ---------------------------------------------------------------------------
# Token refresh
# ---------------------------------------------------------------------------


@router.post("/refresh", response_model=TokenResponse, summary="Refresh JWT tokens")
async def refresh_token(request: RefreshRequest, services: DevHubServices = Depends(get_services)):
    """Exchange a valid refresh token for a new access + refresh token pair."""
    payload = decode_token(request.refresh_token)
    if payload is None or payload.get("type") != "refresh":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid refresh token",
        )

    try:
        user = await services.users.find_by_id(uuid.UUID(payload.get("sub", "")))
    except ValueError:
        user = None
    if not user or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )

    return TokenResponse(**_token_pair(user))


# ---------------------------------------------------------------------------
# Current user
# ---------------------------------------------------------------------------


@router.post("/logout", status_code=204, summary="Log out")
async def logout(
    current_user: UserRecord = Depends(get_current_user),
    services: DevHubServices = Depends(get_services),
):
    """Mark the current user offline. Tokens simply expire."""
    raise_for_result(await services.users.set_online_status(current_user.email, False))


@router.get("/me", response_model=UserResponse, summary="Get current user")
async def get_me(current_user: UserRecord = Depends(get_current_user)):
    """Return the currently authenticated user's profile."""
    return current_user
