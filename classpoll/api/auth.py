"""
Auth routes: login (email case-insensitive), logout, GET /auth/me.
The session is the process-wide Session Store slot, not a token.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, status

from classpoll.api.deps import get_ready_portal, get_viewer
from classpoll.models import User
from classpoll.schemas.auth import LoginRequest, UserResponse
from classpoll.services.auth import AuthenticationError
from classpoll.services.portal import Portal

router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger(__name__)


@router.post("/login", response_model=UserResponse)
async def login(data: LoginRequest, portal: Portal = Depends(get_ready_portal)):
    """Login with email/password; the user becomes the stored session."""
    try:
        user = portal.login(data.email, data.password)
    except AuthenticationError:
        logger.info("Failed login for %s", data.email)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid email or password")
    return UserResponse.model_validate(user)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(portal: Portal = Depends(get_ready_portal)):
    portal.logout()


@router.get("/me", response_model=UserResponse)
async def me(viewer: User = Depends(get_viewer)):
    """Return the current viewer (id, name, email, role, class group)."""
    return UserResponse.model_validate(viewer)
