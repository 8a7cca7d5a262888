"""
Shared dependencies: the process Portal, the current viewer, and the admin gate.
Every route except /health and /refresh goes through get_ready_portal, so a failed or running load answers 503.
"""
import logging

from fastapi import Depends, HTTPException, Request, status

from classpoll.models import User
from classpoll.services.permissions import can_manage_school, can_publish, can_target
from classpoll.services.portal import Portal
from classpoll.services.state import LoadStatus

logger = logging.getLogger(__name__)


def get_portal(request: Request) -> Portal:
    """The Portal built at startup (app.state.portal)."""
    portal = getattr(request.app.state, "portal", None)
    if portal is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Portal not started")
    return portal


def get_ready_portal(portal: Portal = Depends(get_portal)) -> Portal:
    """Require a loaded dataset; 503 with the operator diagnostic otherwise."""
    if portal.state.status == LoadStatus.UNAVAILABLE:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=portal.state.load_error or "Data unavailable",
        )
    if portal.state.status == LoadStatus.LOADING:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Loading data, retry shortly")
    return portal


def get_viewer(portal: Portal = Depends(get_ready_portal)) -> User:
    """Require a logged-in viewer; return User or 401."""
    viewer = portal.viewer
    if viewer is None:
        logger.debug("Request without a logged-in viewer")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    return viewer


def require_admin(viewer: User = Depends(get_viewer)) -> User:
    if not can_manage_school(viewer):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Administrator only")
    return viewer


def check_can_publish(viewer: User, target_class: str | None) -> None:
    """Publishers only; a delegate must address their own class."""
    if not can_publish(viewer):
        raise forbid("Only administrators and class delegates can publish")
    if not can_target(viewer, target_class):
        raise forbid("Class delegates can only publish to their own class")


def forbid(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


def not_found(what: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{what} not found")
