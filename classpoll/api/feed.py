"""
Derived views: notifications, dashboard, and manual refresh (full reload).
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, status

from classpoll.api.deps import get_portal, get_ready_portal, get_viewer
from classpoll.models import AppNotification, User
from classpoll.schemas.dashboard import DashboardResponse
from classpoll.services.loader import DataUnavailableError
from classpoll.services.portal import Portal
from classpoll.services.state import LoadStatus

router = APIRouter(tags=["feed"])
logger = logging.getLogger(__name__)


@router.get("/notifications", response_model=list[AppNotification])
async def list_notifications(
    viewer: User = Depends(get_viewer),
    portal: Portal = Depends(get_ready_portal),
):
    """Recomputed on every call, newest first."""
    return portal.notifications()


@router.get("/dashboard", response_model=DashboardResponse)
async def dashboard(
    viewer: User = Depends(get_viewer),
    portal: Portal = Depends(get_ready_portal),
):
    return portal.dashboard()


@router.post("/refresh")
async def refresh(portal: Portal = Depends(get_portal)):
    """
    Reload every collection from the store. Needs a viewer once data is loaded; after a failed
    first load nobody can log in, so the retry is open. A failed reload keeps the previous data.
    """
    if portal.state.status == LoadStatus.LOADING:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Loading data, retry shortly")
    viewer = portal.viewer
    if portal.state.status == LoadStatus.READY and viewer is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    try:
        result = await portal.load()
    except DataUnavailableError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    if result != LoadStatus.READY:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=portal.state.load_error or "Data unavailable",
        )
    logger.info("Manual refresh by %s", viewer.id if viewer else "anonymous")
    return {"status": result.value}
