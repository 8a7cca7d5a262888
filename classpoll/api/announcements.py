"""
Announcements (INFOS): list visible, publish, delete.
"""
from fastapi import APIRouter, Depends, status

from classpoll.api.deps import check_can_publish, forbid, get_ready_portal, get_viewer, not_found
from classpoll.models import Announcement, User
from classpoll.models.types import EntityKind
from classpoll.schemas.announcement import AnnouncementCreate
from classpoll.services.permissions import can_delete
from classpoll.services.portal import Portal

router = APIRouter(prefix="/announcements", tags=["announcements"])


@router.get("", response_model=list[Announcement])
async def list_announcements(
    viewer: User = Depends(get_viewer),
    portal: Portal = Depends(get_ready_portal),
):
    """Newest first, as published; only what the viewer may see."""
    return list(portal.announcements())


@router.post("", response_model=Announcement, status_code=status.HTTP_201_CREATED)
async def create_announcement(
    data: AnnouncementCreate,
    viewer: User = Depends(get_viewer),
    portal: Portal = Depends(get_ready_portal),
):
    check_can_publish(viewer, data.target_class)
    return portal.mutations.add_announcement(data)


@router.delete("/{announcement_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_announcement(
    announcement_id: str,
    viewer: User = Depends(get_viewer),
    portal: Portal = Depends(get_ready_portal),
):
    ann = portal.state.get(EntityKind.ANNOUNCEMENTS, announcement_id)
    if ann is None:
        raise not_found("Announcement")
    if not can_delete(viewer, ann, owner_id=ann.author_id):
        raise forbid("Not allowed to delete this announcement")
    portal.mutations.delete_announcement(announcement_id)
