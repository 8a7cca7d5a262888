"""
School settings (name, theme) and class groups. Anyone logged in reads; only admins write.
"""
from fastapi import APIRouter, Depends, HTTPException, status

from classpoll.api.deps import get_ready_portal, get_viewer, not_found, require_admin
from classpoll.models import ClassGroup, SchoolSettings, User
from classpoll.schemas.school import ClassGroupCreate, SchoolSettingsUpdate
from classpoll.services.mutations import MutationRejected
from classpoll.services.portal import Portal

router = APIRouter(tags=["school"])


@router.get("/settings", response_model=SchoolSettings)
async def get_settings(portal: Portal = Depends(get_ready_portal)):
    """Readable before login: the login page shows the school name."""
    return portal.state.settings


@router.put("/settings", response_model=SchoolSettings)
async def update_settings(
    data: SchoolSettingsUpdate,
    admin: User = Depends(require_admin),
    portal: Portal = Depends(get_ready_portal),
):
    return portal.mutations.update_settings(data)


@router.get("/class-groups", response_model=list[ClassGroup])
async def list_class_groups(
    viewer: User = Depends(get_viewer),
    portal: Portal = Depends(get_ready_portal),
):
    return list(portal.state.class_groups)


@router.post("/class-groups", response_model=ClassGroup, status_code=status.HTTP_201_CREATED)
async def create_class_group(
    data: ClassGroupCreate,
    admin: User = Depends(require_admin),
    portal: Portal = Depends(get_ready_portal),
):
    try:
        return portal.mutations.add_class_group(data.name)
    except MutationRejected as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.delete("/class-groups/{group_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_class_group(
    group_id: str,
    admin: User = Depends(require_admin),
    portal: Portal = Depends(get_ready_portal),
):
    """Users and items still naming the class keep it."""
    if not portal.mutations.delete_class_group(group_id):
        raise not_found("Class group")
