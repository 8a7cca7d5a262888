"""
Learning resources: list visible, add, remove.
"""
from fastapi import APIRouter, Depends, status

from classpoll.api.deps import check_can_publish, forbid, get_ready_portal, get_viewer, not_found
from classpoll.models import Resource, User
from classpoll.models.types import EntityKind
from classpoll.schemas.resource import ResourceCreate
from classpoll.services.permissions import can_delete
from classpoll.services.portal import Portal

router = APIRouter(prefix="/resources", tags=["resources"])


@router.get("", response_model=list[Resource])
async def list_resources(
    viewer: User = Depends(get_viewer),
    portal: Portal = Depends(get_ready_portal),
):
    return list(portal.resources())


@router.post("", response_model=Resource, status_code=status.HTTP_201_CREATED)
async def create_resource(
    data: ResourceCreate,
    viewer: User = Depends(get_viewer),
    portal: Portal = Depends(get_ready_portal),
):
    check_can_publish(viewer, data.target_class)
    return portal.mutations.add_resource(data)


@router.delete("/{resource_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_resource(
    resource_id: str,
    viewer: User = Depends(get_viewer),
    portal: Portal = Depends(get_ready_portal),
):
    resource = portal.state.get(EntityKind.RESOURCES, resource_id)
    if resource is None:
        raise not_found("Resource")
    # resources carry no author; only the admin or the class delegate may remove them
    if not can_delete(viewer, resource):
        raise forbid("Not allowed to delete this resource")
    portal.mutations.delete_resource(resource_id)
