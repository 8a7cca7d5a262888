"""
User management (admin only): list, create, edit, delete, reset password.
Responses never include the stored secret.
"""
from fastapi import APIRouter, Depends, HTTPException, status

from classpoll.api.deps import forbid, get_ready_portal, not_found, require_admin
from classpoll.models import User
from classpoll.schemas.auth import UserResponse
from classpoll.schemas.user import UserCreate, UserUpdate
from classpoll.services.mutations import DuplicateEmailError, ProtectedAccountError
from classpoll.services.portal import Portal

router = APIRouter(prefix="/users", tags=["users"])


@router.get("", response_model=list[UserResponse])
async def list_users(
    admin: User = Depends(require_admin),
    portal: Portal = Depends(get_ready_portal),
):
    return [UserResponse.model_validate(u) for u in portal.state.users]


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    data: UserCreate,
    admin: User = Depends(require_admin),
    portal: Portal = Depends(get_ready_portal),
):
    """password omitted: the default secret."""
    try:
        user = portal.mutations.add_user(data)
    except DuplicateEmailError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return UserResponse.model_validate(user)


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: str,
    data: UserUpdate,
    admin: User = Depends(require_admin),
    portal: Portal = Depends(get_ready_portal),
):
    try:
        user = portal.mutations.update_user(user_id, data)
    except DuplicateEmailError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    if user is None:
        raise not_found("User")
    return UserResponse.model_validate(user)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: str,
    admin: User = Depends(require_admin),
    portal: Portal = Depends(get_ready_portal),
):
    try:
        deleted = portal.mutations.delete_user(user_id)
    except ProtectedAccountError as e:
        raise forbid(str(e))
    if not deleted:
        raise not_found("User")


@router.post("/{user_id}/reset-password", response_model=UserResponse)
async def reset_password(
    user_id: str,
    admin: User = Depends(require_admin),
    portal: Portal = Depends(get_ready_portal),
):
    """Back to the default secret."""
    user = portal.mutations.reset_user_password(user_id)
    if user is None:
        raise not_found("User")
    return UserResponse.model_validate(user)
