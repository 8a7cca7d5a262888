"""
Polls: list visible, create, vote (once, or once more in change-vote mode), delete, AI draft.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, status

from classpoll.api.deps import check_can_publish, forbid, get_ready_portal, get_viewer, not_found
from classpoll.config import settings
from classpoll.llm import PollDrafter, get_poll_drafter
from classpoll.models import Poll, User
from classpoll.models.types import EntityKind
from classpoll.schemas.poll import PollCreate, PollDraftRequest, PollDraftResponse, VoteRequest
from classpoll.services.permissions import can_delete, can_publish, can_vote
from classpoll.services.portal import Portal
from classpoll.services.visibility import is_visible

router = APIRouter(prefix="/polls", tags=["polls"])
logger = logging.getLogger(__name__)


def get_drafter() -> PollDrafter:
    return get_poll_drafter()


def _visible_poll(portal: Portal, viewer: User, poll_id: str) -> Poll:
    poll = portal.state.get(EntityKind.POLLS, poll_id)
    if poll is None or not is_visible(viewer, poll):
        raise not_found("Poll")
    return poll


@router.get("", response_model=list[Poll])
async def list_polls(
    viewer: User = Depends(get_viewer),
    portal: Portal = Depends(get_ready_portal),
):
    return list(portal.polls())


@router.post("", response_model=Poll, status_code=status.HTTP_201_CREATED)
async def create_poll(
    data: PollCreate,
    viewer: User = Depends(get_viewer),
    portal: Portal = Depends(get_ready_portal),
):
    check_can_publish(viewer, data.target_class)
    return portal.mutations.add_poll(data)


@router.post("/draft", response_model=PollDraftResponse)
async def draft_poll(
    data: PollDraftRequest,
    viewer: User = Depends(get_viewer),
    drafter: PollDrafter = Depends(get_drafter),
):
    """Ask the model for a question + options; proposal is null when it cannot help."""
    if not can_publish(viewer):
        raise forbid("Only administrators and class delegates can create polls")
    difficulty = data.difficulty or settings.poll_draft_difficulty
    proposal = await drafter.draft_poll(data.topic, difficulty)
    return PollDraftResponse(proposal=proposal)


@router.post("/{poll_id}/vote", response_model=Poll)
async def vote(
    poll_id: str,
    data: VoteRequest,
    viewer: User = Depends(get_viewer),
    portal: Portal = Depends(get_ready_portal),
):
    """A repeated vote (outside change-vote mode) is ignored and the unchanged poll returned."""
    if not can_vote(viewer):
        raise forbid("Administrators do not vote")
    poll = _visible_poll(portal, viewer, poll_id)
    if poll.option(data.option_id) is None:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="Unknown option")
    updated = portal.mutations.vote_poll(poll_id, data.option_id)
    if updated is None:
        logger.debug("Duplicate vote by %s on poll %s ignored", viewer.id, poll_id)
        return poll
    return updated


@router.post("/{poll_id}/change-vote", status_code=status.HTTP_204_NO_CONTENT)
async def begin_change_vote(
    poll_id: str,
    viewer: User = Depends(get_viewer),
    portal: Portal = Depends(get_ready_portal),
):
    _visible_poll(portal, viewer, poll_id)
    if not portal.mutations.begin_vote_change(poll_id):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="You have not voted on this poll yet")


@router.delete("/{poll_id}/change-vote", status_code=status.HTTP_204_NO_CONTENT)
async def cancel_change_vote(
    poll_id: str,
    viewer: User = Depends(get_viewer),
    portal: Portal = Depends(get_ready_portal),
):
    portal.mutations.cancel_vote_change(poll_id)


@router.delete("/{poll_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_poll(
    poll_id: str,
    viewer: User = Depends(get_viewer),
    portal: Portal = Depends(get_ready_portal),
):
    poll = portal.state.get(EntityKind.POLLS, poll_id)
    if poll is None:
        raise not_found("Poll")
    if not can_delete(viewer, poll, owner_id=poll.created_by_id):
        raise forbid("Not allowed to delete this poll")
    portal.mutations.delete_poll(poll_id)
