"""
Exam schedule (DS): list visible, schedule, cancel.
"""
from fastapi import APIRouter, Depends, status

from classpoll.api.deps import check_can_publish, forbid, get_ready_portal, get_viewer, not_found
from classpoll.models import Exam, User
from classpoll.models.types import EntityKind
from classpoll.schemas.exam import ExamCreate
from classpoll.services.permissions import can_delete
from classpoll.services.portal import Portal

router = APIRouter(prefix="/exams", tags=["exams"])


@router.get("", response_model=list[Exam])
async def list_exams(
    viewer: User = Depends(get_viewer),
    portal: Portal = Depends(get_ready_portal),
):
    """Visible exams ordered by date."""
    return sorted(portal.exams(), key=lambda e: e.date)


@router.post("", response_model=Exam, status_code=status.HTTP_201_CREATED)
async def create_exam(
    data: ExamCreate,
    viewer: User = Depends(get_viewer),
    portal: Portal = Depends(get_ready_portal),
):
    check_can_publish(viewer, data.target_class)
    return portal.mutations.add_exam(data)


@router.delete("/{exam_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_exam(
    exam_id: str,
    viewer: User = Depends(get_viewer),
    portal: Portal = Depends(get_ready_portal),
):
    exam = portal.state.get(EntityKind.EXAMS, exam_id)
    if exam is None:
        raise not_found("Exam")
    if not can_delete(viewer, exam, owner_id=exam.created_by_id):
        raise forbid("Not allowed to delete this exam")
    portal.mutations.delete_exam(exam_id)
