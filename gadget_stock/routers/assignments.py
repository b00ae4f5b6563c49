from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from gadget_stock.db import get_session
from gadget_stock.deps import require_admin, require_user
from gadget_stock.schemas import AssignmentCreate, AssignmentRead, Message, Subject
from gadget_stock.services import ledger, lifecycle

router = APIRouter(prefix="/assignments", tags=["assignments"])


@router.get("", response_model=list[AssignmentRead])
def list_assignments(
    active: bool = Query(False, description="Only assignments that are not returned yet"),
    gadget_id: Optional[int] = Query(None, ge=1),
    session: Session = Depends(get_session),
    subject: Subject = Depends(require_user),
):
    # admins see everything, users only their own
    user_id = None if subject.is_admin else subject.id
    items = ledger.list_assignments(session, user_id=user_id, gadget_id=gadget_id, active_only=active)
    return [AssignmentRead.model_validate(a) for a in items]


@router.post("", response_model=AssignmentRead, status_code=201)
def create_assignment(
    data: AssignmentCreate,
    session: Session = Depends(get_session),
    admin: Subject = Depends(require_admin),
):
    assignment = lifecycle.direct_assign(session, admin, data.user_id, data.gadget_id, data.notes)
    return AssignmentRead.model_validate(assignment)


@router.put("/{assignment_id}/return", response_model=AssignmentRead)
def return_assignment(
    assignment_id: int,
    session: Session = Depends(get_session),
    subject: Subject = Depends(require_user),
):
    assignment = lifecycle.return_assignment(session, subject, assignment_id)
    return AssignmentRead.model_validate(assignment)


@router.delete("/{assignment_id}", response_model=Message)
def delete_assignment(
    assignment_id: int,
    session: Session = Depends(get_session),
    admin: Subject = Depends(require_admin),
):
    lifecycle.delete_assignment(session, admin, assignment_id)
    return {"message": "Assignment deleted successfully"}
