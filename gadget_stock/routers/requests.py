from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from gadget_stock.db import get_session
from gadget_stock.deps import require_admin, require_user
from gadget_stock.schemas import ApproveResult, AssignmentRead, Message, RequestCreate, RequestRead, RequestStatus, Subject
from gadget_stock.services import lifecycle, request_queue

router = APIRouter(prefix="/requests", tags=["requests"])


@router.get("", response_model=list[RequestRead])
def list_requests(
    status: Optional[RequestStatus] = Query(None, description="Filter by status (optional)"),
    session: Session = Depends(get_session),
    subject: Subject = Depends(require_user),
):
    user_id = None if subject.is_admin else subject.id
    items = request_queue.list_requests(session, user_id=user_id, status=status)
    return [RequestRead.model_validate(r) for r in items]


@router.post("", response_model=RequestRead, status_code=201)
def create_request(
    data: RequestCreate,
    session: Session = Depends(get_session),
    subject: Subject = Depends(require_user),
):
    req = lifecycle.submit_request(session, subject, data.gadget_id, data.quantity, data.reason)
    return RequestRead.model_validate(req)


@router.put("/{request_id}/approve", response_model=ApproveResult)
def approve_request(
    request_id: int,
    session: Session = Depends(get_session),
    admin: Subject = Depends(require_admin),
):
    req, assignment = lifecycle.approve_request(session, admin, request_id)
    return ApproveResult(
        request=RequestRead.model_validate(req),
        assignment=AssignmentRead.model_validate(assignment),
    )


@router.put("/{request_id}/reject", response_model=RequestRead)
def reject_request(
    request_id: int,
    session: Session = Depends(get_session),
    admin: Subject = Depends(require_admin),
):
    return RequestRead.model_validate(lifecycle.reject_request(session, admin, request_id))


@router.delete("/{request_id}", response_model=Message)
def delete_request(
    request_id: int,
    session: Session = Depends(get_session),
    subject: Subject = Depends(require_user),
):
    lifecycle.delete_request(session, subject, request_id)
    return {"message": "Request deleted successfully"}
