"""Request queue: users' asks for gadgets awaiting an admin decision."""
from typing import Optional

from sqlalchemy import update
from sqlmodel import Session, select

from gadget_stock.errors import NotFound
from gadget_stock.models import Gadget, GadgetRequest, User, utcnow
from gadget_stock.schemas import RequestStatus


def get(session: Session, request_id: int) -> GadgetRequest:
    req = session.get(GadgetRequest, request_id)
    if not req:
        raise NotFound("Request not found")
    return req


def list_requests(
    session: Session,
    user_id: Optional[int] = None,
    gadget_id: Optional[int] = None,
    status: Optional[RequestStatus] = None,
) -> list[GadgetRequest]:
    stmt = select(GadgetRequest)
    if user_id is not None:
        stmt = stmt.where(GadgetRequest.user_id == user_id)
    if gadget_id is not None:
        stmt = stmt.where(GadgetRequest.gadget_id == gadget_id)
    if status is not None:
        stmt = stmt.where(GadgetRequest.status == status.value)
    return list(session.exec(stmt.order_by(GadgetRequest.created_at.desc(), GadgetRequest.id.desc())).all())


def create(
    session: Session,
    user_id: int,
    gadget_id: int,
    quantity: int = 1,
    reason: Optional[str] = None,
) -> GadgetRequest:
    if not session.get(User, user_id):
        raise NotFound("User not found")
    if not session.get(Gadget, gadget_id):
        raise NotFound("Gadget not found")

    req = GadgetRequest(
        user_id=user_id,
        gadget_id=gadget_id,
        quantity=quantity,
        reason=reason,
        status=RequestStatus.PENDING.value,
    )
    session.add(req)
    session.flush()
    return req


def transition(session: Session, request_id: int, new_status: RequestStatus) -> bool:
    """Move a PENDING request to ``new_status``. False if it was no longer pending."""
    stmt = (
        update(GadgetRequest)
        .where(GadgetRequest.id == request_id, GadgetRequest.status == RequestStatus.PENDING.value)
        .values(status=new_status.value, updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    return session.exec(stmt).rowcount == 1


def delete(session: Session, req: GadgetRequest) -> None:
    session.delete(req)
    session.flush()
