"""Assignment ledger: who holds (or held) which gadget."""
from typing import Optional

from sqlalchemy import update
from sqlmodel import Session, select

from gadget_stock.errors import NotFound
from gadget_stock.models import Assignment, Gadget, User, utcnow


def get(session: Session, assignment_id: int) -> Assignment:
    assignment = session.get(Assignment, assignment_id)
    if not assignment:
        raise NotFound("Assignment not found")
    return assignment


def list_assignments(
    session: Session,
    user_id: Optional[int] = None,
    gadget_id: Optional[int] = None,
    active_only: bool = False,
) -> list[Assignment]:
    stmt = select(Assignment)
    if user_id is not None:
        stmt = stmt.where(Assignment.user_id == user_id)
    if gadget_id is not None:
        stmt = stmt.where(Assignment.gadget_id == gadget_id)
    if active_only:
        stmt = stmt.where(Assignment.returned == False)  # noqa: E712
    return list(session.exec(stmt.order_by(Assignment.created_at.desc(), Assignment.id.desc())).all())


def create(
    session: Session,
    user_id: int,
    gadget_id: int,
    quantity: int = 1,
    notes: Optional[str] = None,
) -> Assignment:
    if not session.get(User, user_id):
        raise NotFound("User not found")
    if not session.get(Gadget, gadget_id):
        raise NotFound("Gadget not found")

    assignment = Assignment(user_id=user_id, gadget_id=gadget_id, quantity=quantity, notes=notes)
    session.add(assignment)
    session.flush()
    return assignment


def mark_returned(session: Session, assignment_id: int) -> bool:
    """Flip returned false -> true. False when someone else already did."""
    stmt = (
        update(Assignment)
        .where(Assignment.id == assignment_id, Assignment.returned == False)  # noqa: E712
        .values(returned=True, returned_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    return session.exec(stmt).rowcount == 1


def delete(session: Session, assignment: Assignment) -> None:
    session.delete(assignment)
    session.flush()
