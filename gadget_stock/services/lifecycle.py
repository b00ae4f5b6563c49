"""Lifecycle coordinator.

Every operation here is one all-or-nothing transaction over gadgets,
assignments and requests. Stock debits go through
``inventory.adjust_quantity`` (a guarded UPDATE) and one-way state flips go
through conditional UPDATEs, so racing callers are linearized by the database
rather than by reads done in Python.

The admin role is checked once, by ``deps.require_admin`` in front of these
functions. Ownership checks stay here since they need the stored row.
"""
import logging
from typing import Optional

from sqlalchemy import delete as sa_delete
from sqlmodel import Session

from gadget_stock.db import transaction
from gadget_stock.errors import (
    AlreadyProcessed,
    AlreadyReturned,
    Conflict,
    Forbidden,
    NotFound,
    OnlyPendingDeletable,
    OutOfStock,
    InsufficientStock,
)
from gadget_stock.models import Assignment, GadgetRequest, StockMovement, User
from gadget_stock.schemas import GadgetStatus, MovementReason, RequestStatus, Subject
from gadget_stock.services import inventory, ledger, request_queue

logger = logging.getLogger(__name__)


def direct_assign(
    session: Session,
    subject: Subject,
    user_id: int,
    gadget_id: int,
    notes: Optional[str] = None,
) -> Assignment:
    with transaction(session):
        gadget = inventory.get(session, gadget_id)
        if gadget.quantity < 1:
            raise OutOfStock("Gadget is out of stock")

        try:
            inventory.adjust_quantity(
                session,
                gadget_id,
                -1,
                MovementReason.ASSIGN,
                operator_id=subject.id,
                note=f"Assigned to user {user_id}",
                status=GadgetStatus.IN_USE,
            )
        except InsufficientStock:
            # lost the race for the last unit
            raise OutOfStock("Gadget is out of stock")

        assignment = ledger.create(session, user_id, gadget_id, quantity=1, notes=notes)

    logger.info("gadget %s assigned to user %s by admin %s", gadget_id, user_id, subject.id)
    return assignment


def return_assignment(session: Session, subject: Subject, assignment_id: int) -> Assignment:
    with transaction(session):
        assignment = ledger.get(session, assignment_id)

        if not subject.is_admin and assignment.user_id != subject.id:
            raise Forbidden("Not authorized to return this assignment")

        if assignment.returned or not ledger.mark_returned(session, assignment_id):
            raise AlreadyReturned("Assignment already returned")

        # status is left as-is; admins reset it explicitly
        inventory.adjust_quantity(
            session,
            assignment.gadget_id,
            assignment.quantity,
            MovementReason.RETURN,
            operator_id=subject.id,
            note=f"Assignment {assignment_id} returned",
        )

    session.refresh(assignment)
    logger.info("assignment %s returned by user %s", assignment_id, subject.id)
    return assignment


def delete_assignment(session: Session, subject: Subject, assignment_id: int) -> None:
    with transaction(session):
        assignment = ledger.get(session, assignment_id)

        # deleting an active loan implicitly returns it
        if not assignment.returned and ledger.mark_returned(session, assignment_id):
            inventory.adjust_quantity(
                session,
                assignment.gadget_id,
                assignment.quantity,
                MovementReason.RELEASE,
                operator_id=subject.id,
                note=f"Active assignment {assignment_id} deleted",
            )

        ledger.delete(session, assignment)

    logger.info("assignment %s deleted by admin %s", assignment_id, subject.id)


def submit_request(
    session: Session,
    subject: Subject,
    gadget_id: int,
    quantity: int = 1,
    reason: Optional[str] = None,
) -> GadgetRequest:
    # stock is checked at approval, not here
    with transaction(session):
        req = request_queue.create(session, subject.id, gadget_id, quantity=quantity, reason=reason)

    logger.info("request %s submitted by user %s for gadget %s x%s", req.id, subject.id, gadget_id, quantity)
    return req


def approve_request(session: Session, subject: Subject, request_id: int) -> tuple[GadgetRequest, Assignment]:
    with transaction(session):
        req = request_queue.get(session, request_id)
        if req.status != RequestStatus.PENDING.value:
            raise AlreadyProcessed("Request already processed")

        if not request_queue.transition(session, request_id, RequestStatus.APPROVED):
            raise AlreadyProcessed("Request already processed")

        # one assignment holds the whole approved quantity
        inventory.adjust_quantity(
            session,
            req.gadget_id,
            -req.quantity,
            MovementReason.APPROVE,
            operator_id=subject.id,
            note=f"Request {request_id} approved",
            status=GadgetStatus.IN_USE,
        )
        assignment = ledger.create(
            session,
            req.user_id,
            req.gadget_id,
            quantity=req.quantity,
            notes=f"Auto-assigned from request: {req.reason or 'No reason provided'}",
        )

    session.refresh(req)
    logger.info("request %s approved by admin %s -> assignment %s", request_id, subject.id, assignment.id)
    return req, assignment


def reject_request(session: Session, subject: Subject, request_id: int) -> GadgetRequest:
    with transaction(session):
        req = request_queue.get(session, request_id)
        if req.status != RequestStatus.PENDING.value or not request_queue.transition(
            session, request_id, RequestStatus.REJECTED
        ):
            raise AlreadyProcessed("Request already processed")

    session.refresh(req)
    logger.info("request %s rejected by admin %s", request_id, subject.id)
    return req


def delete_request(session: Session, subject: Subject, request_id: int) -> None:
    with transaction(session):
        req = request_queue.get(session, request_id)

        if not subject.is_admin:
            if req.user_id != subject.id:
                raise Forbidden("Not authorized to delete this request")
            if req.status != RequestStatus.PENDING.value:
                raise OnlyPendingDeletable("Only pending requests can be deleted")

        # a request never reserved stock, nothing to give back
        request_queue.delete(session, req)

    logger.info("request %s deleted by user %s", request_id, subject.id)


def delete_gadget(session: Session, subject: Subject, gadget_id: int) -> None:
    with transaction(session):
        inventory.get(session, gadget_id)
        if ledger.list_assignments(session, gadget_id=gadget_id, active_only=True):
            raise Conflict("Gadget has active assignments, return them first", code="GADGET_IN_USE")

        session.exec(sa_delete(Assignment).where(Assignment.gadget_id == gadget_id))
        session.exec(sa_delete(GadgetRequest).where(GadgetRequest.gadget_id == gadget_id))
        session.exec(sa_delete(StockMovement).where(StockMovement.gadget_id == gadget_id))
        inventory.delete(session, gadget_id)

    logger.info("gadget %s deleted by admin %s", gadget_id, subject.id)


def delete_user(session: Session, subject: Subject, user_id: int) -> None:
    with transaction(session):
        user = session.get(User, user_id)
        if not user:
            raise NotFound("User not found")
        if user.id == subject.id:
            raise Conflict("You cannot delete your own account", code="CANNOT_DELETE_SELF")

        active = ledger.list_assignments(session, user_id=user_id, active_only=True)
        pending = request_queue.list_requests(session, user_id=user_id, status=RequestStatus.PENDING)
        if active or pending:
            raise Conflict(
                "User still holds gadgets or has pending requests",
                code="USER_HAS_ACTIVE_RECORDS",
            )

        # only history is left, it goes with the user
        session.exec(sa_delete(Assignment).where(Assignment.user_id == user_id))
        session.exec(sa_delete(GadgetRequest).where(GadgetRequest.user_id == user_id))
        session.delete(user)

    logger.info("user %s deleted by admin %s", user_id, subject.id)
