"""Inventory store: gadget records and their stock counter.

Nothing here commits. Callers wrap each unit of work in ``db.transaction``.
"""
from typing import Optional

from sqlalchemy import func, or_, update
from sqlmodel import Session, select

from gadget_stock.errors import Conflict, NotFound, InsufficientStock
from gadget_stock.models import Assignment, Gadget, GadgetRequest, StockMovement, utcnow
from gadget_stock.schemas import GadgetStatus, MovementReason


def get(session: Session, gadget_id: int) -> Gadget:
    gadget = session.get(Gadget, gadget_id)
    if not gadget:
        raise NotFound("Gadget not found")
    return gadget


def list_gadgets(
    session: Session,
    q: Optional[str] = None,
    status: Optional[GadgetStatus] = None,
    category: Optional[str] = None,
    requestable: Optional[bool] = None,
) -> list[Gadget]:
    stmt = select(Gadget)
    if q:
        stmt = stmt.where(
            or_(
                Gadget.name.contains(q),
                Gadget.description.contains(q),
                Gadget.category.contains(q),
            )
        )
    if status is not None:
        stmt = stmt.where(Gadget.status == status.value)
    if category:
        stmt = stmt.where(Gadget.category == category)
    if requestable is True:
        stmt = stmt.where(Gadget.status == GadgetStatus.AVAILABLE.value, Gadget.quantity > 0)
    elif requestable is False:
        stmt = stmt.where(or_(Gadget.status != GadgetStatus.AVAILABLE.value, Gadget.quantity <= 0))
    return list(session.exec(stmt.order_by(Gadget.created_at.desc(), Gadget.id.desc())).all())


def usage_counts(session: Session) -> dict[int, tuple[int, int]]:
    """gadget_id -> (assignment rows, request rows)."""
    assignments = dict(
        session.exec(
            select(Assignment.gadget_id, func.count()).group_by(Assignment.gadget_id)
        ).all()
    )
    requests = dict(
        session.exec(
            select(GadgetRequest.gadget_id, func.count()).group_by(GadgetRequest.gadget_id)
        ).all()
    )
    ids = set(assignments) | set(requests)
    return {gid: (assignments.get(gid, 0), requests.get(gid, 0)) for gid in ids}


def create(session: Session, fields: dict, operator_id: Optional[int] = None) -> Gadget:
    gadget = Gadget(**fields)
    session.add(gadget)
    session.flush()  # assigns gadget.id

    if gadget.quantity > 0:
        record_movement(session, gadget.id, MovementReason.CREATE, gadget.quantity, operator_id, "Initial stock")
    return gadget


def _current_quantity(session: Session, gadget_id: int) -> int:
    # bypass the identity map, another transaction may have moved stock
    gadget = session.get(Gadget, gadget_id, populate_existing=True)
    if not gadget:
        raise NotFound("Gadget not found")
    return gadget.quantity


def update_fields(session: Session, gadget_id: int, fields: dict, operator_id: Optional[int] = None) -> Gadget:
    """Apply an admin edit. A new ``quantity`` is a compare-and-set.

    The ADJUST movement's delta is taken against the same quantity the
    UPDATE matched on, so the journal keeps summing to the stock counter.
    Raises ``Conflict`` when stock moved in between.
    """
    fields = dict(fields)
    new_qty = fields.pop("quantity", None)

    gadget = get(session, gadget_id)
    for key, value in fields.items():
        setattr(gadget, key, value)
    gadget.updated_at = utcnow()
    session.add(gadget)
    session.flush()

    if new_qty is not None:
        old_qty = _current_quantity(session, gadget_id)
        if new_qty != old_qty:
            stmt = (
                update(Gadget)
                .where(Gadget.id == gadget_id, Gadget.quantity == old_qty)
                .values(quantity=new_qty, updated_at=utcnow())
                .execution_options(synchronize_session=False)
            )
            if session.exec(stmt).rowcount == 0:
                raise Conflict(
                    "Gadget stock changed while it was being edited, reload and retry",
                    code="STOCK_CHANGED",
                )
            record_movement(
                session,
                gadget_id,
                MovementReason.ADJUST,
                new_qty - old_qty,
                operator_id,
                f"Stock set to {new_qty} ({old_qty}->{new_qty})",
            )

    return session.get(Gadget, gadget_id, populate_existing=True)


def delete(session: Session, gadget_id: int) -> None:
    gadget = get(session, gadget_id)
    session.delete(gadget)
    session.flush()


def adjust_quantity(
    session: Session,
    gadget_id: int,
    delta: int,
    reason: MovementReason,
    operator_id: Optional[int] = None,
    note: Optional[str] = None,
    status: Optional[GadgetStatus] = None,
) -> Gadget:
    """Atomically add ``delta`` (may be negative) to the gadget's stock.

    The guard lives in the UPDATE itself, so concurrent debits are linearized
    by the database and quantity can never go below zero.
    """
    values = {"quantity": Gadget.quantity + delta, "updated_at": utcnow()}
    if status is not None:
        values["status"] = status.value

    stmt = (
        update(Gadget)
        .where(Gadget.id == gadget_id, Gadget.quantity + delta >= 0)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    result = session.exec(stmt)

    if result.rowcount == 0:
        gadget = get(session, gadget_id)
        raise InsufficientStock(
            f"Insufficient gadget quantity: {gadget.quantity} in stock, {-delta} needed"
        )

    record_movement(session, gadget_id, reason, delta, operator_id, note)
    return session.get(Gadget, gadget_id, populate_existing=True)


def record_movement(
    session: Session,
    gadget_id: int,
    reason: MovementReason,
    delta: int,
    operator_id: Optional[int],
    note: Optional[str],
) -> StockMovement:
    mv = StockMovement(
        gadget_id=gadget_id,
        reason=reason.value,
        delta=delta,
        note=note,
        operator_id=operator_id,
    )
    session.add(mv)
    return mv
