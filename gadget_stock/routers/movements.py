from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy import func
from sqlmodel import Session, select

from gadget_stock.db import get_session
from gadget_stock.deps import require_admin
from gadget_stock.errors import DomainError
from gadget_stock.models import StockMovement
from gadget_stock.schemas import MovementListResponse, MovementReason, MovementSort, Subject

router = APIRouter(prefix="/movements", tags=["movements"])

_ORDER = {
    MovementSort.id_desc: (StockMovement.id.desc(),),
    MovementSort.id_asc: (StockMovement.id.asc(),),
    MovementSort.created_desc: (StockMovement.created_at.desc(), StockMovement.id.desc()),
    MovementSort.created_asc: (StockMovement.created_at.asc(), StockMovement.id.asc()),
}


@router.get("", response_model=MovementListResponse)
def list_movements(
    gadget_id: Optional[int] = Query(None, ge=1, description="Only this gadget (optional)"),
    reason: Optional[MovementReason] = Query(None, description="Only this kind of change (optional)"),
    operator_id: Optional[int] = Query(None, ge=1),
    start: Optional[datetime] = Query(None, description="Inclusive lower bound on created_at"),
    end: Optional[datetime] = Query(None, description="Exclusive upper bound on created_at"),
    sort: MovementSort = Query(MovementSort.id_desc),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    session: Session = Depends(get_session),
    _admin: Subject = Depends(require_admin),
):
    if start is not None and end is not None and start >= end:
        raise DomainError("start must be earlier than end")

    conds = []
    if gadget_id is not None:
        conds.append(StockMovement.gadget_id == gadget_id)
    if reason is not None:
        conds.append(StockMovement.reason == reason.value)
    if operator_id is not None:
        conds.append(StockMovement.operator_id == operator_id)
    if start is not None:
        conds.append(StockMovement.created_at >= start)
    if end is not None:
        conds.append(StockMovement.created_at < end)

    count_stmt = select(func.count()).select_from(StockMovement)
    stmt = select(StockMovement)
    if conds:
        count_stmt = count_stmt.where(*conds)
        stmt = stmt.where(*conds)

    total = session.exec(count_stmt).one()
    items = session.exec(stmt.order_by(*_ORDER[sort]).offset(offset).limit(limit)).all()

    return {"items": items, "total": total, "limit": limit, "offset": offset}
