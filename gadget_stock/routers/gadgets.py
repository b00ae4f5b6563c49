from datetime import datetime
import io
from typing import Optional
from fastapi import APIRouter, Depends
from sqlmodel import Session
from fastapi.responses import Response
from openpyxl import Workbook
from openpyxl.styles import Font, Alignment, PatternFill
from openpyxl.worksheet.table import Table, TableStyleInfo
from gadget_stock.db import get_session, transaction
from gadget_stock.deps import require_admin, require_user
from gadget_stock.schemas import (
    AssignmentRead,
    GadgetCreate,
    GadgetDetail,
    GadgetListItem,
    GadgetRead,
    GadgetStatus,
    GadgetUpdate,
    Message,
    RequestRead,
    Subject,
)
from gadget_stock.services import inventory, ledger, lifecycle, request_queue

router = APIRouter(prefix="/gadgets", tags=["gadgets"])


@router.get("", response_model=list[GadgetListItem])
def list_gadgets(
        q: Optional[str] = None,
        status: Optional[GadgetStatus] = None,
        category: Optional[str] = None,
        requestable: Optional[bool] = None,
        session: Session = Depends(get_session),
        _subject: Subject = Depends(require_user),
):
    gadgets = inventory.list_gadgets(session, q=q, status=status, category=category, requestable=requestable)
    counts = inventory.usage_counts(session)

    items = []
    for g in gadgets:
        item = GadgetListItem.model_validate(g)
        item.assignment_count, item.request_count = counts.get(g.id, (0, 0))
        items.append(item)
    return items


@router.post("", response_model=GadgetRead, status_code=201)
def create_gadget(
        data: GadgetCreate,
        session: Session = Depends(get_session),
        admin: Subject = Depends(require_admin),
):
    fields = data.model_dump()
    fields["status"] = data.status.value
    with transaction(session):
        gadget = inventory.create(session, fields, operator_id=admin.id)
    session.refresh(gadget)
    return GadgetRead.model_validate(gadget)


@router.get("/export.xlsx")
def export_gadgets_xlsx(
    q: Optional[str] = None,
    session: Session = Depends(get_session),
    _admin: Subject = Depends(require_admin),
):
    gadgets = sorted(inventory.list_gadgets(session, q=q), key=lambda g: g.id)

    header = ["ID", "Name", "Category", "Status", "Quantity", "Description", "Updated"]

    def norm_str(v, default: str) -> str:
        if v is None:
            return default
        s = str(v).strip()
        return s if s else default

    def norm_dt_obj(v):
        if isinstance(v, datetime):
            return v.replace(tzinfo=None) if v.tzinfo else v
        return None

    wb = Workbook()
    ws = wb.active
    ws.title = "Gadgets"

    header_font = Font(bold=True)
    header_fill = PatternFill("solid", fgColor="DDDDDD")
    header_align = Alignment(horizontal="center", vertical="center")

    ws.append(header)
    ws.row_dimensions[1].height = 26
    for col in range(1, len(header) + 1):
        cell = ws.cell(row=1, column=col)
        cell.font = header_font
        cell.fill = header_fill
        cell.alignment = header_align

    for g in gadgets:
        ws.append([
            g.id,
            norm_str(g.name, "Unnamed"),
            norm_str(g.category, ""),
            norm_str(g.status, ""),
            g.quantity,
            norm_str(g.description, ""),
            norm_dt_obj(g.updated_at),
        ])

    data_end_row = 1 + len(gadgets)

    ws.freeze_panes = "A2"

    for r in range(2, data_end_row + 1):
        ws.cell(row=r, column=5).number_format = "0"
        ws.cell(row=r, column=7).number_format = "yyyy-mm-dd hh:mm:ss"

    col_widths = {"A": 8, "B": 26, "C": 14, "D": 14, "E": 10, "F": 36, "G": 20}
    for k, w in col_widths.items():
        ws.column_dimensions[k].width = w

    # a table needs at least a header row and one data row
    if gadgets:
        table = Table(displayName="GadgetCatalog", ref=f"A1:G{data_end_row}")
        table.tableStyleInfo = TableStyleInfo(
            name="TableStyleMedium9",
            showFirstColumn=False,
            showLastColumn=False,
            showRowStripes=True,
            showColumnStripes=False,
        )
        ws.add_table(table)

    ws.append([])
    ws.append(["Exported at", datetime.now().strftime("%Y-%m-%d %H:%M:%S")])

    buf = io.BytesIO()
    wb.save(buf)

    return Response(
        content=buf.getvalue(),
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": 'attachment; filename="gadgets.xlsx"'},
    )


@router.get("/{gadget_id}", response_model=GadgetDetail)
def get_gadget(
        gadget_id: int,
        session: Session = Depends(get_session),
        _subject: Subject = Depends(require_user),
):
    gadget = inventory.get(session, gadget_id)
    detail = GadgetDetail.model_validate(gadget)
    detail.assignments = [
        AssignmentRead.model_validate(a) for a in ledger.list_assignments(session, gadget_id=gadget_id)
    ]
    detail.requests = [
        RequestRead.model_validate(r) for r in request_queue.list_requests(session, gadget_id=gadget_id)
    ]
    return detail


@router.put("/{gadget_id}", response_model=GadgetRead)
def update_gadget(
    gadget_id: int,
    body: GadgetUpdate,
    session: Session = Depends(get_session),
    admin: Subject = Depends(require_admin),
):
    fields = body.model_dump(exclude_unset=True)
    if body.status is not None:
        fields["status"] = body.status.value
    # NOT NULL columns cannot be cleared
    for key in ("name", "quantity", "status"):
        if key in fields and fields[key] is None:
            fields.pop(key)

    with transaction(session):
        gadget = inventory.update_fields(session, gadget_id, fields, operator_id=admin.id)
    session.refresh(gadget)
    return GadgetRead.model_validate(gadget)


@router.delete("/{gadget_id}", response_model=Message)
def delete_gadget(
        gadget_id: int,
        session: Session = Depends(get_session),
        admin: Subject = Depends(require_admin),
):
    lifecycle.delete_gadget(session, admin, gadget_id)
    return {"message": "Gadget deleted successfully"}
