from fastapi import APIRouter, Depends
from sqlmodel import Session, select
from sqlalchemy.exc import IntegrityError

from gadget_stock.db import get_session, transaction
from gadget_stock.deps import require_admin
from gadget_stock.errors import Conflict, NotFound
from gadget_stock.models import User, utcnow
from gadget_stock.schemas import (
    AssignmentRead,
    Message,
    RequestRead,
    Subject,
    UserCreate,
    UserDetail,
    UserRead,
    UserUpdate,
)
from gadget_stock.security import hash_password
from gadget_stock.services import ledger, lifecycle, request_queue

router = APIRouter(prefix="/users", tags=["users"])


def _email_taken(session: Session, email: str, exclude_id: int | None = None) -> bool:
    stmt = select(User).where(User.email == email)
    if exclude_id is not None:
        stmt = stmt.where(User.id != exclude_id)
    return session.exec(stmt).first() is not None


@router.get("", response_model=list[UserRead])
def list_users(
    session: Session = Depends(get_session),
    _admin: Subject = Depends(require_admin),
):
    users = session.exec(select(User).order_by(User.created_at.desc(), User.id.desc())).all()
    return [UserRead.model_validate(u) for u in users]


@router.post("", response_model=UserRead, status_code=201)
def create_user(
    data: UserCreate,
    session: Session = Depends(get_session),
    _admin: Subject = Depends(require_admin),
):
    email = data.email.lower()

    # 1) friendly message for the common case
    if _email_taken(session, email):
        raise Conflict("User with this email already exists", code="EMAIL_EXISTS")

    user = User(
        email=email,
        name=data.name,
        password_hash=hash_password(data.password),
        role=data.role.value,
    )

    # 2) unique constraint still wins under a race
    try:
        with transaction(session):
            session.add(user)
    except IntegrityError:
        raise Conflict("User with this email already exists", code="EMAIL_EXISTS")

    session.refresh(user)
    return UserRead.model_validate(user)


@router.get("/{user_id}", response_model=UserDetail)
def get_user(
    user_id: int,
    session: Session = Depends(get_session),
    _admin: Subject = Depends(require_admin),
):
    user = session.get(User, user_id)
    if not user:
        raise NotFound("User not found")

    detail = UserDetail.model_validate(user)
    detail.assignments = [AssignmentRead.model_validate(a) for a in ledger.list_assignments(session, user_id=user_id)]
    detail.requests = [RequestRead.model_validate(r) for r in request_queue.list_requests(session, user_id=user_id)]
    return detail


@router.put("/{user_id}", response_model=UserRead)
def update_user(
    user_id: int,
    body: UserUpdate,
    session: Session = Depends(get_session),
    _admin: Subject = Depends(require_admin),
):
    with transaction(session):
        user = session.get(User, user_id)
        if not user:
            raise NotFound("User not found")

        if body.email is not None:
            email = body.email.lower()
            if _email_taken(session, email, exclude_id=user_id):
                raise Conflict("User with this email already exists", code="EMAIL_EXISTS")
            user.email = email
        if body.name is not None:
            user.name = body.name
        if body.role is not None:
            user.role = body.role.value
        user.updated_at = utcnow()
        session.add(user)

    session.refresh(user)
    return UserRead.model_validate(user)


@router.delete("/{user_id}", response_model=Message)
def delete_user(
    user_id: int,
    session: Session = Depends(get_session),
    admin: Subject = Depends(require_admin),
):
    lifecycle.delete_user(session, admin, user_id)
    return {"message": "User deleted successfully"}
