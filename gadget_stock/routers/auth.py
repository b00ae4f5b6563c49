from fastapi import APIRouter, Depends
from sqlmodel import Session, select

from gadget_stock.db import get_session
from gadget_stock.deps import require_user
from gadget_stock.errors import _auth_401
from gadget_stock.models import User
from gadget_stock.schemas import LoginRequest, LoginResponse, Subject, UserRead
from gadget_stock.security import verify_password, create_access_token

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=LoginResponse)
def login(data: LoginRequest, session: Session = Depends(get_session)):
    user = session.exec(select(User).where(User.email == data.email.strip().lower())).first()
    if (not user) or (not verify_password(data.password, user.password_hash)):
        raise _auth_401("INVALID_CREDENTIALS", "Invalid email or password")

    token = create_access_token(user.id, user.email, user.role)
    return {"user": UserRead.model_validate(user), "token": token, "token_type": "bearer"}


@router.get("/me", response_model=UserRead)
def me(
    subject: Subject = Depends(require_user),
    session: Session = Depends(get_session),
):
    return UserRead.model_validate(session.get(User, subject.id))
