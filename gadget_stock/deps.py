from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlmodel import Session

from gadget_stock.db import get_session
from gadget_stock.errors import _auth_401, Forbidden
from gadget_stock.models import User
from gadget_stock.schemas import Role, Subject
from gadget_stock.security import decode_token

# auto_error=False so a missing token gets our own 401 body
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)


def require_user(
    token: str | None = Depends(oauth2_scheme),
    session: Session = Depends(get_session),
) -> Subject:
    # 1) no token at all
    if not token:
        raise _auth_401("NOT_AUTHENTICATED", "Not authenticated, please log in")

    # 2) bad signature / expired / malformed
    try:
        claims = decode_token(token)
        user_id = int(claims["sub"])
    except Exception:
        raise _auth_401("INVALID_TOKEN", "Invalid or expired token")

    # 3) token is fine but the account is gone; role is read from the row,
    #    so a demoted admin loses rights without waiting for token expiry
    user = session.get(User, user_id)
    if not user:
        raise _auth_401("USER_NOT_FOUND", "User does not exist or has been deleted")

    return Subject(id=user.id, email=user.email, role=Role(user.role))


def require_admin(subject: Subject = Depends(require_user)) -> Subject:
    if not subject.is_admin:
        raise Forbidden("Admin access required")
    return subject
