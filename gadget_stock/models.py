from typing import Optional
from sqlmodel import SQLModel, Field, Relationship
from datetime import datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(index=True, unique=True)
    name: str
    password_hash: str
    role: str = Field(default="USER", index=True)  # ADMIN / USER
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class Gadget(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True)
    description: Optional[str] = None
    quantity: int = Field(default=0)
    status: str = Field(default="AVAILABLE", index=True)  # AVAILABLE / IN_USE / BROKEN / MAINTENANCE
    category: Optional[str] = Field(default=None, index=True)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class Assignment(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    user_id: int = Field(foreign_key="user.id", index=True)
    gadget_id: int = Field(foreign_key="gadget.id", index=True)

    quantity: int = Field(default=1)  # units held by this assignment
    assigned_at: datetime = Field(default_factory=utcnow)
    returned: bool = Field(default=False, index=True)
    returned_at: Optional[datetime] = None
    notes: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)

    user: Optional[User] = Relationship()
    gadget: Optional[Gadget] = Relationship()


class GadgetRequest(SQLModel, table=True):
    __tablename__ = "gadget_request"

    id: Optional[int] = Field(default=None, primary_key=True)

    user_id: int = Field(foreign_key="user.id", index=True)
    gadget_id: int = Field(foreign_key="gadget.id", index=True)

    status: str = Field(default="PENDING", index=True)  # PENDING / APPROVED / REJECTED
    quantity: int = Field(default=1)
    reason: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    user: Optional[User] = Relationship()
    gadget: Optional[Gadget] = Relationship()


class StockMovement(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    gadget_id: int = Field(foreign_key="gadget.id", index=True)

    reason: str = Field(index=True)  # CREATE / ADJUST / ASSIGN / APPROVE / RETURN / RELEASE
    delta: int                       # +1 / -2

    note: Optional[str] = None
    operator_id: Optional[int] = Field(default=None, index=True)

    created_at: datetime = Field(default_factory=utcnow)
