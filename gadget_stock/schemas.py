from typing import Optional
from enum import Enum
from pydantic import BaseModel, ConfigDict, EmailStr, Field, computed_field
from datetime import datetime


class Role(str, Enum):
    ADMIN = "ADMIN"
    USER = "USER"


class GadgetStatus(str, Enum):
    AVAILABLE = "AVAILABLE"
    IN_USE = "IN_USE"
    BROKEN = "BROKEN"
    MAINTENANCE = "MAINTENANCE"


class RequestStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class MovementReason(str, Enum):
    CREATE = "CREATE"
    ADJUST = "ADJUST"
    ASSIGN = "ASSIGN"
    APPROVE = "APPROVE"
    RETURN = "RETURN"
    RELEASE = "RELEASE"


class Subject(BaseModel):
    """Authenticated caller, resolved once per request from the bearer token."""

    id: int
    email: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


# --- auth / users ---

class LoginRequest(BaseModel):
    email: str
    password: str


class UserCreate(BaseModel):
    email: EmailStr
    name: str = Field(..., min_length=2)
    password: str = Field(..., min_length=6)
    role: Role = Role.USER


class UserUpdate(BaseModel):
    email: Optional[EmailStr] = None
    name: Optional[str] = Field(None, min_length=2)
    role: Optional[Role] = None


class UserBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str


class UserRead(UserBrief):
    role: Role
    created_at: datetime
    updated_at: datetime


class LoginResponse(BaseModel):
    user: UserRead
    token: str
    token_type: str = "bearer"


# --- gadgets ---

class GadgetCreate(BaseModel):
    name: str = Field(..., min_length=2)
    description: Optional[str] = None
    quantity: int = Field(..., ge=0)
    status: GadgetStatus = GadgetStatus.AVAILABLE
    category: Optional[str] = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"name": "MacBook Pro 16\"", "quantity": 5, "category": "Laptop"},
            ]
        }
    }


class GadgetUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2)
    description: Optional[str] = None
    quantity: Optional[int] = Field(None, ge=0)
    status: Optional[GadgetStatus] = None
    category: Optional[str] = None


class GadgetRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str] = None
    quantity: int
    status: GadgetStatus
    category: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @computed_field
    @property
    def requestable(self) -> bool:
        # status is admin-set, so stock alone does not make a gadget requestable
        return self.status == GadgetStatus.AVAILABLE and self.quantity > 0


class GadgetListItem(GadgetRead):
    assignment_count: int = 0
    request_count: int = 0


# --- assignments / requests ---

class AssignmentCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: int = Field(..., alias="userId")
    gadget_id: int = Field(..., alias="gadgetId")
    notes: Optional[str] = None


class AssignmentRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    gadget_id: int
    quantity: int
    assigned_at: datetime
    returned: bool
    returned_at: Optional[datetime] = None
    notes: Optional[str] = None
    created_at: datetime
    user: Optional[UserBrief] = None
    gadget: Optional[GadgetRead] = None


class RequestCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    gadget_id: int = Field(..., alias="gadgetId")
    reason: Optional[str] = None
    quantity: int = Field(1, ge=1)


class RequestRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    gadget_id: int
    status: RequestStatus
    quantity: int
    reason: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    user: Optional[UserBrief] = None
    gadget: Optional[GadgetRead] = None


class ApproveResult(BaseModel):
    request: RequestRead
    assignment: AssignmentRead


class GadgetDetail(GadgetRead):
    assignments: list[AssignmentRead] = []
    requests: list[RequestRead] = []


class UserDetail(UserRead):
    assignments: list[AssignmentRead] = []
    requests: list[RequestRead] = []


class Message(BaseModel):
    message: str


# --- stock movements ---

class MovementRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    gadget_id: int
    reason: MovementReason
    delta: int
    note: Optional[str] = None
    operator_id: Optional[int] = None
    created_at: datetime


class MovementSort(str, Enum):
    id_desc = "id_desc"
    id_asc = "id_asc"
    created_desc = "created_desc"
    created_asc = "created_asc"


class MovementListResponse(BaseModel):
    items: list[MovementRead]
    total: int
    limit: int
    offset: int
