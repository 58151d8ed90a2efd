"""
equiptrack_client.schemas

Wire/domain models shared by the REST client, the local cache and the services.

Responsibilities:
- Define the entities mirrored between server and cache (departments, categories,
  equipment items, users, registration requests, borrow history).
- Define request/response payloads for the REST API.
- Own the wire conventions: camelCase JSON, server timestamp format, enum values.
"""

from __future__ import annotations

import enum
import uuid
from datetime import UTC, datetime
from typing import Annotated, Any, Generic, TypeVar

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, PlainSerializer, model_validator
from pydantic.alias_generators import to_camel

T = TypeVar("T")


def _as_utc(value: datetime) -> datetime:
    # Naive timestamps are treated as UTC; the server always sends UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _format_wire(value: datetime) -> str:
    # Server format: yyyy-MM-dd'T'HH:mm:ss.SSS'Z'
    value = _as_utc(value)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


WireDatetime = Annotated[
    datetime,
    AfterValidator(_as_utc),
    PlainSerializer(_format_wire, return_type=str, when_used="json"),
]


def utcnow() -> datetime:
    return datetime.now(tz=UTC)


class WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        extra="ignore",
    )

    def to_wire(self) -> dict[str, Any]:
        # Nulls are omitted from request bodies.
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# --- Enumerations -----------------------------------------------------------


class UserRole(enum.StrEnum):
    # Values are the wire representation and are also sent as `userRole` query params.
    super_admin = "超级管理员"
    admin = "管理员"
    advanced_user = "高级用户"
    normal_user = "普通用户"

    @classmethod
    def from_display(cls, raw: str | None) -> UserRole:
        for role in cls:
            if role.value == raw or role.name == raw:
                return role
        return cls.normal_user


class UserStatus(enum.StrEnum):
    normal = "active"
    banned = "banned"

    @classmethod
    def _missing_(cls, value: object) -> UserStatus | None:
        return _USER_STATUS_ALIASES.get(str(value))


_USER_STATUS_ALIASES = {"正常": UserStatus.normal, "封禁": UserStatus.banned}


class BorrowStatus(enum.StrEnum):
    borrowing = "借用中"
    overdue_not_returned = "逾期未归还"
    returned = "已归还"
    overdue_returned = "逾期归还"
    # Borrow-request review states.
    pending = "pending"
    approved = "approved"
    rejected = "rejected"

    @property
    def is_active(self) -> bool:
        return self in (BorrowStatus.borrowing, BorrowStatus.overdue_not_returned)


class EquipmentStatus(enum.StrEnum):
    available = "AVAILABLE"
    borrowed = "BORROWED"


# --- Cached entities --------------------------------------------------------


class Department(WireModel):
    id: str
    name: str
    parent_id: str | None = None
    requires_approval: bool = True
    order: int = 0


class Category(WireModel):
    id: str
    name: str
    color: str  # hex color string


class EquipmentItem(WireModel):
    id: str
    name: str
    category_id: str
    department_id: str
    description: str = ""
    image: str | None = None
    image_full: str | None = None
    quantity: int
    available_quantity: int
    borrow_photo: str | None = None
    last_return_photo: str | None = None

    @property
    def status(self) -> EquipmentStatus:
        if self.available_quantity > 0:
            return EquipmentStatus.available
        return EquipmentStatus.borrowed


class User(WireModel):
    id: str
    name: str
    contact: str  # login id
    department_id: str
    department_name: str | None = None
    role: UserRole
    status: UserStatus = UserStatus.normal
    password: str | None = None
    invitation_code: str | None = None
    avatar_url: str | None = None


class RegistrationRequest(WireModel):
    id: str
    name: str
    contact: str
    department_name: str | None = None
    password: str | None = None
    invitation_code: str
    request_date: WireDatetime = Field(alias="createdAt")
    # ID of the user whose invitation code was used.
    invited_by: str = Field(alias="invitedByUserId")
    department_id: str | None = None
    status: str = "pending"


_HISTORY_PLACEHOLDERS: dict[str, str] = {
    "item_id": "",
    "item_name": "Unknown item",
    "department_id": "",
    "borrower_name": "Unknown borrower",
    "borrower_contact": "",
    "operator_user_id": "",
    "operator_name": "Unknown operator",
    "operator_contact": "",
}


class BorrowHistoryEntry(WireModel):
    id: str
    item_id: str
    item_name: str
    department_id: str
    borrower_name: str
    borrower_contact: str
    operator_user_id: str
    operator_name: str
    operator_contact: str
    borrow_date: WireDatetime
    expected_return_date: WireDatetime
    return_date: WireDatetime | None = None
    status: BorrowStatus
    forced_return_by: str | None = None
    photo: str | None = None
    return_photo: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _fill_placeholders(cls, data: Any) -> Any:
        # Server history rows occasionally carry nulls; keep them displayable.
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if not data.get("id"):
            data["id"] = str(uuid.uuid4())
        for name, placeholder in _HISTORY_PLACEHOLDERS.items():
            _fill(data, name, placeholder)
        _fill(data, "status", BorrowStatus.borrowing)
        return data


def _fill(data: dict[str, Any], name: str, value: Any) -> None:
    alias = to_camel(name)
    if data.get(name) is not None or data.get(alias) is not None:
        return
    data[name if name in data else alias] = value


# --- Borrow requests --------------------------------------------------------


class Borrower(WireModel):
    name: str
    phone: str


class BorrowParty(WireModel):
    id: str | None = None
    name: str | None = None
    contact: str | None = None


class BorrowRequestEntry(WireModel):
    id: str
    item_id: str | None = None
    item_name: str = ""
    item_image: str | None = None
    department_id: str | None = None
    department_name: str | None = None
    applicant: BorrowParty | str | None = None
    borrower: Borrower | None = None
    quantity: int = 1
    expected_return_date: WireDatetime | None = None
    photo: str | None = None
    status: BorrowStatus = BorrowStatus.pending
    remark: str | None = None
    reviewer: BorrowParty | str | None = None
    reviewed_at: WireDatetime | None = None
    created_at: WireDatetime | None = None


class BorrowRequest(WireModel):
    borrower: Borrower
    expected_return_date: WireDatetime
    photo: str | None = None  # data URI
    quantity: int = 1


class BorrowRequestCreateRequest(BorrowRequest):
    item_id: str


class BorrowReviewActionRequest(WireModel):
    remark: str | None = None


class ReturnRequest(WireModel):
    photo: str  # data URI
    is_forced: bool = False
    admin_name: str | None = None


# --- Auth / misc payloads ---------------------------------------------------


class LoginRequest(WireModel):
    contact: str
    password: str


class LoginResponse(WireModel):
    user: User
    token: str | None = None


class SignupRequest(WireModel):
    name: str
    contact: str
    department_name: str
    password: str
    invitation_code: str


class DepartmentStructureUpdate(WireModel):
    id: str
    parent_id: str | None = None
    order: int = 0


class AppVersion(WireModel):
    version_code: int
    version_name: str = ""
    update_content: str | None = None
    download_url: str | None = None
    force_update: bool = False
    release_date: str | None = None


class ApiResponse(WireModel, Generic[T]):
    success: bool = True
    data: T | None = None
    message: str | None = None


# --- Module Notes -----------------------------------------------------------
# These models double as cache DTOs: repositories in `db.repositories` convert ORM rows
# to and from them, so services never touch SQLAlchemy rows directly.
