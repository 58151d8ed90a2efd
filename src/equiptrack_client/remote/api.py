"""
equiptrack_client.remote.api

Typed client for the EquipTrack REST API.

Responsibilities:
- One coroutine per server endpoint, relative to the configured base URL.
- Serialize request models to camelCase JSON and parse responses into models.
- Raise `httpx.HTTPStatusError` on non-2xx; return None for an empty body.
"""

from __future__ import annotations

import mimetypes
from functools import lru_cache
from pathlib import Path
from typing import Any, TypeVar

import httpx
from pydantic import TypeAdapter

from equiptrack_client.schemas import (
    ApiResponse,
    AppVersion,
    BorrowHistoryEntry,
    BorrowRequest,
    BorrowRequestCreateRequest,
    BorrowRequestEntry,
    BorrowReviewActionRequest,
    Category,
    Department,
    DepartmentStructureUpdate,
    EquipmentItem,
    LoginRequest,
    LoginResponse,
    RegistrationRequest,
    ReturnRequest,
    SignupRequest,
    User,
    UserRole,
)

T = TypeVar("T")


@lru_cache(maxsize=None)
def _adapter(tp: Any) -> TypeAdapter[Any]:
    return TypeAdapter(tp)


def _parse(response: httpx.Response, tp: type[T] | Any) -> T | None:
    response.raise_for_status()
    if not response.content.strip():
        return None
    return _adapter(tp).validate_json(response.content)


def _params(**values: Any) -> dict[str, str]:
    # Optional query params are dropped rather than sent as empty strings.
    params: dict[str, str] = {}
    for key, value in values.items():
        if value is None:
            continue
        params[key] = ("true" if value else "false") if isinstance(value, bool) else str(value)
    return params


class EquipTrackApi:
    """
    Server boundary:
    - Services call the server only through this class.
    - Auth headers and base URL handling come from the transport chain, not from here.
    """

    def __init__(self, *, http: httpx.AsyncClient) -> None:
        self._http = http

    # --- auth / system ------------------------------------------------------

    async def login(self, request: LoginRequest) -> LoginResponse | None:
        r = await self._http.post("api/login", json=request.to_wire())
        return _parse(r, LoginResponse)

    async def signup(self, request: SignupRequest) -> ApiResponse[str] | None:
        r = await self._http.post("api/signup", json=request.to_wire())
        return _parse(r, ApiResponse[str])

    async def register_device_token(self, token: str) -> ApiResponse[bool] | None:
        r = await self._http.post("api/notifications/register", json={"token": token})
        return _parse(r, ApiResponse[bool])

    async def get_app_version(self) -> AppVersion | None:
        r = await self._http.get("api/system/android-version")
        return _parse(r, AppVersion)

    async def upload_image(self, path: Path, *, upload_type: str = "item") -> str | None:
        path = Path(path)
        content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        r = await self._http.post(
            "api/upload",
            params={"type": upload_type},
            files={"file": (path.name, path.read_bytes(), content_type)},
        )
        body = _parse(r, dict[str, str])
        return body.get("url") if body else None

    # --- departments --------------------------------------------------------

    async def get_departments(self) -> list[Department] | None:
        return _parse(await self._http.get("api/departments"), list[Department])

    async def create_department(self, department: Department) -> Department | None:
        r = await self._http.post("api/departments", json=department.to_wire())
        return _parse(r, Department)

    async def update_department(self, department_id: str, department: Department) -> Department | None:
        r = await self._http.put(f"api/departments/{department_id}", json=department.to_wire())
        return _parse(r, Department)

    async def delete_department(self, department_id: str) -> ApiResponse[str] | None:
        return _parse(await self._http.delete(f"api/departments/{department_id}"), ApiResponse[str])

    async def update_department_structure(
        self, updates: list[DepartmentStructureUpdate]
    ) -> list[Department] | None:
        r = await self._http.put("api/departments/structure", json=[u.to_wire() for u in updates])
        return _parse(r, list[Department])

    # --- categories ---------------------------------------------------------

    async def get_categories(self) -> list[Category] | None:
        return _parse(await self._http.get("api/categories"), list[Category])

    async def create_category(self, category: Category) -> Category | None:
        return _parse(await self._http.post("api/categories", json=category.to_wire()), Category)

    async def delete_category(self, category_id: str) -> ApiResponse[str] | None:
        return _parse(await self._http.delete(f"api/categories/{category_id}"), ApiResponse[str])

    # --- equipment items ----------------------------------------------------

    async def get_items(
        self,
        *,
        user_role: UserRole,
        department_id: str | None = None,
        all_available: bool | None = None,
    ) -> list[EquipmentItem] | None:
        params = _params(userRole=user_role.value, departmentId=department_id, allAvailable=all_available)
        return _parse(await self._http.get("api/items", params=params), list[EquipmentItem])

    async def get_item(self, item_id: str) -> EquipmentItem | None:
        return _parse(await self._http.get(f"api/items/{item_id}"), EquipmentItem)

    async def create_item(self, item: EquipmentItem) -> EquipmentItem | None:
        return _parse(await self._http.post("api/items", json=item.to_wire()), EquipmentItem)

    async def update_item(self, item_id: str, item: EquipmentItem) -> EquipmentItem | None:
        return _parse(await self._http.put(f"api/items/{item_id}", json=item.to_wire()), EquipmentItem)

    async def delete_item(self, item_id: str) -> ApiResponse[str] | None:
        return _parse(await self._http.delete(f"api/items/{item_id}"), ApiResponse[str])

    async def borrow_item(self, item_id: str, request: BorrowRequest) -> EquipmentItem | None:
        r = await self._http.post(f"api/items/{item_id}/borrow", json=request.to_wire())
        return _parse(r, EquipmentItem)

    async def return_item(
        self, item_id: str, history_entry_id: str, request: ReturnRequest
    ) -> EquipmentItem | None:
        r = await self._http.post(
            f"api/items/{item_id}/return/{history_entry_id}",
            json=request.to_wire(),
        )
        return _parse(r, EquipmentItem)

    # --- users --------------------------------------------------------------

    async def get_users(self, *, user_role: UserRole, department_id: str | None = None) -> list[User] | None:
        params = _params(userRole=user_role.value, departmentId=department_id)
        return _parse(await self._http.get("api/users", params=params), list[User])

    async def get_user(self, user_id: str) -> User | None:
        return _parse(await self._http.get(f"api/users/{user_id}"), User)

    async def create_user(self, user: User) -> User | None:
        return _parse(await self._http.post("api/users", json=user.to_wire()), User)

    async def update_user(self, user_id: str, user: User) -> User | None:
        return _parse(await self._http.put(f"api/users/{user_id}", json=user.to_wire()), User)

    async def delete_user(self, user_id: str) -> User | None:
        return _parse(await self._http.delete(f"api/users/{user_id}"), User)

    # --- registration approvals ---------------------------------------------

    async def get_registration_requests(
        self, *, user_id: str, user_role: UserRole, department_id: str
    ) -> list[RegistrationRequest] | None:
        params = _params(userId=user_id, userRole=user_role.value, departmentId=department_id)
        return _parse(await self._http.get("api/approvals", params=params), list[RegistrationRequest])

    async def approve_registration(self, request_id: str) -> User | None:
        return _parse(await self._http.post(f"api/approvals/{request_id}"), User)

    async def reject_registration(self, request_id: str) -> ApiResponse[str] | None:
        return _parse(await self._http.delete(f"api/approvals/{request_id}"), ApiResponse[str])

    # --- history ------------------------------------------------------------

    async def get_borrow_history(
        self, *, user_role: UserRole, department_id: str | None = None
    ) -> list[BorrowHistoryEntry] | None:
        params = _params(userRole=user_role.value, departmentId=department_id)
        return _parse(await self._http.get("api/history", params=params), list[BorrowHistoryEntry])

    # --- borrow requests ----------------------------------------------------

    async def create_borrow_request(self, request: BorrowRequestCreateRequest) -> BorrowRequestEntry | None:
        r = await self._http.post("api/borrow-requests", json=request.to_wire())
        return _parse(r, BorrowRequestEntry)

    async def get_my_borrow_requests(self) -> list[BorrowRequestEntry] | None:
        return _parse(await self._http.get("api/borrow-requests/mine"), list[BorrowRequestEntry])

    async def get_borrow_review_requests(self, status: str | None = None) -> list[BorrowRequestEntry] | None:
        r = await self._http.get("api/borrow-requests/review", params=_params(status=status))
        return _parse(r, list[BorrowRequestEntry])

    async def approve_borrow_request(
        self, request_id: str, request: BorrowReviewActionRequest
    ) -> BorrowRequestEntry | None:
        r = await self._http.post(f"api/borrow-requests/{request_id}/approve", json=request.to_wire())
        return _parse(r, BorrowRequestEntry)

    async def reject_borrow_request(
        self, request_id: str, request: BorrowReviewActionRequest
    ) -> BorrowRequestEntry | None:
        r = await self._http.post(f"api/borrow-requests/{request_id}/reject", json=request.to_wire())
        return _parse(r, BorrowRequestEntry)


# --- Module Notes -----------------------------------------------------------
# Role query params carry the role's wire value (e.g. "管理员"); httpx percent-encodes them.
