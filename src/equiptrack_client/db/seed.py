"""
equiptrack_client.db.seed

Sample data for local-debug mode.

Responsibilities:
- Seed a usable offline dataset (department, login accounts, categories, items, history).
- Wipe the mirrored tables when the data source changes.
"""

from __future__ import annotations

from datetime import datetime, timedelta

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from equiptrack_client.db.models import (
    BorrowHistoryRow,
    CategoryRow,
    DepartmentRow,
    EquipmentItemRow,
    RegistrationRequestRow,
    UserRow,
)
from equiptrack_client.db.repositories.categories import CategoryRepo
from equiptrack_client.db.repositories.departments import DepartmentRepo
from equiptrack_client.db.repositories.history import BorrowHistoryRepo
from equiptrack_client.db.repositories.items import EquipmentItemRepo
from equiptrack_client.db.repositories.users import UserRepo
from equiptrack_client.schemas import (
    BorrowHistoryEntry,
    BorrowStatus,
    Category,
    Department,
    EquipmentItem,
    User,
    UserRole,
    UserStatus,
    utcnow,
)

DEFAULT_DEPARTMENT_ID = "dept-default"
DEFAULT_DEPARTMENT_NAME = "Default department"

ADMIN_CONTACT = "admin"
ADMIN_PASSWORD = "admin"
USER_CONTACT = "user"
USER_PASSWORD = "020414"

MIRRORED_TABLES = (
    DepartmentRow,
    CategoryRow,
    EquipmentItemRow,
    UserRow,
    RegistrationRequestRow,
    BorrowHistoryRow,
)


def _users() -> list[User]:
    common = {
        "department_id": DEFAULT_DEPARTMENT_ID,
        "department_name": DEFAULT_DEPARTMENT_NAME,
        "status": UserStatus.normal,
    }
    return [
        User(
            id="u-admin",
            name="Super Admin",
            contact=ADMIN_CONTACT,
            role=UserRole.super_admin,
            password=ADMIN_PASSWORD,
            **common,
        ),
        User(
            id="u-user",
            name="Normal User",
            contact=USER_CONTACT,
            role=UserRole.normal_user,
            password=USER_PASSWORD,
            **common,
        ),
    ]


CATEGORIES = (
    Category(id="cat-laptop", name="Laptops", color="#2E86C1"),
    Category(id="cat-camera", name="Cameras", color="#27AE60"),
    Category(id="cat-tools", name="Tools", color="#8E44AD"),
)

ITEMS = (
    EquipmentItem(
        id="item-laptop-001",
        name="ThinkPad X1",
        category_id="cat-laptop",
        department_id=DEFAULT_DEPARTMENT_ID,
        description="Lightweight office laptop",
        quantity=10,
        available_quantity=8,
    ),
    EquipmentItem(
        id="item-camera-001",
        name="Sony A7M4",
        category_id="cat-camera",
        department_id=DEFAULT_DEPARTMENT_ID,
        description="Full-frame mirrorless camera",
        quantity=5,
        available_quantity=4,
    ),
    EquipmentItem(
        id="item-tool-001",
        name="Bosch drill",
        category_id="cat-tools",
        department_id=DEFAULT_DEPARTMENT_ID,
        description="Cordless power drill",
        quantity=12,
        available_quantity=12,
    ),
)


def _history(now: datetime) -> list[BorrowHistoryEntry]:
    day = timedelta(days=1)
    return [
        BorrowHistoryEntry(
            id="bh-001",
            item_id="item-laptop-001",
            item_name="ThinkPad X1",
            department_id=DEFAULT_DEPARTMENT_ID,
            borrower_name="Li Si",
            borrower_contact=USER_CONTACT,
            operator_user_id="u-admin",
            operator_name="Super Admin",
            operator_contact=ADMIN_CONTACT,
            borrow_date=now - 7 * day,
            expected_return_date=now + 7 * day,
            status=BorrowStatus.borrowing,
        ),
        BorrowHistoryEntry(
            id="bh-002",
            item_id="item-camera-001",
            item_name="Sony A7M4",
            department_id=DEFAULT_DEPARTMENT_ID,
            borrower_name="Zhang",
            borrower_contact="advanced",
            operator_user_id="u-admin",
            operator_name="Super Admin",
            operator_contact=ADMIN_CONTACT,
            borrow_date=now - 30 * day,
            expected_return_date=now - 3 * day,
            return_date=now - day,
            status=BorrowStatus.overdue_returned,
            forced_return_by="Super Admin",
        ),
    ]


async def seed_local_debug(session: AsyncSession, now: datetime | None = None) -> None:
    """
    Insert whatever part of the sample dataset is missing; existing rows are kept.

    Seeded accounts get their password reset so the documented logins keep working.
    """

    departments = DepartmentRepo(session)
    if await departments.get(DEFAULT_DEPARTMENT_ID) is None:
        await departments.upsert(Department(id=DEFAULT_DEPARTMENT_ID, name=DEFAULT_DEPARTMENT_NAME))

    users = UserRepo(session)
    for user in _users():
        existing = await users.get_by_contact(user.contact)
        if existing is None:
            await users.upsert(user)
        elif existing.password != user.password:
            await users.upsert(existing.model_copy(update={"password": user.password}))

    categories = CategoryRepo(session)
    for category in CATEGORIES:
        if await categories.get(category.id) is None:
            await categories.upsert(category)

    items = EquipmentItemRepo(session)
    for item in ITEMS:
        if await items.get(item.id) is None:
            await items.upsert(item)

    history = BorrowHistoryRepo(session)
    for entry in _history(now or utcnow()):
        if await history.get(entry.id) is None:
            await history.upsert(entry)


async def clear_all_data(session: AsyncSession) -> None:
    # Preferences are not touched; callers decide what happens to the login session.
    for table in MIRRORED_TABLES:
        await session.execute(delete(table))


# --- Module Notes -----------------------------------------------------------
# Both helpers leave committing to the caller, like the repositories they use.
