"""
equiptrack_client.db.models

Cache schema mirroring server entities.

Responsibilities:
- Define the six mirrored tables:
  - departments, categories, equipment_items, users
  - registration_requests, borrow_history
- Define `preferences`, a namespaced key/value store for session and poll state.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Enum, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from equiptrack_client.db.base import Base
from equiptrack_client.schemas import BorrowStatus, UserRole, UserStatus


class DepartmentRow(Base):
    __tablename__ = "departments"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(256), nullable=False)
    # Hierarchy parent; cycles are not prevented at this layer.
    parent_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    requires_approval: Mapped[bool] = mapped_column(nullable=False, default=True)
    order: Mapped[int] = mapped_column(nullable=False, default=0)


class CategoryRow(Base):
    __tablename__ = "categories"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(256), nullable=False)
    color: Mapped[str] = mapped_column(String(32), nullable=False)


class EquipmentItemRow(Base):
    __tablename__ = "equipment_items"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(256), nullable=False)
    category_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    department_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    image: Mapped[str | None] = mapped_column(Text, nullable=True)
    image_full: Mapped[str | None] = mapped_column(Text, nullable=True)
    quantity: Mapped[int] = mapped_column(nullable=False)
    available_quantity: Mapped[int] = mapped_column(nullable=False)
    # Data URIs of the last borrow / return proof photos.
    borrow_photo: Mapped[str | None] = mapped_column(Text, nullable=True)
    last_return_photo: Mapped[str | None] = mapped_column(Text, nullable=True)


class UserRow(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(256), nullable=False)
    contact: Mapped[str] = mapped_column(String(256), nullable=False, index=True)
    department_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    department_name: Mapped[str | None] = mapped_column(String(256), nullable=True)
    role: Mapped[UserRole] = mapped_column(Enum(UserRole), nullable=False)
    status: Mapped[UserStatus] = mapped_column(Enum(UserStatus), nullable=False)
    password: Mapped[str | None] = mapped_column(String(256), nullable=True)
    invitation_code: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    avatar_url: Mapped[str | None] = mapped_column(Text, nullable=True)


class RegistrationRequestRow(Base):
    __tablename__ = "registration_requests"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(256), nullable=False)
    contact: Mapped[str] = mapped_column(String(256), nullable=False, index=True)
    department_name: Mapped[str | None] = mapped_column(String(256), nullable=True)
    password: Mapped[str | None] = mapped_column(String(256), nullable=True)
    invitation_code: Mapped[str] = mapped_column(String(64), nullable=False)
    request_date: Mapped[datetime] = mapped_column(nullable=False, index=True)
    invited_by: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    department_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="pending")


class BorrowHistoryRow(Base):
    __tablename__ = "borrow_history"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    item_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    item_name: Mapped[str] = mapped_column(String(256), nullable=False)
    department_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    borrower_name: Mapped[str] = mapped_column(String(256), nullable=False)
    borrower_contact: Mapped[str] = mapped_column(String(256), nullable=False, index=True)
    operator_user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    operator_name: Mapped[str] = mapped_column(String(256), nullable=False)
    operator_contact: Mapped[str] = mapped_column(String(256), nullable=False)
    borrow_date: Mapped[datetime] = mapped_column(nullable=False)
    expected_return_date: Mapped[datetime] = mapped_column(nullable=False)
    return_date: Mapped[datetime | None] = mapped_column(nullable=True)
    status: Mapped[BorrowStatus] = mapped_column(Enum(BorrowStatus), nullable=False, index=True)
    forced_return_by: Mapped[str | None] = mapped_column(String(256), nullable=True)
    photo: Mapped[str | None] = mapped_column(Text, nullable=True)
    return_photo: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (Index("ix_borrow_history_dept_date", "department_id", "borrow_date"),)


class PreferenceRow(Base):
    __tablename__ = "preferences"

    namespace: Mapped[str] = mapped_column(String(64), primary_key=True)
    key: Mapped[str] = mapped_column(String(128), primary_key=True)
    value: Mapped[Any] = mapped_column(JSON, nullable=True)


# --- Module Notes -----------------------------------------------------------
# Column names match the attribute names of the pydantic models in `schemas`, which lets
# repositories convert rows with `model_validate(row)` and back with `model_dump()`.
