"""
equiptrack_client.services.borrow

Borrowing, returning, borrow-request review, and history sync.

Responsibilities:
- Validate stock before a borrow; in local-debug mode apply the borrow to the cache,
  otherwise submit a borrow request for review.
- Return items on the server, or in the cache when the server is unreachable.
- Sync borrow history and maintain overdue statuses.
- Review workflow for borrow requests (list, approve, reject, history).
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from equiptrack_client.db.repositories.history import BorrowHistoryRepo
from equiptrack_client.db.repositories.items import EquipmentItemRepo
from equiptrack_client.observability.logging import get_logger
from equiptrack_client.remote.api import EquipTrackApi
from equiptrack_client.remote.result import Error, NetworkResult, Success, safe_api_call
from equiptrack_client.schemas import (
    BorrowHistoryEntry,
    BorrowRequest,
    BorrowRequestCreateRequest,
    BorrowRequestEntry,
    BorrowReviewActionRequest,
    BorrowStatus,
    EquipmentItem,
    ReturnRequest,
    UserRole,
    utcnow,
)
from equiptrack_client.services.auth_service import AuthService
from equiptrack_client.services.runtime_settings import RuntimeSettings

log = get_logger(__name__)

ITEM_NOT_FOUND = "Item not found"
RETURN_RECORD_NOT_FOUND = "Return failed: related records not found"
MISSING_TOKEN = "The login session has no token, please log out and log in again"


class BorrowService:
    def __init__(
        self,
        *,
        sessionmaker: async_sessionmaker[AsyncSession],
        api: EquipTrackApi,
        runtime: RuntimeSettings,
        auth: AuthService,
    ) -> None:
        self._sessionmaker = sessionmaker
        self._api = api
        self._runtime = runtime
        self._auth = auth

    # --- history reads ------------------------------------------------------

    async def list_history(self) -> list[BorrowHistoryEntry]:
        async with self._sessionmaker() as session:
            return await BorrowHistoryRepo(session).list_all()

    async def history_by_department(self, department_id: str) -> list[BorrowHistoryEntry]:
        async with self._sessionmaker() as session:
            return await BorrowHistoryRepo(session).list_by_department(department_id)

    async def history_by_borrower(self, contact: str) -> list[BorrowHistoryEntry]:
        async with self._sessionmaker() as session:
            return await BorrowHistoryRepo(session).list_by_borrower(contact)

    async def active_borrows(self) -> list[BorrowHistoryEntry]:
        async with self._sessionmaker() as session:
            return await BorrowHistoryRepo(session).list_active()

    # --- borrow / return ----------------------------------------------------

    async def borrow_item(self, item_id: str, request: BorrowRequest) -> NetworkResult[str]:
        async with self._sessionmaker() as session:
            item = await EquipmentItemRepo(session).get(item_id)
        if item is None:
            return Error(ITEM_NOT_FOUND)
        if item.available_quantity < request.quantity:
            return Error(f"Insufficient stock, currently available: {item.available_quantity}")

        if self._runtime.local_debug:
            return await self._borrow_locally(item, request)

        create = BorrowRequestCreateRequest(item_id=item_id, **request.model_dump())
        result = await safe_api_call(lambda: self._api.create_borrow_request(create))
        if isinstance(result, Error):
            return result
        log.info("borrow.request_submitted", item_id=item_id, request_id=result.data.id)
        return Success(result.data.id)

    async def _borrow_locally(self, item: EquipmentItem, request: BorrowRequest) -> NetworkResult[str]:
        operator = self._auth.current_user
        entry = BorrowHistoryEntry(
            id=str(uuid.uuid4()),
            item_id=item.id,
            item_name=item.name,
            department_id=item.department_id,
            borrower_name=request.borrower.name,
            borrower_contact=request.borrower.phone,
            operator_user_id=operator.id if operator else "",
            operator_name=operator.name if operator else "",
            operator_contact=operator.contact if operator else "",
            borrow_date=utcnow(),
            expected_return_date=request.expected_return_date,
            status=BorrowStatus.borrowing,
            photo=request.photo,
        )
        async with self._sessionmaker() as session:
            items = EquipmentItemRepo(session)
            if not await items.decrease_available(item.id, request.quantity):
                return Error(f"Insufficient stock, currently available: {item.available_quantity}")
            updated = await items.get(item.id)
            if updated is not None:
                await items.upsert(updated.model_copy(update={"borrow_photo": request.photo}))
            await BorrowHistoryRepo(session).upsert(entry)
            await session.commit()
        log.info("borrow.local", item_id=item.id, history_id=entry.id)
        return Success(entry.id)

    async def return_item(
        self, item_id: str, history_entry_id: str, request: ReturnRequest
    ) -> NetworkResult[EquipmentItem]:
        if self._runtime.local_debug:
            return await self._return_locally(item_id, history_entry_id, request)

        result = await safe_api_call(lambda: self._api.return_item(item_id, history_entry_id, request))
        if isinstance(result, Error):
            log.warning("borrow.return_offline", item_id=item_id, error=result.message)
            return await self._return_locally(item_id, history_entry_id, request)

        async with self._sessionmaker() as session:
            await EquipmentItemRepo(session).upsert(result.data)
            history = BorrowHistoryRepo(session)
            entry = await history.get(history_entry_id)
            if entry is not None:
                await history.upsert(_returned(entry, request, utcnow()))
            await session.commit()
        return result

    async def _return_locally(
        self, item_id: str, history_entry_id: str, request: ReturnRequest
    ) -> NetworkResult[EquipmentItem]:
        async with self._sessionmaker() as session:
            items = EquipmentItemRepo(session)
            history = BorrowHistoryRepo(session)
            item = await items.get(item_id)
            entry = await history.get(history_entry_id)
            if item is None or entry is None:
                return Error(RETURN_RECORD_NOT_FOUND)

            # Clamped at `quantity`; a rowcount of 0 leaves stock unchanged.
            await items.increase_available(item_id)
            item = await items.get(item_id)
            item = item.model_copy(update={"last_return_photo": request.photo})
            await items.upsert(item)
            await history.upsert(_returned(entry, request, utcnow()))
            await session.commit()
        return Success(item)

    # --- history sync -------------------------------------------------------

    async def sync_history(
        self, user_role: UserRole, department_id: str | None = None
    ) -> NetworkResult[list[BorrowHistoryEntry]]:
        if self._runtime.local_debug:
            if department_id is not None:
                return Success(await self.history_by_department(department_id))
            return Success(await self.list_history())

        if not (self._auth.auth_token or "").strip():
            return Error(MISSING_TOKEN)

        # Placeholder filling for null fields happens while parsing `BorrowHistoryEntry`.
        result = await safe_api_call(
            lambda: self._api.get_borrow_history(user_role=user_role, department_id=department_id)
        )
        if isinstance(result, Error):
            return result
        async with self._sessionmaker() as session:
            await BorrowHistoryRepo(session).replace(result.data, department_id)
            await session.commit()
        log.info("history.synced", count=len(result.data), department_id=department_id)
        return result

    async def update_overdue_status(self, now: datetime | None = None) -> int:
        async with self._sessionmaker() as session:
            changed = await BorrowHistoryRepo(session).mark_overdue(now or utcnow())
            await session.commit()
        if changed:
            log.info("history.marked_overdue", count=changed)
        return changed

    # --- borrow-request review ----------------------------------------------

    async def my_requests(self) -> NetworkResult[list[BorrowRequestEntry]]:
        return await safe_api_call(self._api.get_my_borrow_requests)

    async def fetch_for_review(self, status: str | None = None) -> NetworkResult[list[BorrowRequestEntry]]:
        return await safe_api_call(lambda: self._api.get_borrow_review_requests(status))

    async def fetch_review_history(self) -> NetworkResult[list[BorrowRequestEntry]]:
        approved = await self.fetch_for_review(BorrowStatus.approved.value)
        rejected = await self.fetch_for_review(BorrowStatus.rejected.value)
        if isinstance(approved, Error) and isinstance(rejected, Error):
            return approved

        combined = [
            *(approved.data if isinstance(approved, Success) else []),
            *(rejected.data if isinstance(rejected, Success) else []),
        ]
        combined.sort(key=_review_sort_key, reverse=True)
        return Success(combined)

    async def approve(self, request_id: str, remark: str | None = None) -> NetworkResult[BorrowRequestEntry]:
        action = BorrowReviewActionRequest(remark=remark)
        return await safe_api_call(lambda: self._api.approve_borrow_request(request_id, action))

    async def reject(self, request_id: str, remark: str | None = None) -> NetworkResult[BorrowRequestEntry]:
        action = BorrowReviewActionRequest(remark=remark)
        return await safe_api_call(lambda: self._api.reject_borrow_request(request_id, action))


def _returned(entry: BorrowHistoryEntry, request: ReturnRequest, now: datetime) -> BorrowHistoryEntry:
    status = BorrowStatus.overdue_returned if now > entry.expected_return_date else BorrowStatus.returned
    return entry.model_copy(
        update={
            "return_date": now,
            "status": status,
            "forced_return_by": request.admin_name if request.is_forced else None,
            "return_photo": request.photo,
        }
    )


def _review_sort_key(entry: BorrowRequestEntry) -> datetime:
    # Entries without timestamps sort last.
    return entry.reviewed_at or entry.created_at or datetime.min.replace(tzinfo=UTC)
