"""
equiptrack_client.notifications.polling

Approval polling.

Responsibilities:
- `PollingService`: a long-running asyncio task that checks for new messages
  on a fixed interval and diffs results against persisted "already notified" ids.
- `ApprovalCheckWorker`: a one-shot, count-based check suitable for a periodic
  job scheduler.
"""

from __future__ import annotations

import asyncio
import contextlib

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from equiptrack_client.auth.permissions import PermissionType, has_permission
from equiptrack_client.db.repositories.preferences import PreferenceRepo
from equiptrack_client.notifications.notifier import Notifier
from equiptrack_client.observability.logging import get_logger
from equiptrack_client.remote.result import Success
from equiptrack_client.schemas import BorrowStatus, UserRole
from equiptrack_client.services.approvals import ApprovalService
from equiptrack_client.services.auth_service import AuthService
from equiptrack_client.services.borrow import BorrowService

log = get_logger(__name__)

POLLING_NAMESPACE = "polling_prefs"
WORKER_NAMESPACE = "approval_worker_prefs"
KEY_NOTIFIED_APPROVED = "notified_approved_requests"
KEY_NOTIFIED_PENDING = "notified_pending_requests"
KEY_LAST_BORROW_COUNT = "last_borrow_count"
KEY_LAST_REGISTRATION_COUNT = "last_registration_count"

REVIEWER_ROLES = frozenset({UserRole.super_admin, UserRole.admin, UserRole.advanced_user})


async def notify_new_approvals(
    *,
    borrow: BorrowService,
    notifier: Notifier,
    sessionmaker: async_sessionmaker[AsyncSession],
    namespace: str,
) -> int:
    """
    Notify once per newly approved borrow request of the current user.
    """

    result = await borrow.my_requests()
    if not isinstance(result, Success):
        return 0

    async with sessionmaker() as session:
        prefs = PreferenceRepo(session, namespace)
        notified = await prefs.get_id_set(KEY_NOTIFIED_APPROVED)
        fresh = [r for r in result.data if r.status is BorrowStatus.approved and r.id not in notified]
        for request in fresh:
            notifier.borrow_approved(request.item_name)
            notified.add(request.id)
        await prefs.set_id_set(KEY_NOTIFIED_APPROVED, notified)
        await session.commit()
    return len(fresh)


class PollingService:
    def __init__(
        self,
        *,
        auth: AuthService,
        borrow: BorrowService,
        notifier: Notifier,
        sessionmaker: async_sessionmaker[AsyncSession],
        interval_seconds: float = 60.0,
    ) -> None:
        self._auth = auth
        self._borrow = borrow
        self._notifier = notifier
        self._sessionmaker = sessionmaker
        self._interval = interval_seconds
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        # Restarting replaces any loop already running.
        if self._task is not None:
            self._task.cancel()
        self._task = asyncio.create_task(self._run(), name="equiptrack-polling")
        log.info("polling.started", interval_seconds=self._interval)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        log.info("polling.stopped")

    async def _run(self) -> None:
        while True:
            try:
                await self.check_messages()
            except asyncio.CancelledError:
                raise
            except Exception:
                log.exception("polling.check_failed")
            await asyncio.sleep(self._interval)

    async def check_messages(self) -> None:
        user = self._auth.current_user
        if user is None:
            return

        await notify_new_approvals(
            borrow=self._borrow,
            notifier=self._notifier,
            sessionmaker=self._sessionmaker,
            namespace=POLLING_NAMESPACE,
        )

        if user.role not in REVIEWER_ROLES:
            return
        result = await self._borrow.fetch_for_review(BorrowStatus.pending.value)
        if not isinstance(result, Success):
            return
        async with self._sessionmaker() as session:
            prefs = PreferenceRepo(session, POLLING_NAMESPACE)
            notified = await prefs.get_id_set(KEY_NOTIFIED_PENDING)
            fresh = {r.id for r in result.data} - notified
            if fresh:
                # One notification per poll, however many requests arrived.
                self._notifier.borrow_approval_pending()
            await prefs.set_id_set(KEY_NOTIFIED_PENDING, notified | fresh)
            await session.commit()


class ApprovalCheckWorker:
    def __init__(
        self,
        *,
        auth: AuthService,
        borrow: BorrowService,
        approvals: ApprovalService,
        notifier: Notifier,
        sessionmaker: async_sessionmaker[AsyncSession],
    ) -> None:
        self._auth = auth
        self._borrow = borrow
        self._approvals = approvals
        self._notifier = notifier
        self._sessionmaker = sessionmaker

    async def do_work(self) -> None:
        user = self._auth.current_user
        if user is None:
            return

        # Network calls (and the registration sync, which writes the cache) run before the
        # preferences session opens; SQLite allows one writer at a time.
        can_review_borrows = has_permission(user, PermissionType.view_borrow_approvals)
        can_review_registrations = has_permission(user, PermissionType.view_registration_approvals)
        pending = None
        if can_review_borrows:
            pending = await self._borrow.fetch_for_review(BorrowStatus.pending.value)
        synced = None
        if can_review_registrations:
            synced = await self._approvals.sync(
                user_id=user.id, user_role=user.role, department_id=user.department_id
            )

        new_borrow = False
        new_registration = False
        async with self._sessionmaker() as session:
            prefs = PreferenceRepo(session, WORKER_NAMESPACE)
            if not can_review_borrows:
                await prefs.remove(KEY_LAST_BORROW_COUNT)
            elif isinstance(pending, Success):
                new_borrow = await _bump_count(prefs, KEY_LAST_BORROW_COUNT, len(pending.data))

            if not can_review_registrations:
                await prefs.remove(KEY_LAST_REGISTRATION_COUNT)
            elif isinstance(synced, Success):
                new_registration = await _bump_count(prefs, KEY_LAST_REGISTRATION_COUNT, len(synced.data))
            await session.commit()

        if new_borrow:
            self._notifier.borrow_approval_pending()
        if new_registration:
            self._notifier.registration_approval_pending()

        await notify_new_approvals(
            borrow=self._borrow,
            notifier=self._notifier,
            sessionmaker=self._sessionmaker,
            namespace=WORKER_NAMESPACE,
        )


async def _bump_count(prefs: PreferenceRepo, key: str, count: int) -> bool:
    # The first observation only records a baseline.
    last = int(await prefs.get(key, -1))
    await prefs.set(key, count)
    return last >= 0 and count > last


# --- Module Notes -----------------------------------------------------------
# Failed fetches leave the stored counters untouched, so an outage does not reset the
# baseline and trigger a spurious notification when the server comes back.
