"""
equiptrack_client.notifications.notifier

Notification sink boundary.

Responsibilities:
- Define the three notifications the poller can raise.
- Provide a structured-log implementation for headless runs.
"""

from __future__ import annotations

from typing import Protocol

from equiptrack_client.observability.logging import get_logger

log = get_logger(__name__)


class Notifier(Protocol):
    def borrow_approval_pending(self) -> None: ...

    def registration_approval_pending(self) -> None: ...

    def borrow_approved(self, item_name: str) -> None: ...


class LogNotifier:
    """
    Emits each notification as a log event.
    """

    def borrow_approval_pending(self) -> None:
        log.info("notify.borrow_approval_pending", title="New borrow request awaiting approval")

    def registration_approval_pending(self) -> None:
        log.info("notify.registration_approval_pending", title="New registration awaiting approval")

    def borrow_approved(self, item_name: str) -> None:
        log.info("notify.borrow_approved", title="Borrow request approved", item_name=item_name)
