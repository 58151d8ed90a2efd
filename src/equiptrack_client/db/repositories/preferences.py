"""
equiptrack_client.db.repositories.preferences

Namespaced key/value store backed by the `preferences` table.

Responsibilities:
- Persist small client state: the login session, runtime settings, and the
  "already notified" sets used by the approval pollers.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from equiptrack_client.db.models import PreferenceRow


class PreferenceRepo:
    def __init__(self, session: AsyncSession, namespace: str) -> None:
        self._session = session
        self._namespace = namespace

    async def get(self, key: str, default: Any = None) -> Any:
        row = await self._session.get(PreferenceRow, (self._namespace, key))
        if row is None or row.value is None:
            return default
        return row.value

    async def all(self) -> dict[str, Any]:
        stmt = select(PreferenceRow).where(PreferenceRow.namespace == self._namespace)
        rows = (await self._session.execute(stmt)).scalars().all()
        return {r.key: r.value for r in rows}

    async def set(self, key: str, value: Any) -> None:
        await self._session.merge(PreferenceRow(namespace=self._namespace, key=key, value=value))
        await self._session.flush()

    async def remove(self, key: str) -> None:
        await self._session.execute(
            delete(PreferenceRow).where(
                PreferenceRow.namespace == self._namespace, PreferenceRow.key == key
            )
        )

    async def clear(self) -> None:
        await self._session.execute(delete(PreferenceRow).where(PreferenceRow.namespace == self._namespace))

    async def get_id_set(self, key: str) -> set[str]:
        return {str(v) for v in await self.get(key, [])}

    async def set_id_set(self, key: str, ids: set[str]) -> None:
        # Sorted for stable storage; order carries no meaning.
        await self.set(key, sorted(ids))


# --- Module Notes -----------------------------------------------------------
# Namespaces mirror the separate preference files of the mobile client
# (session, settings, polling state, worker state) so each can be cleared on its own.
