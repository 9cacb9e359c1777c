"""
CatalogSession: the explicitly owned catalog state plus the intents a UI calls.

Network intents (`request_fetch`, `request_create`, `request_update`,
`request_delete`) are coroutines. Each dispatches a pending action tagged with
a fresh request id, awaits the record store, then dispatches the success or
failure action. Store failures never escape an intent; they end up as the
error message of that request kind.

A new fetch cancels the previous one if it is still running, and the reducer
drops any fetch completion that is not the latest, so the newest fetch wins.
Create, update and delete always run to completion.

View intents (`set_page`, `set_search_term`, ...) are synchronous.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
import os
import uuid
from typing import Awaitable, Callable, List, Optional

from song_catalog.client import state as st
from song_catalog.client.state import CatalogState, RequestKind
from song_catalog.client.store_client import Fields, RecordStoreClient
from song_catalog.client.view import ASC, DESC, SORTABLE_FIELDS, Record
from song_catalog.errors import CatalogError

logger = logging.getLogger(__name__)

Listener = Callable[[CatalogState], None]


def _default_items_per_page() -> int:
    try:
        return max(1, int(os.getenv("CATALOG_ITEMS_PER_PAGE", "10")))
    except ValueError:
        return 10


class CatalogSession:
    """Owns one CatalogState and applies every transition through `state.reduce`."""

    def __init__(self, store: RecordStoreClient, items_per_page: Optional[int] = None) -> None:
        self._store = store
        self._state = st.initial_state(items_per_page or _default_items_per_page())
        self._request_ids = itertools.count(1)
        self._fetch_task: Optional[asyncio.Future] = None
        self._listeners: List[Listener] = []

    @property
    def state(self) -> CatalogState:
        return self._state

    # PUBLIC_INTERFACE
    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call `listener` with every new state; returns an unsubscribe function."""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    # PUBLIC_INTERFACE
    def dispatch(self, action: st.Action) -> CatalogState:
        """Apply one action and notify listeners."""
        new_state = st.reduce(self._state, action)
        if new_state is not self._state:
            self._state = new_state
            for listener in list(self._listeners):
                listener(new_state)
        return self._state

    async def _run(
        self,
        kind: RequestKind,
        call: Callable[[], Awaitable],
        on_success: Callable[[int, object], st.Action],
    ) -> CatalogState:
        request_id = next(self._request_ids)
        self.dispatch(st.RequestStarted(kind, request_id))
        try:
            result = await call()
        except asyncio.CancelledError:
            # The reducer drops this for a fetch that a newer one replaced.
            logger.info("request_cancelled: kind=%s request_id=%s", kind.value, request_id)
            self.dispatch(st.RequestFailed(kind, request_id, "Request cancelled"))
            raise
        except CatalogError as exc:
            logger.info("request_failed: kind=%s request_id=%s error=%s", kind.value, request_id, exc.code)
            return self.dispatch(st.RequestFailed(kind, request_id, exc.display_message()))
        logger.debug("request_succeeded: kind=%s request_id=%s", kind.value, request_id)
        return self.dispatch(on_success(request_id, result))

    # PUBLIC_INTERFACE
    async def request_fetch(self) -> CatalogState:
        """Replace the records with a fresh snapshot from the store."""
        previous = self._fetch_task
        if previous is not None and not previous.done():
            logger.debug("fetch_superseded")
            previous.cancel()

        task = asyncio.ensure_future(self._store.list_records())
        self._fetch_task = task

        async def wait_for_snapshot():
            return await task

        try:
            return await self._run(
                RequestKind.FETCH,
                wait_for_snapshot,
                lambda request_id, records: st.FetchSucceeded(request_id, tuple(records)),
            )
        except asyncio.CancelledError:
            if self._fetch_task is not task:
                return self._state
            raise

    # PUBLIC_INTERFACE
    async def request_create(self, fields: Fields) -> CatalogState:
        """Create a record; on success it is put first in the collection."""
        return await self._run(
            RequestKind.CREATE,
            lambda: self._store.create_record(fields),
            lambda request_id, record: st.CreateSucceeded(request_id, record),
        )

    # PUBLIC_INTERFACE
    async def request_update(self, record_id: uuid.UUID, fields: Fields) -> CatalogState:
        """Update a record; on success it is replaced in place."""
        return await self._run(
            RequestKind.UPDATE,
            lambda: self._store.update_record(record_id, fields),
            lambda request_id, record: st.UpdateSucceeded(request_id, record),
        )

    # PUBLIC_INTERFACE
    async def request_delete(self, record_id: uuid.UUID) -> CatalogState:
        """Delete a record; on success it is removed and the page clamped."""
        return await self._run(
            RequestKind.DELETE,
            lambda: self._store.delete_record(record_id),
            lambda request_id, record: st.DeleteSucceeded(request_id, record.id),
        )

    # PUBLIC_INTERFACE
    def set_page(self, page: int) -> CatalogState:
        return self.dispatch(st.SetPage(page))

    # PUBLIC_INTERFACE
    def set_items_per_page(self, items_per_page: int) -> CatalogState:
        if items_per_page < 1:
            raise ValueError(f"items_per_page must be at least 1, got {items_per_page}")
        return self.dispatch(st.SetItemsPerPage(items_per_page))

    # PUBLIC_INTERFACE
    def set_search_term(self, term: str) -> CatalogState:
        return self.dispatch(st.SetSearchTerm(term or ""))

    # PUBLIC_INTERFACE
    def set_sort(self, field: Optional[str], direction: str = ASC) -> CatalogState:
        """Sort by `field` in `direction`; a field of None restores store order."""
        if field is not None and field not in SORTABLE_FIELDS:
            raise ValueError(f"Unknown sort field: {field!r}")
        if direction not in (ASC, DESC):
            raise ValueError(f"Sort direction must be 'asc' or 'desc', got {direction!r}")
        return self.dispatch(st.SetSort(field, direction))

    # PUBLIC_INTERFACE
    def toggle_sort(self, field: str) -> CatalogState:
        """Ascending on a new field; flips to descending when already ascending on `field`."""
        current = self._state
        if current.sort_field == field and current.sort_direction == ASC:
            return self.set_sort(field, DESC)
        return self.set_sort(field, ASC)

    # PUBLIC_INTERFACE
    def clear_error(self, kind: Optional[RequestKind] = None) -> CatalogState:
        return self.dispatch(st.ClearError(kind))

    def open_create_dialog(self) -> CatalogState:
        return self.dispatch(st.OpenCreateDialog())

    def open_edit_dialog(self, record: Record) -> CatalogState:
        return self.dispatch(st.OpenEditDialog(record))

    def open_delete_dialog(self, record: Record) -> CatalogState:
        return self.dispatch(st.OpenDeleteDialog(record))

    def close_dialogs(self) -> CatalogState:
        return self.dispatch(st.CloseDialogs())
