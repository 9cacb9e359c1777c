"""
Catalog client state and its reducer.

`CatalogState` is immutable; `reduce(state, action)` is the only way to get
a new one. Every transition that changes the records or a view parameter
finishes with `view.recompute`, so the visible slice never lags behind the
search term, sort or page it was derived from.

Each request kind (fetch, create, update, delete) runs its own
idle -> pending -> succeeded | failed cycle. Fetch completions carry the
request id they were dispatched with; a completion older than the latest
dispatched fetch is dropped.
"""

from __future__ import annotations

import enum
import logging
import uuid
from dataclasses import dataclass, field, replace
from typing import Optional, Tuple, Union

from song_catalog.client import view
from song_catalog.client.view import Pagination, Record

logger = logging.getLogger(__name__)


class RequestKind(str, enum.Enum):
    FETCH = "fetch"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class RequestStatus(str, enum.Enum):
    IDLE = "idle"
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class RequestState:
    status: RequestStatus = RequestStatus.IDLE
    error: Optional[str] = None
    request_id: int = 0

    @property
    def loading(self) -> bool:
        return self.status is RequestStatus.PENDING


def _idle_requests():
    return {kind: RequestState() for kind in RequestKind}


@dataclass(frozen=True)
class CatalogState:
    all_records: Tuple[Record, ...] = ()
    search_term: str = ""
    sort_field: Optional[str] = None
    sort_direction: str = view.ASC
    pagination: Pagination = field(default_factory=Pagination)
    visible_slice: Tuple[Record, ...] = ()
    requests: dict = field(default_factory=_idle_requests)
    selected_record: Optional[Record] = None
    is_modal_open: bool = False
    is_delete_dialog_open: bool = False

    def request(self, kind: RequestKind) -> RequestState:
        return self.requests[kind]

    @property
    def loading(self) -> bool:
        """True while any request is in flight."""
        return any(r.loading for r in self.requests.values())

    @property
    def error(self) -> Optional[str]:
        """The first recorded error across request kinds, if any."""
        for kind in RequestKind:
            if self.requests[kind].error:
                return self.requests[kind].error
        return None


# PUBLIC_INTERFACE
def initial_state(items_per_page: int = 10) -> CatalogState:
    """Empty catalog with the given page size, already derived."""
    return view.recompute(CatalogState(pagination=Pagination(items_per_page=items_per_page)))


# Actions

@dataclass(frozen=True)
class RequestStarted:
    kind: RequestKind
    request_id: int


@dataclass(frozen=True)
class FetchSucceeded:
    request_id: int
    records: Tuple[Record, ...]


@dataclass(frozen=True)
class CreateSucceeded:
    request_id: int
    record: Record


@dataclass(frozen=True)
class UpdateSucceeded:
    request_id: int
    record: Record


@dataclass(frozen=True)
class DeleteSucceeded:
    request_id: int
    record_id: uuid.UUID


@dataclass(frozen=True)
class RequestFailed:
    kind: RequestKind
    request_id: int
    message: str


@dataclass(frozen=True)
class SetPage:
    page: int


@dataclass(frozen=True)
class SetItemsPerPage:
    items_per_page: int


@dataclass(frozen=True)
class SetSearchTerm:
    term: str


@dataclass(frozen=True)
class SetSort:
    field: Optional[str]
    direction: str = view.ASC


@dataclass(frozen=True)
class ClearError:
    kind: Optional[RequestKind] = None


@dataclass(frozen=True)
class OpenCreateDialog:
    pass


@dataclass(frozen=True)
class OpenEditDialog:
    record: Record


@dataclass(frozen=True)
class OpenDeleteDialog:
    record: Record


@dataclass(frozen=True)
class CloseDialogs:
    pass


Action = Union[
    RequestStarted,
    FetchSucceeded,
    CreateSucceeded,
    UpdateSucceeded,
    DeleteSucceeded,
    RequestFailed,
    SetPage,
    SetItemsPerPage,
    SetSearchTerm,
    SetSort,
    ClearError,
    OpenCreateDialog,
    OpenEditDialog,
    OpenDeleteDialog,
    CloseDialogs,
]


def _with_request(state: CatalogState, kind: RequestKind, **changes) -> CatalogState:
    requests = dict(state.requests)
    requests[kind] = replace(requests[kind], **changes)
    return replace(state, requests=requests)


def _with_page(state: CatalogState, page: int) -> CatalogState:
    return replace(state, pagination=replace(state.pagination, current_page=page))


def _is_latest(state: CatalogState, kind: RequestKind, request_id: int) -> bool:
    return request_id == state.request(kind).request_id


def _apply_records(
    state: CatalogState, kind: RequestKind, request_id: int, records: Tuple[Record, ...]
) -> CatalogState:
    """Install a new record collection for a succeeded request and re-derive the view."""
    # A newer request of the same kind stays pending.
    if _is_latest(state, kind, request_id):
        state = _with_request(state, kind, status=RequestStatus.SUCCEEDED, error=None)
    state = replace(
        state,
        all_records=records,
        selected_record=None,
        is_modal_open=False,
        is_delete_dialog_open=False,
    )
    state = view.recompute(state)
    # Shrinking the collection may leave the current page past the end.
    if state.pagination.current_page > state.pagination.total_pages:
        state = view.recompute(_with_page(state, state.pagination.total_pages))
    return state


# PUBLIC_INTERFACE
def reduce(state: CatalogState, action: Action) -> CatalogState:
    """Apply `action` to `state` and return the new state."""
    if isinstance(action, RequestStarted):
        return _with_request(
            state, action.kind, status=RequestStatus.PENDING, error=None, request_id=action.request_id
        )

    if isinstance(action, FetchSucceeded):
        if not _is_latest(state, RequestKind.FETCH, action.request_id):
            logger.debug("stale_fetch_dropped: request_id=%s", action.request_id)
            return state
        return _apply_records(state, RequestKind.FETCH, action.request_id, tuple(action.records))

    if isinstance(action, CreateSucceeded):
        return _apply_records(state, RequestKind.CREATE, action.request_id, (action.record,) + state.all_records)

    if isinstance(action, UpdateSucceeded):
        records = tuple(action.record if r.id == action.record.id else r for r in state.all_records)
        return _apply_records(state, RequestKind.UPDATE, action.request_id, records)

    if isinstance(action, DeleteSucceeded):
        records = tuple(r for r in state.all_records if r.id != action.record_id)
        return _apply_records(state, RequestKind.DELETE, action.request_id, records)

    if isinstance(action, RequestFailed):
        if action.kind is RequestKind.FETCH and not _is_latest(state, RequestKind.FETCH, action.request_id):
            logger.debug("stale_fetch_failure_dropped: request_id=%s", action.request_id)
            return state
        if not _is_latest(state, action.kind, action.request_id):
            return _with_request(state, action.kind, error=action.message)
        return _with_request(state, action.kind, status=RequestStatus.FAILED, error=action.message)

    if isinstance(action, SetPage):
        return view.recompute(_with_page(state, max(1, action.page)))

    if isinstance(action, SetItemsPerPage):
        pagination = replace(state.pagination, items_per_page=action.items_per_page, current_page=1)
        return view.recompute(replace(state, pagination=pagination))

    if isinstance(action, SetSearchTerm):
        return view.recompute(_with_page(replace(state, search_term=action.term), 1))

    if isinstance(action, SetSort):
        state = replace(state, sort_field=action.field, sort_direction=action.direction)
        return view.recompute(_with_page(state, 1))

    if isinstance(action, ClearError):
        kinds = [action.kind] if action.kind is not None else list(RequestKind)
        for kind in kinds:
            state = _with_request(state, kind, error=None)
        return state

    if isinstance(action, OpenCreateDialog):
        return replace(state, selected_record=None, is_modal_open=True, is_delete_dialog_open=False)

    if isinstance(action, OpenEditDialog):
        return replace(state, selected_record=action.record, is_modal_open=True, is_delete_dialog_open=False)

    if isinstance(action, OpenDeleteDialog):
        return replace(state, selected_record=action.record, is_modal_open=False, is_delete_dialog_open=True)

    if isinstance(action, CloseDialogs):
        return replace(state, selected_record=None, is_modal_open=False, is_delete_dialog_open=False)

    raise TypeError(f"Unknown action: {action!r}")
