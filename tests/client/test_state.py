from __future__ import annotations

import pytest

from song_catalog.client import state as st
from song_catalog.client.state import RequestKind, RequestStatus


def _loaded(records, items_per_page=5, request_id=1):
    state = st.initial_state(items_per_page)
    state = st.reduce(state, st.RequestStarted(RequestKind.FETCH, request_id))
    return st.reduce(state, st.FetchSucceeded(request_id, tuple(records)))


def test_pending_sets_loading_and_clears_error() -> None:
    state = st.initial_state()
    state = st.reduce(state, st.RequestStarted(RequestKind.CREATE, 1))
    state = st.reduce(state, st.RequestFailed(RequestKind.CREATE, 1, "boom"))

    state = st.reduce(state, st.RequestStarted(RequestKind.CREATE, 2))

    assert state.request(RequestKind.CREATE).loading
    assert state.request(RequestKind.CREATE).error is None
    assert not state.request(RequestKind.FETCH).loading


def test_fetch_success_replaces_records(make_record) -> None:
    records = [make_record(title=str(i)) for i in range(7)]

    state = _loaded(records)

    assert state.all_records == tuple(records)
    assert state.request(RequestKind.FETCH).status is RequestStatus.SUCCEEDED
    assert not state.loading
    assert len(state.visible_slice) == 5


def test_seven_records_second_page(make_record) -> None:
    state = _loaded([make_record(title=str(i)) for i in range(7)])

    state = st.reduce(state, st.SetPage(2))

    assert len(state.visible_slice) == 2
    assert state.pagination.total_pages == 2
    assert state.pagination.current_page == 2


def test_stale_fetch_is_dropped(make_record) -> None:
    old, new = [make_record(title="old")], [make_record(title="new")]
    state = st.initial_state()
    state = st.reduce(state, st.RequestStarted(RequestKind.FETCH, 1))
    state = st.reduce(state, st.RequestStarted(RequestKind.FETCH, 2))

    state = st.reduce(state, st.FetchSucceeded(2, tuple(new)))
    state = st.reduce(state, st.FetchSucceeded(1, tuple(old)))
    state = st.reduce(state, st.RequestFailed(RequestKind.FETCH, 1, "late failure"))

    assert [r.title for r in state.all_records] == ["new"]
    assert state.request(RequestKind.FETCH).error is None


def test_failure_keeps_records(make_record) -> None:
    state = _loaded([make_record()])
    state = st.reduce(state, st.RequestStarted(RequestKind.DELETE, 2))

    state = st.reduce(state, st.RequestFailed(RequestKind.DELETE, 2, "Song not found"))

    assert len(state.all_records) == 1
    assert state.request(RequestKind.DELETE).status is RequestStatus.FAILED
    assert state.error == "Song not found"
    assert not state.loading


def test_clear_error(make_record) -> None:
    state = st.reduce(st.initial_state(), st.RequestFailed(RequestKind.FETCH, 0, "offline"))
    state = st.reduce(state, st.RequestFailed(RequestKind.UPDATE, 0, "conflict"))

    only_fetch = st.reduce(state, st.ClearError(RequestKind.FETCH))
    everything = st.reduce(state, st.ClearError())

    assert only_fetch.request(RequestKind.FETCH).error is None
    assert only_fetch.request(RequestKind.UPDATE).error == "conflict"
    assert everything.error is None


def test_create_prepends_and_closes_dialog(make_record) -> None:
    existing = make_record(title="existing")
    state = _loaded([existing])
    state = st.reduce(state, st.OpenCreateDialog())
    created = make_record(title="created")

    state = st.reduce(state, st.RequestStarted(RequestKind.CREATE, 2))
    state = st.reduce(state, st.CreateSucceeded(2, created))

    assert state.all_records == (created, existing)
    assert state.visible_slice[0] == created
    assert not state.is_modal_open


def test_created_record_still_filtered(make_record) -> None:
    state = _loaded([make_record(title="Blue Train", genre="Jazz")])
    state = st.reduce(state, st.SetSearchTerm("jazz"))

    state = st.reduce(state, st.CreateSucceeded(0, make_record(title="Paranoid", genre="Metal")))

    assert [r.title for r in state.visible_slice] == ["Blue Train"]
    assert len(state.all_records) == 2


def test_update_replaces_in_place(make_record) -> None:
    first, second, third = make_record(title="1"), make_record(title="2"), make_record(title="3")
    state = _loaded([first, second, third])
    state = st.reduce(state, st.OpenEditDialog(second))
    updated = second.model_copy(update={"title": "two"})

    state = st.reduce(state, st.UpdateSucceeded(0, updated))

    assert [r.title for r in state.all_records] == ["1", "two", "3"]
    assert state.selected_record is None
    assert not state.is_modal_open


def test_delete_last_item_of_last_page_clamps_page(make_record) -> None:
    records = [make_record(title=str(i)) for i in range(6)]
    state = st.reduce(_loaded(records), st.SetPage(2))
    assert [r.title for r in state.visible_slice] == ["5"]
    state = st.reduce(state, st.OpenDeleteDialog(records[5]))

    state = st.reduce(state, st.DeleteSucceeded(0, records[5].id))

    assert state.pagination.total_pages == 1
    assert state.pagination.current_page == 1
    assert len(state.visible_slice) == 5
    assert not state.is_delete_dialog_open


def test_delete_everything_leaves_page_one(make_record) -> None:
    only = make_record()
    state = _loaded([only])

    state = st.reduce(state, st.DeleteSucceeded(0, only.id))

    assert state.visible_slice == ()
    assert state.pagination.current_page == 1
    assert state.pagination.total_pages == 1


@pytest.mark.parametrize(
    "action",
    [st.SetSearchTerm("1"), st.SetSort("title", "desc"), st.SetItemsPerPage(2)],
)
def test_view_parameter_changes_reset_page(make_record, action) -> None:
    state = st.reduce(_loaded([make_record(title=str(i)) for i in range(12)]), st.SetPage(3))
    assert state.pagination.current_page == 3

    state = st.reduce(state, action)

    assert state.pagination.current_page == 1


def test_set_page_below_one_goes_to_first_page(make_record) -> None:
    state = st.reduce(_loaded([make_record()]), st.SetPage(0))

    assert state.pagination.current_page == 1


def test_older_mutation_does_not_end_newer_pending(make_record) -> None:
    state = _loaded([])
    state = st.reduce(state, st.RequestStarted(RequestKind.CREATE, 2))
    state = st.reduce(state, st.RequestStarted(RequestKind.CREATE, 3))

    state = st.reduce(state, st.CreateSucceeded(2, make_record(title="first")))

    assert len(state.all_records) == 1
    assert state.request(RequestKind.CREATE).loading


def test_dialogs() -> None:
    state = st.reduce(st.initial_state(), st.OpenCreateDialog())
    assert state.is_modal_open and state.selected_record is None

    state = st.reduce(state, st.CloseDialogs())
    assert not state.is_modal_open and not state.is_delete_dialog_open
