import locale

import pytest

from fantrack.core.models import Task, TrackerKind
from fantrack.tasks import add_task
from fantrack.views import (
    DashboardSort,
    DetailState,
    SortKey,
    derive_view,
    effective_value,
    filter_trackers,
    progress,
    shows_financials,
    total_value,
)
from tests.conftest import make_tracker

TASKS = (
    Task(id="a", text="Bread", value=2, quantity=1, seq=1),
    Task(id="b", text="milk", value=3, quantity=2, completed=True, seq=2),
    Task(id="c", text="apples", seq=3),
    Task(id="d", text="Butter", value=5, quantity=None, seq=4),
)


def test_groceries_total():
    tracker = make_tracker(TrackerKind.SHOPPING, currency="$")
    tracker, _ = add_task(tracker, "Milk", value=3, quantity=2)
    tracker, _ = add_task(tracker, "Bread", value=2, quantity=1)
    assert total_value(tracker) == 8


def test_total_ignores_search():
    tracker = make_tracker(TrackerKind.SHOPPING, *TASKS)
    view = DetailState(query="bread").view(tracker)
    assert len(view.filtered) == 1
    assert total_value(tracker) == 2 + 6 + 0 + 5


def test_effective_value_defaults():
    assert effective_value(Task(id="x", text="x")) == 0
    assert effective_value(Task(id="x", text="x", value=4, quantity=None)) == 4


def test_split_invariant():
    for query in ("", "b", "zzz"):
        for sort in SortKey:
            view = derive_view(TASKS, query, sort)
            assert len(view.active) + len(view.completed) == len(view.filtered)
            assert all(not t.completed for t in view.active)
            assert all(t.completed for t in view.completed)


def test_filter_is_case_insensitive():
    view = derive_view(TASKS, "BU")
    assert [t.id for t in view.filtered] == ["d"]


def test_sort_created_uses_seq():
    shuffled = (TASKS[2], TASKS[0], TASKS[3], TASKS[1])
    assert [t.id for t in derive_view(shuffled).filtered] == ["a", "b", "c", "d"]


def test_sort_name_ignores_case():
    view = derive_view(TASKS, sort=SortKey.NAME)
    assert [t.text for t in view.filtered] == ["apples", "Bread", "Butter", "milk"]


def test_sort_value_descending_stable():
    tasks = (*TASKS, Task(id="e", text="eggs", value=6, seq=5))
    view = derive_view(tasks, sort=SortKey.VALUE)
    assert [t.id for t in view.filtered] == ["b", "e", "d", "a", "c"]


def test_split_keeps_sort_order():
    view = derive_view(TASKS, sort=SortKey.VALUE)
    assert [t.id for t in view.active] == ["d", "a", "c"]
    assert [t.id for t in view.completed] == ["b"]


def test_hidden_completed_still_counted():
    view = derive_view(TASKS, show_completed=False)
    assert view.visible_completed == ()
    assert len(view.completed) == 1


def test_progress():
    assert progress(make_tracker(TrackerKind.TODO, *TASKS)) == (1, 4)


def test_shows_financials():
    assert shows_financials(TrackerKind.SHOPPING)
    assert shows_financials(TrackerKind.TRAVEL)
    assert not shows_financials(TrackerKind.HABIT)


def test_detail_state_blocks_toggle_while_editing():
    state = DetailState(editing="a")
    assert not state.can_toggle("a")
    assert state.can_toggle("b")


def test_filter_trackers_by_kind_and_sort():
    trackers = [
        make_tracker(TrackerKind.TODO, id="1", title="Work", created_at=1),
        make_tracker(TrackerKind.HABIT, id="2", title="Gym", created_at=3),
        make_tracker(TrackerKind.TODO, id="3", title="admin", created_at=2),
    ]
    assert [t.id for t in filter_trackers(trackers)] == ["2", "3", "1"]
    assert [t.id for t in filter_trackers(trackers, sort=DashboardSort.OLDEST)] == ["1", "3", "2"]
    assert [t.id for t in filter_trackers(trackers, sort=DashboardSort.NAME)] == ["3", "2", "1"]
    assert [t.id for t in filter_trackers(trackers, kind=TrackerKind.TODO)] == ["3", "1"]
    assert [t.id for t in filter_trackers(trackers, query="GY")] == ["2"]


@pytest.fixture
def utf8_collation():
    saved = locale.setlocale(locale.LC_COLLATE)
    for name in ("ru_RU.UTF-8", "en_US.UTF-8"):
        try:
            locale.setlocale(locale.LC_COLLATE, name)
            break
        except locale.Error:
            continue
    else:
        pytest.skip("no UTF-8 collation locale installed")
    yield
    locale.setlocale(locale.LC_COLLATE, saved)


def test_sort_name_follows_locale_for_cyrillic(utf8_collation):
    tasks = (
        Task(id="a", text="яблоко", seq=1),
        Task(id="b", text="ёж", seq=2),
        Task(id="c", text="Жук", seq=3),
    )
    view = derive_view(tasks, sort=SortKey.NAME)
    assert [t.text for t in view.filtered] == ["ёж", "Жук", "яблоко"]
