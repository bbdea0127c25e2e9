"""Tests for the task ledger."""

import pytest

from pomocycle.core.errors import InvalidOperation, ValidationError
from pomocycle.storage.kv import ACTIVE_TASK_KEY, TASKS_KEY, MemoryStore
from pomocycle.tasks.ledger import TaskLedger


@pytest.fixture
def ledger(store) -> TaskLedger:
    return TaskLedger(store)


def test_add_prepends_trimmed_task(ledger):
    ledger.add("first")
    task = ledger.add("  write report  ")

    assert task.text == "write report"
    assert task.sessions_spent == 0
    assert not task.completed
    assert ledger.tasks[0] is task


@pytest.mark.parametrize("text", ["", "   ", "x" * 101])
def test_add_rejects_invalid_text(ledger, text):
    with pytest.raises(ValidationError):
        ledger.add(text)
    assert ledger.tasks == []


def test_add_accepts_exactly_100_chars(ledger):
    assert len(ledger.add("x" * 100).text) == 100


def test_edit_validates_and_updates(ledger):
    task = ledger.add("draft")
    ledger.edit(task.id, "  final  ")
    assert ledger.get(task.id).text == "final"

    with pytest.raises(ValidationError):
        ledger.edit(task.id, "")
    assert ledger.get(task.id).text == "final"


def test_edit_unknown_task_is_noop(ledger):
    assert ledger.edit("missing", "text") is None


def test_toggle_complete(ledger):
    task = ledger.add("task")
    ledger.toggle_complete(task.id)
    assert ledger.get(task.id).completed
    ledger.toggle_complete(task.id)
    assert not ledger.get(task.id).completed
    assert ledger.toggle_complete("missing") is None


def test_select_toggles_active_task(ledger):
    a = ledger.add("a")
    b = ledger.add("b")

    assert ledger.select(a.id) == a.id
    assert ledger.select(b.id) == b.id
    assert ledger.select(b.id) is None
    assert ledger.active_task is None


def test_select_locked_while_running(ledger):
    task = ledger.add("a")
    ledger.is_session_running = lambda: True

    with pytest.raises(InvalidOperation):
        ledger.select(task.id)
    assert ledger.active_task_id is None


def test_delete_active_task_clears_selection(ledger, store):
    task = ledger.add("a")
    ledger.select(task.id)

    assert ledger.delete(task.id)
    assert ledger.active_task_id is None
    assert store.get(ACTIVE_TASK_KEY) is None
    assert not ledger.delete(task.id)


def test_record_work_session_increments_by_one(ledger):
    task = ledger.add("a")
    ledger.record_work_session(task.id)
    ledger.record_work_session(task.id)
    assert ledger.get(task.id).sessions_spent == 2
    ledger.record_work_session("deleted")


def test_tasks_persist_across_instances(store):
    ledger = TaskLedger(store)
    task = ledger.add("persisted")
    ledger.select(task.id)
    ledger.record_work_session(task.id)

    reloaded = TaskLedger(store)
    assert [t.text for t in reloaded.tasks] == ["persisted"]
    assert reloaded.active_task_id == task.id
    assert reloaded.get(task.id).sessions_spent == 1


def test_stale_active_reference_is_dropped():
    store = MemoryStore()
    store.set(TASKS_KEY, [])
    store.set(ACTIVE_TASK_KEY, "ghost")

    assert TaskLedger(store).active_task_id is None


def test_task_at_uses_one_based_positions(ledger):
    older = ledger.add("older")
    newer = ledger.add("newer")

    assert ledger.task_at(1) is newer
    assert ledger.task_at(2) is older
    assert ledger.task_at(0) is None
    assert ledger.task_at(3) is None
