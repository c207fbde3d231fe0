import pytest
from datetime import date, datetime, timedelta

from tasktracker.core.errors import ForbiddenError, NotFoundError, ValidationError
from tasktracker.models.subtask import Subtask
from tasktracker.schemas.subtask import SubtaskCreate, SubtaskUpdate
from tasktracker.services.subtask_service import (
    archive_subtask,
    create_subtask,
    list_archived_subtasks,
    list_subtasks,
    rollover_recurring_subtask,
    unarchive_subtask,
    update_subtask,
)
from tasktracker.services.task_service import total_elapsed_time


def test_create_subtask(store, make_task, users):
    task = make_task()
    subtask = create_subtask(store, task.id, SubtaskCreate(title=" Draft ", time_taken="15 minutes"), users.alice.id)
    assert subtask.title == "Draft"
    assert subtask.parent_task_id == task.id
    assert [s.id for s in list_subtasks(store, task.id)] == [subtask.id]


def test_create_subtask_validation_first(store, users):
    with pytest.raises(ValidationError) as exc:
        create_subtask(store, 999, SubtaskCreate(title=""), users.alice.id)
    assert exc.value.code == "TitleRequired"

    with pytest.raises(ValidationError) as exc:
        create_subtask(store, 999, SubtaskCreate(title="x", time_taken="1 hour 5 minutes"), users.alice.id)
    assert exc.value.code == "InvalidTimeFormat"

    with pytest.raises(NotFoundError):
        create_subtask(store, 999, SubtaskCreate(title="x"), users.alice.id)


def test_create_subtask_forbidden(store, make_task, users):
    task = make_task()
    with pytest.raises(ForbiddenError):
        create_subtask(store, task.id, SubtaskCreate(title="x"), users.frank.id)


def test_archived_subtask_leaves_aggregate(store, make_task, users):
    task = make_task(time_taken="1 hour")
    subtask = create_subtask(store, task.id, SubtaskCreate(title="x", time_taken="30 minutes"), users.alice.id)
    assert total_elapsed_time(store, task.id) == "1 hour 30 minutes"

    archive_subtask(store, subtask.id, users.alice.id)
    assert total_elapsed_time(store, task.id) == "1 hour"
    assert list_subtasks(store, task.id) == []

    unarchive_subtask(store, subtask.id, users.alice.id)
    assert total_elapsed_time(store, task.id) == "1 hour 30 minutes"


def test_archive_missing_subtask(store, users):
    with pytest.raises(NotFoundError) as exc:
        archive_subtask(store, 999, users.alice.id)
    assert exc.value.code == "SubtaskNotFound"


# ========== UPDATE ==========

TOMORROW = datetime.combine(date.today() + timedelta(days=1), datetime.min.time())


def test_update_subtask_logs_time(store, make_task, users):
    task = make_task(time_taken="1 hour")
    subtask = create_subtask(store, task.id, SubtaskCreate(title="x"), users.alice.id)
    assert total_elapsed_time(store, task.id) == "1 hour"

    updated = update_subtask(store, subtask.id, SubtaskUpdate(time_taken=" 45 minutes ", status="In Progress"), users.alice.id)
    assert updated.time_taken == "45 minutes"
    assert updated.status == "In Progress"
    assert total_elapsed_time(store, task.id) == "1 hour 45 minutes"


def test_update_subtask_invalid_time_checked_first(store, make_task, users):
    task = make_task()
    subtask = create_subtask(store, task.id, SubtaskCreate(title="x"), users.alice.id)

    with pytest.raises(ValidationError) as exc:
        update_subtask(store, 999, SubtaskUpdate(time_taken="20 minutes"), users.alice.id)
    assert exc.value.code == "InvalidTimeFormat"

    # avant la vérification des droits aussi
    with pytest.raises(ValidationError) as exc:
        update_subtask(store, subtask.id, SubtaskUpdate(time_taken="20 minutes"), users.frank.id)
    assert exc.value.code == "InvalidTimeFormat"


def test_update_subtask_blank_title(store, make_task, users):
    task = make_task()
    subtask = create_subtask(store, task.id, SubtaskCreate(title="x"), users.alice.id)
    with pytest.raises(ValidationError) as exc:
        update_subtask(store, subtask.id, SubtaskUpdate(title=" "), users.alice.id)
    assert exc.value.code == "TitleRequired"


def test_update_subtask_missing_and_forbidden(store, make_task, users):
    task = make_task()
    subtask = create_subtask(store, task.id, SubtaskCreate(title="x"), users.alice.id)

    with pytest.raises(NotFoundError) as exc:
        update_subtask(store, 999, SubtaskUpdate(title="y"), users.alice.id)
    assert exc.value.code == "SubtaskNotFound"

    with pytest.raises(ForbiddenError):
        update_subtask(store, subtask.id, SubtaskUpdate(title="y"), users.frank.id)


def test_update_subtask_recurrence_needs_interval(db, store, make_task, users):
    task = make_task()
    subtask = create_subtask(store, task.id, SubtaskCreate(title="x", due_date=TOMORROW), users.alice.id)
    with pytest.raises(ValidationError) as exc:
        update_subtask(store, subtask.id, SubtaskUpdate(is_recurring=True, title="changed"), users.alice.id)
    assert exc.value.code == "RecurrenceIntervalRequired"
    db.expire_all()
    assert store.find_by_id(Subtask, subtask.id).title == "x"


# ========== ARCHIVED LISTING ==========

def test_list_archived_subtasks(store, make_task, users):
    task = make_task()
    first = create_subtask(store, task.id, SubtaskCreate(title="a"), users.alice.id)
    second = create_subtask(store, task.id, SubtaskCreate(title="b"), users.alice.id)
    create_subtask(store, task.id, SubtaskCreate(title="c"), users.alice.id)

    archive_subtask(store, first.id, users.alice.id)
    archive_subtask(store, second.id, users.alice.id)

    archived = list_archived_subtasks(store, task.id)
    assert {s.id for s in archived} == {first.id, second.id}
    assert archived[0].archived_at >= archived[1].archived_at
    assert [s.title for s in list_subtasks(store, task.id)] == ["c"]


def test_list_archived_subtasks_missing_task(store):
    with pytest.raises(NotFoundError) as exc:
        list_archived_subtasks(store, 999)
    assert exc.value.code == "TaskNotFound"


# ========== RECURRENCE ==========

def test_recurring_subtask_requires_interval_and_due_date(store, make_task, users):
    task = make_task()
    with pytest.raises(ValidationError) as exc:
        create_subtask(store, task.id, SubtaskCreate(title="x", is_recurring=True, due_date=TOMORROW), users.alice.id)
    assert exc.value.code == "RecurrenceIntervalRequired"

    with pytest.raises(ValidationError) as exc:
        create_subtask(store, task.id, SubtaskCreate(title="x", is_recurring=True, recurrence_interval=7), users.alice.id)
    assert exc.value.code == "RecurrenceDueDateRequired"


def test_completing_recurring_subtask_spawns_next(store, make_task, users):
    task = make_task()
    subtask = create_subtask(
        store, task.id,
        SubtaskCreate(title="Weekly check", due_date=TOMORROW, is_recurring=True, recurrence_interval=7,
                      time_taken="30 minutes"),
        users.alice.id,
    )
    update_subtask(store, subtask.id, SubtaskUpdate(status="Completed"), users.alice.id)

    successors = [s for s in list_subtasks(store, task.id) if s.id != subtask.id]
    assert len(successors) == 1
    nxt = successors[0]
    assert nxt.title == "Weekly check"
    assert nxt.status == "To Do"
    assert nxt.due_date == TOMORROW + timedelta(days=7)
    assert nxt.time_taken == ""
    assert nxt.recurrence_interval == 7


def test_rollover_non_recurring_subtask_is_noop(store, make_task, users):
    task = make_task()
    subtask = create_subtask(store, task.id, SubtaskCreate(title="x"), users.alice.id)
    assert rollover_recurring_subtask(store, subtask) is None
