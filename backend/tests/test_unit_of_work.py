from datetime import datetime, timezone

import pytest
from sqlalchemy.exc import DisconnectionError, IntegrityError, OperationalError
from sqlmodel import Session

from courseapp import models
from courseapp.exceptions import CommitError
from courseapp.unit_of_work import UnitOfWork


def _course(instructor_id, name="Algorithms"):
    return models.Course(
        course_name=name,
        start_date=datetime(2025, 1, 1, tzinfo=timezone.utc),
        end_date=datetime(2025, 6, 1, tzinfo=timezone.utc),
        instructor_id=instructor_id,
    )


def _seed(uow):
    keep = models.Instructor(name="Keep")
    drop = models.Instructor(name="Drop")
    uow.instructors.create(keep)
    uow.instructors.create(drop)
    uow.students.create(models.Student(name="Ayse"))
    assert uow.commit() == 3
    return keep.id, drop.id


def test_commit_counts_rows_across_repositories(uow):
    keep_id, _ = _seed(uow)
    uow.courses.create(_course(keep_id))
    uow.students.create(models.Student(name="Mehmet"))
    assert uow.pending_changes() == 2
    assert uow.commit() == 2
    assert uow.commit() == 0


def test_failed_commit_applies_nothing(uow, new_uow):
    keep_id, drop_id = _seed(uow)

    writer = new_uow()
    writer.instructors.create(models.Instructor(name="New"))
    keep = writer.instructors.get_by_id(keep_id, track=True)
    keep.name = "Renamed"
    writer.instructors.update(keep)
    writer.instructors.remove(models.Instructor(id=drop_id))
    # dangling foreign key: the database rejects the whole flush
    writer.courses.create(_course("no-such-instructor"))

    with pytest.raises(CommitError):
        writer.commit()

    reader = new_uow()
    names = sorted(i.name for i in reader.instructors.get_all(track=False))
    assert names == ["Drop", "Keep"]
    assert list(reader.courses.get_all(track=False)) == []
    assert writer.pending_changes() == 0


def test_unit_of_work_is_usable_after_failed_commit(uow, new_uow):
    keep_id, _ = _seed(uow)
    uow.courses.create(_course("no-such-instructor"))
    with pytest.raises(CommitError):
        uow.commit()
    uow.courses.create(_course(keep_id))
    assert uow.commit() == 1
    assert len(list(new_uow().courses.get_all(track=False))) == 1


def test_context_manager_rolls_back_on_error(engine, new_uow):
    with pytest.raises(RuntimeError):
        with UnitOfWork(Session(engine)) as unit:
            unit.instructors.create(models.Instructor(name="Ghost"))
            unit.session.flush()
            raise RuntimeError("boom")
    assert list(new_uow().instructors.get_all(track=False)) == []


def _failing_commit(error):
    def commit():
        raise error
    return commit


@pytest.mark.parametrize("error", [
    OperationalError("COMMIT", {}, Exception("database is locked")),
    IntegrityError("COMMIT", {}, Exception("constraint failed")),
])
def test_rejected_commit_becomes_commit_error(uow, monkeypatch, error):
    uow.instructors.create(models.Instructor(name="Lost"))
    monkeypatch.setattr(uow.session, "commit", _failing_commit(error))
    with pytest.raises(CommitError):
        uow.commit()
    assert uow.pending_changes() == 0


@pytest.mark.parametrize("error", [
    OperationalError("COMMIT", {}, Exception("server closed the connection"), connection_invalidated=True),
    DisconnectionError("connection lost"),
])
def test_lost_connection_propagates(uow, monkeypatch, error):
    uow.instructors.create(models.Instructor(name="Lost"))
    monkeypatch.setattr(uow.session, "commit", _failing_commit(error))
    with pytest.raises(type(error)) as raised:
        uow.commit()
    assert not isinstance(raised.value, CommitError)
    assert raised.value is error
