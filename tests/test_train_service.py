from datetime import datetime, timedelta, timezone

import pytest

from trainbook.core.errors import IntegrityViolation, NotFoundError, ValidationError
from trainbook.models.train import Train
from trainbook.schemas.train import TrainIn, TrainUpdate
from trainbook.services.train_service import create_train, delete_train, get_train, update_train

from conftest import NOW, add_passenger, add_train


def test_create_derives_travel_duration(db):
    t = add_train(db, "T1", hours=4)
    assert t.travel_duration == timedelta(hours=4)
    assert db.get(Train, "T1").travel_duration == timedelta(hours=4)


def test_create_rejects_arrival_before_departure(db):
    with pytest.raises(ValidationError):
        create_train(db, TrainIn(train_id="T1", departure_time=NOW, arrival_time=NOW - timedelta(hours=1)))
    assert db.query(Train).count() == 0


def test_create_duplicate(db):
    add_train(db, "T1")
    with pytest.raises(IntegrityViolation):
        add_train(db, "T1")


def test_update_recomputes_duration(db):
    add_train(db, "T1", hours=2)
    t = update_train(db, "T1", TrainUpdate(arrival_time=NOW.replace(hour=6) + timedelta(hours=7)))
    assert t.travel_duration == timedelta(hours=7)


def test_offset_timestamps_survive_reload(db):
    plus_two = timezone(timedelta(hours=2))
    create_train(db, TrainIn(
        train_id="T1",
        departure_time=datetime(2026, 6, 15, 8, 0, tzinfo=plus_two),
        arrival_time=datetime(2026, 6, 15, 10, 0, tzinfo=plus_two),
    ))
    db.expire_all()
    t = update_train(db, "T1", TrainUpdate(arrival_time=datetime(2026, 6, 15, 11, 0, tzinfo=plus_two)))
    assert t.travel_duration == timedelta(hours=3)
    db.expire_all()
    stored = get_train(db, "T1")
    assert stored.departure_time.replace(tzinfo=None) == datetime(2026, 6, 15, 6, 0)
    assert stored.travel_duration == timedelta(hours=3)


def test_clearing_departure_clears_duration(db):
    add_train(db, "T1", hours=3)
    t = update_train(db, "T1", TrainUpdate(departure_time=None))
    assert t.departure_time is None
    assert t.travel_duration is None


def test_update_fills_stub_schedule(db):
    add_passenger(db, "P0001", train_id="T9")
    t = update_train(db, "T9", TrainUpdate(name="Night Sleeper", departure_time=NOW, arrival_time=NOW + timedelta(hours=10)))
    assert t.name == "Night Sleeper"
    assert t.travel_duration == timedelta(hours=10)


def test_rejected_update_keeps_stored_row(db):
    add_train(db, "T1", hours=2, name="Coastal")
    with pytest.raises(ValidationError):
        update_train(db, "T1", TrainUpdate(name="Renamed", arrival_time=NOW.replace(hour=5)))
    t = get_train(db, "T1")
    assert t.name == "Coastal"
    assert t.travel_duration == timedelta(hours=2)


def test_update_missing_train(db):
    with pytest.raises(NotFoundError):
        update_train(db, "T404", TrainUpdate(name="x"))


def test_delete_train_in_use(db):
    add_train(db, "T1", hours=1)
    add_passenger(db, "P0001", train_id="T1")
    with pytest.raises(IntegrityViolation):
        delete_train(db, "T1")
    spare = add_train(db, "T2", hours=1)
    delete_train(db, spare.train_id)
    assert db.get(Train, "T2") is None
