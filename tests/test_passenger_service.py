from datetime import date

import pytest

from trainbook.core.errors import IntegrityViolation, NotFoundError, ValidationError
from trainbook.models.passenger import Passenger
from trainbook.models.train import Train
from trainbook.schemas.passenger import PassengerIn, PassengerUpdate
from trainbook.services.passenger_service import (
    delete_passenger,
    get_passenger,
    register_passenger,
    update_passenger,
)

from conftest import TODAY, add_booking, add_passenger, add_train, born


def test_register_derives_age(db):
    p = add_passenger(db, "P0001", dob=born(34))
    assert p.age == 34
    assert db.get(Passenger, "P0001").age == 34


def test_register_rejects_bad_id(db):
    with pytest.raises(ValidationError):
        add_passenger(db, "P01")
    assert db.query(Passenger).count() == 0


def test_register_rejects_future_dob_and_writes_nothing(db):
    with pytest.raises(ValidationError):
        add_passenger(db, "P0001", dob=date(TODAY.year + 1, 1, 1), train_id="T1")
    assert db.query(Passenger).count() == 0
    assert db.query(Train).count() == 0


def test_register_rejects_age_with_dob(db):
    with pytest.raises(ValidationError):
        register_passenger(db, PassengerIn(passenger_id="P0001", date_of_birth=born(20), age=20), today=TODAY)


def test_register_duplicate_is_integrity_violation(db):
    add_passenger(db, "P0001", dob=born(30))
    with pytest.raises(IntegrityViolation):
        add_passenger(db, "P0001", dob=born(31))


def test_register_fills_in_stub(db):
    add_booking(db, "P0001", 20)
    assert get_passenger(db, "P0001").first_name is None

    p = add_passenger(db, "P0001", dob=born(25), first="Grace", last="Hopper")
    assert (p.first_name, p.last_name, p.age) == ("Grace", "Hopper", 25)
    assert db.query(Passenger).count() == 1


def test_unknown_train_creates_exactly_one_stub(db):
    add_passenger(db, "P0001", train_id="T42")
    add_passenger(db, "P0002", train_id="T42")
    trains = db.query(Train).all()
    assert [t.train_id for t in trains] == ["T42"]
    assert trains[0].name is None and trains[0].travel_duration is None


def test_known_train_is_left_alone(db):
    add_train(db, "T1", hours=2, name="Coastal")
    add_passenger(db, "P0001", train_id="T1")
    assert db.query(Train).count() == 1
    assert db.get(Train, "T1").name == "Coastal"


class TestUpdatePassenger:

    def test_dob_change_recomputes_age(self, db):
        add_passenger(db, "P0001", dob=born(30))
        p = update_passenger(db, "P0001", PassengerUpdate(date_of_birth=born(45)), today=TODAY)
        assert p.age == 45

    def test_dob_set_for_first_time(self, db):
        add_passenger(db, "P0001")
        p = update_passenger(db, "P0001", PassengerUpdate(date_of_birth=born(12)), today=TODAY)
        assert p.age == 12

    def test_name_change_keeps_age(self, db):
        add_passenger(db, "P0001", dob=born(30))
        p = update_passenger(db, "P0001", PassengerUpdate(first_name="Ann"), today=TODAY)
        assert (p.first_name, p.age) == ("Ann", 30)

    def test_direct_age_rejected_when_dob_present(self, db):
        add_passenger(db, "P0001", dob=born(30))
        with pytest.raises(ValidationError):
            update_passenger(db, "P0001", PassengerUpdate(age=99), today=TODAY)
        assert get_passenger(db, "P0001").age == 30

    def test_clearing_dob_clears_age(self, db):
        add_passenger(db, "P0001", dob=born(30))
        p = update_passenger(db, "P0001", PassengerUpdate(date_of_birth=None), today=TODAY)
        assert (p.date_of_birth, p.age) == (None, None)

    def test_direct_age_allowed_without_dob(self, db):
        add_passenger(db, "P0001")
        assert update_passenger(db, "P0001", PassengerUpdate(age=61), today=TODAY).age == 61

    def test_invalid_dob_leaves_row_unchanged(self, db):
        add_passenger(db, "P0001", dob=born(30), first="Ann")
        with pytest.raises(ValidationError):
            update_passenger(db, "P0001", PassengerUpdate(first_name="Bob", date_of_birth=date(1700, 1, 1)), today=TODAY)
        p = get_passenger(db, "P0001")
        assert (p.first_name, p.age, p.date_of_birth) == ("Ann", 30, born(30))

    def test_train_change_creates_stub(self, db):
        add_passenger(db, "P0001")
        update_passenger(db, "P0001", PassengerUpdate(train_id="T7"), today=TODAY)
        assert db.get(Train, "T7") is not None

    def test_missing_passenger(self, db):
        with pytest.raises(NotFoundError):
            update_passenger(db, "NOPE1", PassengerUpdate(first_name="x"), today=TODAY)


def test_delete_passenger_with_bookings_rejected(db):
    add_passenger(db, "P0001")
    add_booking(db, "P0001", 10)
    with pytest.raises(IntegrityViolation):
        delete_passenger(db, "P0001")
    assert get_passenger(db, "P0001")


def test_delete_passenger(db):
    add_passenger(db, "P0001")
    delete_passenger(db, "P0001")
    with pytest.raises(NotFoundError):
        get_passenger(db, "P0001")
