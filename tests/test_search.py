from decimal import Decimal

import pytest
from pydantic import ValidationError as SchemaError

from trainbook.core.errors import ValidationError
from trainbook.schemas.search import PassengerSearch
from trainbook.services.search_service import search_passengers

from conftest import add_booking, add_passenger, add_train, born


@pytest.fixture()
def people(db):
    add_train(db, "T1", hours=1, type_="Express", name="Coastal Express")
    add_train(db, "T2", hours=5, type_="Local", name="Valley Local")
    add_passenger(db, "P0001", dob=born(30), train_id="T1", first="John", last="Smith")
    add_passenger(db, "P0002", dob=born(44), train_id="T2", first="Johanna", last="Adams")
    add_passenger(db, "P0003", dob=born(19), train_id="T1", first="Mary", last="Jones")
    add_passenger(db, "P0004", dob=born(60), first="Peter", last="Johnson")
    add_booking(db, "P0001", 120)
    add_booking(db, "P0001", 80)
    add_booking(db, "P0003", 35)


def _ids(rows):
    return [r.passenger_id for r in rows]


def test_no_criteria_returns_everyone_by_name(db, people):
    rows = search_passengers(db, PassengerSearch())
    assert _ids(rows) == ["P0002", "P0004", "P0003", "P0001", "P0001"]


def test_first_name_substring_is_case_insensitive(db, people):
    rows = search_passengers(db, PassengerSearch(first_name="JOH"))
    assert sorted(set(_ids(rows))) == ["P0001", "P0002"]


def test_age_window_and_train_type_combine(db, people):
    rows = search_passengers(db, PassengerSearch(min_age=25, max_age=45, train_type="Express"))
    assert _ids(rows) == ["P0001", "P0001"]
    assert {r.train_name for r in rows} == {"Coastal Express"}
    assert sorted(r.total_amount for r in rows) == [Decimal("80.00"), Decimal("120.00")]


def test_passenger_without_bookings_still_listed(db, people):
    rows = search_passengers(db, PassengerSearch(last_name="adams"))
    assert len(rows) == 1
    assert rows[0].booking_no is None
    assert rows[0].train_name == "Valley Local"


def test_quotes_in_criteria_are_just_text(db, people):
    assert search_passengers(db, PassengerSearch(last_name="' OR '1'='1")) == []


def test_inverted_age_window(db):
    with pytest.raises(ValidationError):
        search_passengers(db, PassengerSearch(min_age=50, max_age=20))


def test_negative_age_rejected_by_schema():
    with pytest.raises(SchemaError):
        PassengerSearch(min_age=-1)
