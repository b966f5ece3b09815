import json
from datetime import timedelta

import pytest

from trainbook.main import main
from trainbook.models.booking import Booking
from trainbook.models.passenger import Passenger
from trainbook.models.train import Train
from trainbook.seed import BOOKINGS, PASSENGERS, TRAINS, run as run_seed


def _run(capsys, session_factory, *argv):
    code = main(list(argv), session_factory=session_factory)
    out, err = capsys.readouterr()
    return code, (json.loads(out) if out.strip() else None), err


def test_add_train_reports_duration(capsys, session_factory, db):
    code, out, _ = _run(
        capsys, session_factory, "add-train", "T1", "--type", "Express",
        "--departure", "2026-01-01T08:00:00+00:00", "--arrival", "2026-01-01T10:30:00+00:00",
    )
    assert code == 0
    assert (out["train_id"], out["type"]) == ("T1", "Express")
    assert out["travel_duration"] is not None
    assert db.get(Train, "T1").travel_duration == timedelta(hours=2, minutes=30)


def test_book_then_rank(capsys, session_factory):
    _run(capsys, session_factory, "add-passenger", "P0001", "--first-name", "Ada", "--dob", "1990-05-01")
    _run(capsys, session_factory, "book", "P0001", "40.00", "--date", "2026-01-02T10:00:00+00:00")
    code, out, _ = _run(capsys, session_factory, "book", "P0002", "75.50", "--date", "2026-01-03T10:00:00+00:00")
    assert code == 0
    assert out["passenger_id"] == "P0002"

    code, ranking = _run(capsys, session_factory, "report", "ranking")[:2]
    assert code == 0
    assert [r["passenger_id"] for r in ranking] == ["P0002", "P0001"]
    assert ranking[0]["rank"] == 1


def test_domain_error_returns_one(capsys, session_factory, db):
    code, out, err = _run(capsys, session_factory, "book", "AB", "10")
    assert code == 1
    assert out is None
    assert "error:" in err
    assert db.query(Booking).count() == 0


def test_empty_requires_confirmation(session_factory):
    with pytest.raises(SystemExit):
        main(["empty"], session_factory=session_factory)


def test_integrity_on_empty_store(capsys, session_factory):
    code, out, _ = _run(capsys, session_factory, "integrity")
    assert code == 0
    assert set(out.values()) == {0}


def test_seed_is_idempotent(session_factory, db):
    run_seed(session_factory())
    run_seed(session_factory())
    assert db.query(Train).count() == len(TRAINS)
    assert db.query(Passenger).count() == len(PASSENGERS)
    assert db.query(Booking).count() == len(BOOKINGS)


def test_rejected_search_filter_returns_one(capsys, session_factory):
    code, out, err = _run(capsys, session_factory, "search", "--min-age", "-1")
    assert code == 1
    assert out is None
    assert "error:" in err


def test_clv_requires_passenger_id(capsys, session_factory):
    with pytest.raises(SystemExit) as exc:
        main(["report", "clv"], session_factory=session_factory)
    assert exc.value.code == 2
    assert "--passenger-id" in capsys.readouterr().err


def test_clv_for_one_passenger(capsys, session_factory):
    _run(capsys, session_factory, "book", "P0001", "40.00", "--date", "2026-01-02T10:00:00+00:00")
    code, out, _ = _run(capsys, session_factory, "report", "clv", "--passenger-id", "P0001")
    assert code == 0
    assert out["passenger_id"] == "P0001"
