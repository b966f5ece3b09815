from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from trainbook.db.session import Base
from trainbook.models.audit_log import AuditLog  # noqa: F401
from trainbook.models.booking import Booking  # noqa: F401
from trainbook.models.passenger import Passenger  # noqa: F401
from trainbook.models.train import Train  # noqa: F401
from trainbook.schemas.passenger import PassengerIn
from trainbook.schemas.train import TrainIn
from trainbook.services.booking_service import create_booking
from trainbook.services.passenger_service import register_passenger
from trainbook.services.train_service import create_train

NOW = datetime(2026, 6, 15, 12, 0, tzinfo=timezone.utc)
TODAY = NOW.date()


@pytest.fixture()
def engine():
    eng = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


def add_train(db, train_id, hours=None, type_="Express", name=None):
    dep = NOW.replace(hour=6)
    return create_train(db, TrainIn(
        train_id=train_id,
        name=name or f"Train {train_id}",
        type=type_,
        first_station="Central Station",
        last_station="Harbour",
        departure_time=dep if hours is not None else None,
        arrival_time=dep + timedelta(hours=hours) if hours is not None else None,
    ))


def add_passenger(db, passenger_id, dob=None, train_id=None, first="Ada", last="Lovelace"):
    return register_passenger(db, PassengerIn(
        passenger_id=passenger_id, first_name=first, last_name=last, date_of_birth=dob, train_id=train_id,
    ), today=TODAY)


def add_booking(db, passenger_id, amount, days_ago=1):
    return create_booking(db, passenger_id, Decimal(str(amount)), booking_date=NOW - timedelta(days=days_ago), now=NOW)


def born(age: int) -> date:
    return date(TODAY.year - age, 3, 1)
