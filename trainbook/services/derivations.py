"""Derived fields and write-time constraints for the three stores.

These run on the write path of every create/update so a committed row never
carries a stale ``age`` or ``travel_duration``.
"""
import logging
from datetime import date, datetime
from decimal import Decimal, InvalidOperation

from sqlalchemy.orm import Session

from trainbook.core.clock import ensure_utc, today as clock_today, utcnow
from trainbook.core.errors import ValidationError
from trainbook.models.passenger import Passenger
from trainbook.models.train import Train

logger = logging.getLogger(__name__)

PASSENGER_ID_LENGTH = 5
MIN_AGE = 0
MAX_AGE = 150
MAX_BOOKING_AMOUNT = Decimal("10000")


def validate_passenger_id(passenger_id: str | None) -> str:
    if not passenger_id or len(passenger_id) != PASSENGER_ID_LENGTH:
        raise ValidationError(f"passenger_id must be exactly {PASSENGER_ID_LENGTH} characters")
    return passenger_id


def recompute_age(passenger: Passenger, today: date | None = None) -> None:
    today = today or clock_today()
    if passenger.date_of_birth is not None:
        if passenger.date_of_birth > today:
            raise ValidationError("date of birth cannot be in the future")
        passenger.age = today.year - passenger.date_of_birth.year
    if passenger.age is not None and not (MIN_AGE <= passenger.age <= MAX_AGE):
        raise ValidationError(f"passenger age must be between {MIN_AGE} and {MAX_AGE}")


def recompute_travel_duration(train: Train) -> None:
    if train.departure_time is not None:
        train.departure_time = ensure_utc(train.departure_time)
    if train.arrival_time is not None:
        train.arrival_time = ensure_utc(train.arrival_time)
    if train.departure_time is None or train.arrival_time is None:
        train.travel_duration = None
        return
    if train.arrival_time <= train.departure_time:
        raise ValidationError("arrival time must be after departure time")
    train.travel_duration = train.arrival_time - train.departure_time


def validate_booking_amount(total_amount) -> Decimal:
    if total_amount is None:
        raise ValidationError("total_amount is required")
    try:
        amount = Decimal(str(total_amount))
    except InvalidOperation as e:
        raise ValidationError(f"booking amount {total_amount!r} is not a number") from e
    if not amount.is_finite():
        raise ValidationError("booking amount must be a finite number")
    if amount <= 0:
        raise ValidationError("booking amount must be positive")
    if amount > MAX_BOOKING_AMOUNT:
        raise ValidationError(f"booking amount exceeds maximum limit of {MAX_BOOKING_AMOUNT}")
    return amount


def validate_booking_date(booking_date: datetime, now: datetime | None = None) -> datetime:
    booking_date = ensure_utc(booking_date)
    if booking_date > ensure_utc(now or utcnow()):
        raise ValidationError("booking date cannot be in the future")
    return booking_date


def propagate_passenger_id(db: Session, passenger_id: str) -> bool:
    """Make sure a passenger row exists for ``passenger_id``. Returns True when a stub was added."""
    if db.get(Passenger, passenger_id) is not None:
        return False
    db.add(Passenger(passenger_id=passenger_id))
    # autoflush is off; flush so a second lookup in this transaction sees the stub
    db.flush()
    logger.info("created stub passenger %s", passenger_id)
    return True


def propagate_train_id(db: Session, train_id: str | None) -> bool:
    if train_id is None or db.get(Train, train_id) is not None:
        return False
    db.add(Train(train_id=train_id))
    db.flush()
    logger.info("created stub train %s", train_id)
    return True
