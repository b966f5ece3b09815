import logging
from datetime import datetime
from sqlalchemy.orm import Session
from sqlalchemy import func, or_

from trainbook.core.clock import utcnow
from trainbook.models.booking import Booking
from trainbook.models.passenger import Passenger
from trainbook.models.train import Train
from trainbook.schemas.reports import IntegrityReport
from trainbook.services.derivations import MAX_AGE, MIN_AGE

logger = logging.getLogger(__name__)


def check_integrity(db: Session, now: datetime | None = None) -> IntegrityReport:
    now = now or utcnow()

    orphaned_bookings = (
        db.query(func.count(Booking.booking_no))
        .outerjoin(Passenger, Passenger.passenger_id == Booking.passenger_id)
        .filter(Passenger.passenger_id.is_(None))
        .scalar()
    )
    orphaned_passengers = (
        db.query(func.count(Passenger.passenger_id))
        .outerjoin(Train, Train.train_id == Passenger.train_id)
        .filter(Passenger.train_id.isnot(None), Train.train_id.is_(None))
        .scalar()
    )
    invalid_ages = (
        db.query(func.count(Passenger.passenger_id))
        .filter(or_(Passenger.age < MIN_AGE, Passenger.age > MAX_AGE))
        .scalar()
    )
    future_bookings = db.query(func.count(Booking.booking_no)).filter(Booking.booking_date > now).scalar()
    non_positive_amounts = db.query(func.count(Booking.booking_no)).filter(Booking.total_amount <= 0).scalar()

    report = IntegrityReport(
        orphaned_bookings=orphaned_bookings or 0,
        orphaned_passengers=orphaned_passengers or 0,
        invalid_ages=invalid_ages or 0,
        future_bookings=future_bookings or 0,
        non_positive_amounts=non_positive_amounts or 0,
    )
    if not report.is_clean:
        logger.warning("integrity check found issues: %s", report.model_dump())
    return report
