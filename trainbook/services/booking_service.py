import logging
from datetime import datetime
from decimal import Decimal
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError

from trainbook.core.clock import utcnow
from trainbook.core.errors import IntegrityViolation, NotFoundError
from trainbook.models.booking import Booking
from trainbook.services.audit_service import booking_snapshot, log_audit
from trainbook.services.derivations import (
    propagate_passenger_id,
    validate_booking_amount,
    validate_booking_date,
    validate_passenger_id,
)

logger = logging.getLogger(__name__)


def get_booking(db: Session, booking_no: int) -> Booking:
    b = db.get(Booking, booking_no)
    if not b:
        raise NotFoundError(f"booking {booking_no} not found")
    return b


def create_booking(db: Session, passenger_id: str, total_amount: Decimal,
                   booking_date: datetime | None = None, now: datetime | None = None,
                   changed_by: str = "system") -> Booking:
    now = now or utcnow()
    validate_passenger_id(passenger_id)
    amount = validate_booking_amount(total_amount)
    booked_at = validate_booking_date(booking_date or now, now)

    booking = Booking(passenger_id=passenger_id, booking_date=booked_at, total_amount=amount)
    try:
        db.add(booking)
        db.flush()  # assigns booking_no

        # passenger row follows the booking, never the other way round
        propagate_passenger_id(db, passenger_id)
        log_audit(db, "booking", str(booking.booking_no), "insert", new=booking_snapshot(booking), changed_by=changed_by)
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise IntegrityViolation(str(e.orig)) from e

    db.refresh(booking)
    logger.info("created booking %s for passenger %s amount=%s", booking.booking_no, passenger_id, amount)
    return booking


def update_booking(db: Session, booking_no: int, passenger_id: str | None = None,
                   total_amount: Decimal | None = None, booking_date: datetime | None = None,
                   now: datetime | None = None, changed_by: str = "system") -> Booking:
    b = get_booking(db, booking_no)
    now = now or utcnow()

    # validate everything before touching the row
    if passenger_id is not None:
        validate_passenger_id(passenger_id)
    amount = validate_booking_amount(total_amount) if total_amount is not None else None
    booked_at = validate_booking_date(booking_date, now) if booking_date is not None else None

    old = booking_snapshot(b)
    passenger_changed = passenger_id is not None and passenger_id != b.passenger_id
    if passenger_id is not None:
        b.passenger_id = passenger_id
    if amount is not None:
        b.total_amount = amount
    if booked_at is not None:
        b.booking_date = booked_at

    try:
        db.flush()
        if passenger_changed:
            propagate_passenger_id(db, passenger_id)
        log_audit(db, "booking", str(b.booking_no), "update", old=old, new=booking_snapshot(b), changed_by=changed_by)
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise IntegrityViolation(str(e.orig)) from e

    db.refresh(b)
    logger.info("updated booking %s", booking_no)
    return b


def delete_booking(db: Session, booking_no: int, changed_by: str = "system") -> None:
    b = get_booking(db, booking_no)
    log_audit(db, "booking", str(b.booking_no), "delete", old=booking_snapshot(b), changed_by=changed_by)
    db.delete(b)
    db.commit()
    logger.info("deleted booking %s", booking_no)


def list_bookings(db: Session, passenger_id: str | None = None, limit: int = 200) -> list[Booking]:
    q = db.query(Booking)
    if passenger_id:
        q = q.filter(Booking.passenger_id == passenger_id)
    return q.order_by(Booking.booking_date.desc(), Booking.booking_no.desc()).limit(min(max(limit, 1), 1000)).all()
