import logging
from datetime import date
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError

from trainbook.core.errors import IntegrityViolation, NotFoundError, ValidationError
from trainbook.models.booking import Booking
from trainbook.models.passenger import Passenger
from trainbook.schemas.passenger import PassengerIn, PassengerUpdate
from trainbook.services.derivations import propagate_train_id, recompute_age, validate_passenger_id

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ("first_name", "last_name", "date_of_birth", "age", "train_id")


def is_stub(p: Passenger) -> bool:
    return all(getattr(p, f) is None for f in PROFILE_FIELDS)


def get_passenger(db: Session, passenger_id: str) -> Passenger:
    p = db.get(Passenger, passenger_id)
    if not p:
        raise NotFoundError(f"passenger {passenger_id} not found")
    return p


def _commit(db: Session):
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise IntegrityViolation(str(e.orig)) from e


def register_passenger(db: Session, body: PassengerIn, today: date | None = None) -> Passenger:
    """Create a passenger, or fill in the stub left behind by an earlier booking."""
    validate_passenger_id(body.passenger_id)
    if body.age is not None and body.date_of_birth is not None:
        raise ValidationError("age is derived from date_of_birth and cannot be set with it")

    p = db.get(Passenger, body.passenger_id)
    if p is not None and not is_stub(p):
        raise IntegrityViolation(f"passenger {body.passenger_id} already exists")

    data = body.model_dump(exclude={"passenger_id"})
    if p is None:
        p = Passenger(passenger_id=body.passenger_id, **data)
        recompute_age(p, today)
        db.add(p)
    else:
        for field, value in data.items():
            setattr(p, field, value)
        try:
            recompute_age(p, today)
        except ValidationError:
            db.rollback()
            raise

    db.flush()
    propagate_train_id(db, p.train_id)
    _commit(db)
    db.refresh(p)
    logger.info("registered passenger %s", p.passenger_id)
    return p


def update_passenger(db: Session, passenger_id: str, body: PassengerUpdate, today: date | None = None) -> Passenger:
    p = get_passenger(db, passenger_id)
    changes = body.model_dump(exclude_unset=True)

    new_dob = changes.get("date_of_birth", p.date_of_birth)
    if "age" in changes and new_dob is not None:
        raise ValidationError("age is derived from date_of_birth and cannot be set directly")
    dob_changed = new_dob is not None and new_dob != p.date_of_birth
    dob_cleared = new_dob is None and p.date_of_birth is not None and "age" not in changes
    train_changed = "train_id" in changes and changes["train_id"] != p.train_id

    for field, value in changes.items():
        setattr(p, field, value)
    if dob_cleared:
        p.age = None
    if dob_changed or "age" in changes:
        try:
            recompute_age(p, today)
        except ValidationError:
            db.rollback()
            raise

    if train_changed:
        db.flush()
        propagate_train_id(db, p.train_id)
    _commit(db)
    db.refresh(p)
    logger.info("updated passenger %s fields=%s", passenger_id, sorted(changes))
    return p


def delete_passenger(db: Session, passenger_id: str) -> None:
    p = get_passenger(db, passenger_id)
    refs = db.query(Booking).filter(Booking.passenger_id == passenger_id).count()
    if refs:
        raise IntegrityViolation(f"passenger {passenger_id} is referenced by {refs} booking(s)")
    db.delete(p)
    db.commit()
    logger.info("deleted passenger %s", passenger_id)
