from sqlalchemy.orm import Session

from trainbook.core.errors import ValidationError
from trainbook.models.booking import Booking
from trainbook.models.passenger import Passenger
from trainbook.models.train import Train
from trainbook.schemas.search import PassengerSearch, PassengerSearchRow


def search_passengers(db: Session, criteria: PassengerSearch, limit: int = 500) -> list[PassengerSearchRow]:
    """One row per passenger booking (or one bare row for passengers without bookings)."""
    if criteria.min_age is not None and criteria.max_age is not None and criteria.min_age > criteria.max_age:
        raise ValidationError("min_age must not exceed max_age")

    query = (
        db.query(Passenger, Train.name, Booking.booking_no, Booking.booking_date, Booking.total_amount)
        .outerjoin(Booking, Booking.passenger_id == Passenger.passenger_id)
        .outerjoin(Train, Train.train_id == Passenger.train_id)
    )
    if criteria.first_name:
        query = query.filter(Passenger.first_name.ilike(f"%{criteria.first_name}%"))
    if criteria.last_name:
        query = query.filter(Passenger.last_name.ilike(f"%{criteria.last_name}%"))
    if criteria.min_age is not None:
        query = query.filter(Passenger.age >= criteria.min_age)
    if criteria.max_age is not None:
        query = query.filter(Passenger.age <= criteria.max_age)
    if criteria.train_type:
        query = query.filter(Train.type == criteria.train_type)

    rows = (
        query.order_by(Passenger.last_name, Passenger.first_name, Passenger.passenger_id, Booking.booking_no)
        .limit(min(max(limit, 1), 5000))
        .all()
    )
    return [
        PassengerSearchRow(
            passenger_id=p.passenger_id,
            first_name=p.first_name,
            last_name=p.last_name,
            date_of_birth=p.date_of_birth,
            age=p.age,
            train_id=p.train_id,
            train_name=train_name,
            booking_no=booking_no,
            booking_date=booking_date,
            total_amount=amount,
        )
        for p, train_name, booking_no, booking_date, amount in rows
    ]
