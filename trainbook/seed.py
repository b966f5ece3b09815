import logging
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

from sqlalchemy.orm import Session
from sqlalchemy import text
from sqlalchemy.exc import OperationalError, ProgrammingError

from trainbook.db.session import SessionLocal
from trainbook.models.booking import Booking
from trainbook.models.passenger import Passenger
from trainbook.models.train import Train
from trainbook.schemas.passenger import PassengerIn
from trainbook.schemas.train import TrainIn
from trainbook.services.booking_service import create_booking
from trainbook.services.passenger_service import register_passenger
from trainbook.services.train_service import create_train

logger = logging.getLogger(__name__)

# (train_id, name, type, first_station, last_station, departure HH:MM, journey minutes)
TRAINS = [
    ("T100", "Coastal Express", "Express", "Central Station", "Harbour", "06:30", 95),
    ("T200", "Valley Local", "Local", "Central Station", "Millbrook", "08:15", 240),
    ("T300", "Night Sleeper", "Sleeper", "Airport", "Northgate", "21:45", 610),
    ("T400", "Airport Link", "Express", "Airport", "Central Station", "07:00", 35),
]

# (passenger_id, first, last, dob, train_id)
PASSENGERS = [
    ("P0001", "Amara", "Okafor", date(1988, 4, 12), "T100"),
    ("P0002", "Liam", "Novak", date(2015, 9, 3), "T200"),
    ("P0003", "Sofia", "Reyes", date(2007, 1, 27), "T100"),
    ("P0004", "Kenji", "Watanabe", date(1952, 6, 30), "T300"),
    ("P0005", "Priya", "Nair", date(1995, 11, 8), "T400"),
    ("P0006", "Tomas", "Berg", date(1979, 2, 14), None),
]

# (passenger_id, days ago, amount)
BOOKINGS = [
    ("P0001", 3, "120.50"), ("P0001", 40, "98.00"), ("P0001", 75, "143.25"),
    ("P0002", 12, "35.00"),
    ("P0003", 5, "64.90"), ("P0003", 190, "58.00"),
    ("P0004", 260, "412.00"),
    ("P0005", 1, "18.75"), ("P0005", 8, "18.75"), ("P0005", 15, "22.00"), ("P0005", 22, "18.75"),
    ("P0006", 330, "250.00"),
]


def ensure_train(db: Session, train_id: str, name: str, type_: str, first: str, last: str,
                 departure: str, minutes: int, on: date):
    if db.get(Train, train_id):
        return
    hh, mm = (int(x) for x in departure.split(":"))
    dep = datetime(on.year, on.month, on.day, hh, mm, tzinfo=timezone.utc)
    create_train(db, TrainIn(
        train_id=train_id, name=name, type=type_, first_station=first, last_station=last,
        departure_time=dep, arrival_time=dep + timedelta(minutes=minutes),
    ))


def ensure_passenger(db: Session, passenger_id: str, first: str, last: str, dob: date, train_id: str | None):
    existing = db.get(Passenger, passenger_id)
    if existing and existing.first_name:
        return
    register_passenger(db, PassengerIn(
        passenger_id=passenger_id, first_name=first, last_name=last, date_of_birth=dob, train_id=train_id,
    ))


def run(db=None):
    if db is None:
        db = SessionLocal()
    try:
        # If migrations haven't been applied yet, seeding must not crash.
        try:
            db.execute(text("SELECT 1 FROM bookings LIMIT 1"))
        except (OperationalError, ProgrammingError):
            db.rollback()
            logger.warning("[seed] bookings table not found yet. Skipping seeding (run trainbook init-db).")
            return

        now = datetime.now(timezone.utc)
        for t in TRAINS:
            ensure_train(db, *t, on=now.date())
        for p in PASSENGERS:
            ensure_passenger(db, *p)

        if db.query(Booking).count() == 0:
            for passenger_id, days_ago, amount in BOOKINGS:
                create_booking(db, passenger_id, Decimal(amount), booking_date=now - timedelta(days=days_ago), now=now)
        logger.info("[seed] %s trains, %s passengers, %s bookings",
                    db.query(Train).count(), db.query(Passenger).count(), db.query(Booking).count())
    finally:
        db.close()


if __name__ == "__main__":
    run()
