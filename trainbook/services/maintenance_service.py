import logging
from datetime import datetime
from sqlalchemy.orm import Session
from sqlalchemy import delete, text

from trainbook.core.clock import utcnow
from trainbook.models.booking import Booking
from trainbook.models.passenger import Passenger
from trainbook.models.train import Train

logger = logging.getLogger(__name__)

# children first
STORE_TABLES = (Booking.__tablename__, Passenger.__tablename__, Train.__tablename__)


def empty_data(db: Session) -> dict[str, int]:
    counts = {}
    for model in (Booking, Passenger, Train):
        counts[model.__tablename__] = int(db.execute(delete(model)).rowcount or 0)
    db.commit()
    logger.info("emptied stores: %s", counts)
    return counts


def create_backup_tables(db: Session, now: datetime | None = None) -> list[str]:
    """Copy each store into ``<table>_backup_<YYYYmmdd_HHMMSS>``."""
    stamp = (now or utcnow()).strftime("%Y%m%d_%H%M%S")
    created = []
    for table in STORE_TABLES:
        backup = f"{table}_backup_{stamp}"
        # identifiers are fixed table names plus the clock stamp, never caller input
        db.execute(text(f"CREATE TABLE {backup} AS SELECT * FROM {table}"))
        created.append(backup)
    db.commit()
    logger.info("backup tables created with timestamp %s", stamp)
    return created
