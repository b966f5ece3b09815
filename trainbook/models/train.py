from sqlalchemy import String, DateTime, Interval
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime, timedelta, timezone
from trainbook.db.session import Base

class Train(Base):
    __tablename__ = "trains"

    train_id: Mapped[str] = mapped_column(String(40), primary_key=True)

    # Stub trains (created from a passenger's train_id) carry only the id
    name: Mapped[str | None] = mapped_column(String(80), nullable=True)
    type: Mapped[str | None] = mapped_column(String(50), nullable=True, index=True)  # Express, Local, ...
    first_station: Mapped[str | None] = mapped_column(String(70), nullable=True)
    last_station: Mapped[str | None] = mapped_column(String(70), nullable=True)

    departure_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    arrival_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    travel_duration: Mapped[timedelta | None] = mapped_column(Interval, nullable=True)  # derived

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
