from decimal import Decimal
from sqlalchemy import String, Integer, DateTime, Numeric
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime, timezone
from trainbook.db.session import Base

class Booking(Base):
    __tablename__ = "bookings"

    booking_no: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    passenger_id: Mapped[str] = mapped_column(String(5), index=True)

    booking_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True, default=lambda: datetime.now(timezone.utc))
    total_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2))
