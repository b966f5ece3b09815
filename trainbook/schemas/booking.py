from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict

class BookingIn(BaseModel):
    passenger_id: str
    total_amount: Decimal
    booking_date: Optional[datetime] = None  # defaults to now

class BookingOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    booking_no: int
    passenger_id: str
    booking_date: datetime
    total_amount: Decimal
