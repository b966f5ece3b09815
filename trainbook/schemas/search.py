from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

class PassengerSearch(BaseModel):
    """Each field that is set narrows the result independently."""
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    min_age: Optional[int] = Field(default=None, ge=0)
    max_age: Optional[int] = Field(default=None, ge=0)
    train_type: Optional[str] = None

class PassengerSearchRow(BaseModel):
    passenger_id: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    date_of_birth: Optional[date] = None
    age: Optional[int] = None
    train_id: Optional[str] = None
    train_name: Optional[str] = None
    booking_no: Optional[int] = None
    booking_date: Optional[datetime] = None
    total_amount: Optional[Decimal] = None
