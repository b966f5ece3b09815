from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict

class PassengerIn(BaseModel):
    passenger_id: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    date_of_birth: Optional[date] = None
    age: Optional[int] = None  # only accepted when there is no date_of_birth
    train_id: Optional[str] = None

class PassengerUpdate(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    date_of_birth: Optional[date] = None
    age: Optional[int] = None
    train_id: Optional[str] = None

class PassengerOut(PassengerIn):
    model_config = ConfigDict(from_attributes=True)
