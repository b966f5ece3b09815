from datetime import datetime, timedelta
from typing import Optional

from pydantic import BaseModel, ConfigDict

class TrainIn(BaseModel):
    train_id: str
    name: Optional[str] = None
    type: Optional[str] = None
    first_station: Optional[str] = None
    last_station: Optional[str] = None
    departure_time: Optional[datetime] = None
    arrival_time: Optional[datetime] = None

class TrainUpdate(BaseModel):
    """Partial update; only fields explicitly set are written."""
    name: Optional[str] = None
    type: Optional[str] = None
    first_station: Optional[str] = None
    last_station: Optional[str] = None
    departure_time: Optional[datetime] = None
    arrival_time: Optional[datetime] = None

class TrainOut(TrainIn):
    model_config = ConfigDict(from_attributes=True)

    travel_duration: Optional[timedelta] = None
