from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

class AgeBracketRevenue(BaseModel):
    age_bracket: str  # Kids, Teenagers, Adults, Elders
    total_revenue: Decimal
    passenger_count: int
    booking_count: int
    avg_revenue_per_passenger: Decimal

class RevenuePeriod(BaseModel):
    period: str  # 2024-03-01 | 2024-W09 | 2024-03 | 2024
    bookings_count: int
    total_revenue: Decimal
    avg_booking_value: Decimal
    min_booking: Decimal
    max_booking: Decimal

class TrainUtilization(BaseModel):
    train_id: str
    name: Optional[str] = None
    type: Optional[str] = None
    first_station: Optional[str] = None
    last_station: Optional[str] = None
    travel_duration: Optional[timedelta] = None
    passenger_count: int = 0
    booking_count: int = 0
    total_revenue: Decimal = Decimal("0.00")
    avg_revenue: Decimal = Decimal("0.00")
    demand_level: str
    journey_type: Optional[str] = None  # None while the schedule is unknown

class BookingRank(BaseModel):
    booking_no: int
    passenger_id: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    booking_date: datetime
    total_amount: Decimal
    rank: int
    dense_rank: int
    row_number: int

class BookingPercentile(BaseModel):
    booking_no: int
    passenger_id: str
    total_amount: Decimal
    quartile: int
    percent_rank: float
    cume_dist: float

class RfmScore(BaseModel):
    passenger_id: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    recency_days: int
    frequency: int
    monetary: Decimal
    recency_score: int = Field(ge=1, le=5)
    frequency_score: int = Field(ge=1, le=5)
    monetary_score: int = Field(ge=1, le=5)
    segment: str

class RfmSegmentSummary(BaseModel):
    segment: str
    customer_count: int
    avg_revenue: Decimal
    avg_bookings: float
    avg_days_since_last_booking: float
    segment_total_revenue: Decimal

class CustomerLifetimeValue(BaseModel):
    passenger_id: str
    total_bookings: int = 0
    total_revenue: Decimal = Decimal("0.00")
    avg_booking_value: Decimal = Decimal("0.00")
    first_booking_date: Optional[date] = None
    last_booking_date: Optional[date] = None
    customer_lifespan_days: int = 0

class DashboardMetric(BaseModel):
    metric: str
    value: Decimal
    type: str  # count | currency

class MonthlyRevenuePoint(BaseModel):
    month: str
    revenue: Decimal
    bookings: int

class TopTrain(BaseModel):
    train_id: str
    name: Optional[str] = None
    type: Optional[str] = None
    passenger_count: int
    total_revenue: Decimal

class Dashboard(BaseModel):
    metrics: List[DashboardMetric]
    revenue_by_month: List[MonthlyRevenuePoint]
    top_trains: List[TopTrain]

class IntegrityReport(BaseModel):
    orphaned_bookings: int = 0
    orphaned_passengers: int = 0
    invalid_ages: int = 0
    future_bookings: int = 0
    non_positive_amounts: int = 0

    @property
    def is_clean(self) -> bool:
        return not any(self.model_dump().values())
