"""Read-only reports over the passenger, train and booking stores.

Rows are fetched with plain joins and aggregated here so every report behaves
the same on SQLite and Postgres; only the ranking reports lean on the
database's window functions. None of these functions write.
"""
import logging
from collections import defaultdict
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from trainbook.core.clock import ensure_utc, today as clock_today
from trainbook.core.errors import ValidationError
from trainbook.models.booking import Booking
from trainbook.models.passenger import Passenger
from trainbook.models.train import Train
from trainbook.schemas.reports import (
    AgeBracketRevenue,
    BookingPercentile,
    BookingRank,
    CustomerLifetimeValue,
    Dashboard,
    DashboardMetric,
    MonthlyRevenuePoint,
    RevenuePeriod,
    RfmScore,
    RfmSegmentSummary,
    TopTrain,
    TrainUtilization,
)

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

GRANULARITIES = ("day", "week", "month", "year")
RANK_KEYS = {
    "total_amount": Booking.total_amount,
    "booking_date": Booking.booking_date,
}
RFM_BUCKETS = 5


def _money(value) -> Decimal:
    return Decimal(value or 0).quantize(CENT, rounding=ROUND_HALF_UP)


def _booked_on(b_date: datetime) -> date:
    return ensure_utc(b_date).date()


def _day_start(d: date) -> datetime:
    return datetime.combine(d, time.min, tzinfo=timezone.utc)


# -------------------------
# AGE BRACKETS
# -------------------------
def age_bracket(age: int) -> str:
    if age <= 12:
        return "Kids"
    if age <= 21:
        return "Teenagers"
    if age <= 64:
        return "Adults"
    return "Elders"


def age_bracket_revenue(db: Session) -> list[AgeBracketRevenue]:
    rows = (
        db.query(Passenger.passenger_id, Passenger.age, Booking.total_amount)
        .join(Booking, Booking.passenger_id == Passenger.passenger_id)
        .filter(Passenger.age.isnot(None))
        .all()
    )
    totals: dict[str, Decimal] = defaultdict(Decimal)
    bookings: dict[str, int] = defaultdict(int)
    riders: dict[str, set] = defaultdict(set)
    for passenger_id, age, amount in rows:
        bracket = age_bracket(age)
        totals[bracket] += Decimal(amount)
        bookings[bracket] += 1
        riders[bracket].add(passenger_id)

    out = [
        AgeBracketRevenue(
            age_bracket=bracket,
            total_revenue=_money(totals[bracket]),
            passenger_count=len(riders[bracket]),
            booking_count=bookings[bracket],
            avg_revenue_per_passenger=_money(totals[bracket] / len(riders[bracket])),
        )
        for bracket in totals
    ]
    out.sort(key=lambda r: (-r.total_revenue, r.age_bracket))
    return out


# -------------------------
# REVENUE TREND
# -------------------------
def period_label(d: date, granularity: str) -> str:
    if granularity == "day":
        return d.isoformat()
    if granularity == "week":
        iso_year, iso_week, _ = d.isocalendar()
        return f"{iso_year}-W{iso_week:02d}"
    if granularity == "month":
        return f"{d.year}-{d.month:02d}"
    return str(d.year)


def revenue_trend(db: Session, granularity: str, start: date, end: date) -> list[RevenuePeriod]:
    """Bookings between ``start`` and ``end`` (both inclusive) grouped per period; empty periods are left out."""
    if granularity not in GRANULARITIES:
        raise ValidationError(f"unknown granularity {granularity!r}; expected one of {', '.join(GRANULARITIES)}")
    if start > end:
        raise ValidationError("start date must not be after end date")

    rows = (
        db.query(Booking.booking_date, Booking.total_amount)
        .filter(Booking.booking_date >= _day_start(start), Booking.booking_date < _day_start(end + timedelta(days=1)))
        .all()
    )
    groups: dict[str, list[Decimal]] = defaultdict(list)
    for b_date, amount in rows:
        groups[period_label(_booked_on(b_date), granularity)].append(Decimal(amount))

    return [
        RevenuePeriod(
            period=label,
            bookings_count=len(amounts),
            total_revenue=_money(sum(amounts)),
            avg_booking_value=_money(sum(amounts) / len(amounts)),
            min_booking=_money(min(amounts)),
            max_booking=_money(max(amounts)),
        )
        for label, amounts in sorted(groups.items())
    ]


# -------------------------
# TRAIN UTILIZATION
# -------------------------
def demand_level(passenger_count: int) -> str:
    if passenger_count == 0:
        return "No Bookings"
    if passenger_count < 10:
        return "Low"
    if passenger_count < 50:
        return "Medium"
    if passenger_count < 100:
        return "High"
    return "Very High"


def journey_type(duration: timedelta | None) -> str | None:
    if duration is None:
        return None
    if duration <= timedelta(hours=2):
        return "Short"
    if duration <= timedelta(hours=6):
        return "Medium"
    return "Long"


def train_utilization(db: Session, train_type: str | None = None) -> list[TrainUtilization]:
    q = (
        db.query(Train, Passenger.passenger_id, Booking.booking_no, Booking.total_amount)
        .outerjoin(Passenger, Passenger.train_id == Train.train_id)
        .outerjoin(Booking, Booking.passenger_id == Passenger.passenger_id)
    )
    if train_type:
        q = q.filter(Train.type == train_type)

    trains: dict[str, Train] = {}
    riders: dict[str, set] = defaultdict(set)
    booking_count: dict[str, int] = defaultdict(int)
    revenue: dict[str, Decimal] = defaultdict(Decimal)
    for t, passenger_id, booking_no, amount in q.all():
        trains[t.train_id] = t
        if passenger_id is not None:
            riders[t.train_id].add(passenger_id)
        if booking_no is not None:
            booking_count[t.train_id] += 1
            revenue[t.train_id] += Decimal(amount)

    out = []
    for train_id, t in trains.items():
        n_bookings = booking_count[train_id]
        total = revenue[train_id]
        out.append(TrainUtilization(
            train_id=train_id,
            name=t.name,
            type=t.type,
            first_station=t.first_station,
            last_station=t.last_station,
            travel_duration=t.travel_duration,
            passenger_count=len(riders[train_id]),
            booking_count=n_bookings,
            total_revenue=_money(total),
            avg_revenue=_money(total / n_bookings) if n_bookings else ZERO,
            demand_level=demand_level(len(riders[train_id])),
            journey_type=journey_type(t.travel_duration),
        ))
    out.sort(key=lambda r: (-r.total_revenue, r.train_id))
    return out


# -------------------------
# RANKING / PERCENTILES
# -------------------------
def ranking_report(db: Session, order_by: str = "total_amount", descending: bool = True) -> list[BookingRank]:
    if order_by not in RANK_KEYS:
        raise ValidationError(f"cannot rank by {order_by!r}; expected one of {', '.join(RANK_KEYS)}")
    col = RANK_KEYS[order_by]
    ordering = col.desc() if descending else col.asc()

    row_number = func.row_number().over(order_by=(ordering, Booking.booking_no.asc())).label("row_number")
    stmt = (
        select(
            Booking.booking_no,
            Booking.passenger_id,
            Passenger.first_name,
            Passenger.last_name,
            Booking.booking_date,
            Booking.total_amount,
            func.rank().over(order_by=ordering).label("rank"),
            func.dense_rank().over(order_by=ordering).label("dense_rank"),
            row_number,
        )
        .outerjoin(Passenger, Passenger.passenger_id == Booking.passenger_id)
        .order_by(row_number)
    )
    return [BookingRank(**row._mapping) for row in db.execute(stmt)]


def percentile_report(db: Session) -> list[BookingPercentile]:
    ordering = Booking.total_amount.asc()
    stmt = (
        select(
            Booking.booking_no,
            Booking.passenger_id,
            Booking.total_amount,
            func.ntile(4).over(order_by=ordering).label("quartile"),
            func.percent_rank().over(order_by=ordering).label("percent_rank"),
            func.cume_dist().over(order_by=ordering).label("cume_dist"),
        )
        .order_by(ordering, Booking.booking_no)
    )
    return [
        BookingPercentile(
            booking_no=r.booking_no,
            passenger_id=r.passenger_id,
            total_amount=r.total_amount,
            quartile=int(r.quartile),
            percent_rank=float(r.percent_rank),
            cume_dist=float(r.cume_dist),
        )
        for r in db.execute(stmt)
    ]


# -------------------------
# RFM SEGMENTATION
# -------------------------
def ntile(ordered_keys: list, buckets: int) -> dict:
    """Same bucketing as SQL NTILE: the first ``len % buckets`` buckets take one extra row."""
    size, extra = divmod(len(ordered_keys), buckets)
    scores = {}
    i = 0
    for bucket in range(1, buckets + 1):
        take = size + (1 if bucket <= extra else 0)
        for key in ordered_keys[i:i + take]:
            scores[key] = bucket
        i += take
    return scores


def rfm_segment(r: int, f: int, m: int) -> str:
    if r >= 4 and f >= 4 and m >= 4:
        return "Champions"
    if r >= 3 and f >= 3 and m >= 3:
        return "Loyal Customers"
    if r >= 4 and f >= 3:
        return "Potential Loyalists"
    if r >= 4 and f <= 2:
        return "New Customers"
    if r >= 3 and f <= 2 and m >= 3:
        return "Promising"
    if r <= 2 and f >= 3 and m >= 3:
        return "Need Attention"
    if r <= 2 and f >= 3 and m <= 2:
        return "About to Sleep"
    if r <= 2 and f <= 2 and m >= 3:
        return "At Risk"
    if r <= 2 and f <= 2 and m <= 2:
        return "Lost"
    return "Others"


def rfm_scores(db: Session, reference_date: date | None = None, min_bookings: int = 1,
               min_revenue: Decimal = Decimal("0")) -> list[RfmScore]:
    """Score each passenger 1..5 on recency, frequency and monetary value (5 is best)."""
    reference_date = reference_date or clock_today()
    if min_bookings < 1:
        raise ValidationError("min_bookings must be >= 1")

    rows = (
        db.query(Passenger.passenger_id, Passenger.first_name, Passenger.last_name,
                 Booking.booking_date, Booking.total_amount)
        .join(Booking, Booking.passenger_id == Passenger.passenger_id)
        .all()
    )
    metrics: dict[str, dict] = {}
    for passenger_id, first, last, b_date, amount in rows:
        booked_on = _booked_on(b_date)
        if booked_on > reference_date:
            continue
        m = metrics.setdefault(passenger_id, {
            "first_name": first, "last_name": last, "frequency": 0, "monetary": Decimal(0), "last": booked_on,
        })
        m["frequency"] += 1
        m["monetary"] += Decimal(amount)
        m["last"] = max(m["last"], booked_on)

    metrics = {
        pid: m for pid, m in metrics.items()
        if m["frequency"] >= min_bookings and m["monetary"] >= Decimal(str(min_revenue))
    }
    for m in metrics.values():
        m["recency_days"] = (reference_date - m["last"]).days

    # worst first so the best customers land in bucket 5
    pids = sorted(metrics)
    r_scores = ntile(sorted(pids, key=lambda p: -metrics[p]["recency_days"]), RFM_BUCKETS)
    f_scores = ntile(sorted(pids, key=lambda p: metrics[p]["frequency"]), RFM_BUCKETS)
    m_scores = ntile(sorted(pids, key=lambda p: metrics[p]["monetary"]), RFM_BUCKETS)

    out = [
        RfmScore(
            passenger_id=pid,
            first_name=m["first_name"],
            last_name=m["last_name"],
            recency_days=m["recency_days"],
            frequency=m["frequency"],
            monetary=_money(m["monetary"]),
            recency_score=r_scores[pid],
            frequency_score=f_scores[pid],
            monetary_score=m_scores[pid],
            segment=rfm_segment(r_scores[pid], f_scores[pid], m_scores[pid]),
        )
        for pid, m in metrics.items()
    ]
    out.sort(key=lambda s: (-s.monetary, s.passenger_id))
    return out


def rfm_segment_summary(scores: list[RfmScore]) -> list[RfmSegmentSummary]:
    groups: dict[str, list[RfmScore]] = defaultdict(list)
    for s in scores:
        groups[s.segment].append(s)
    out = []
    for segment, members in groups.items():
        total = sum((s.monetary for s in members), Decimal(0))
        out.append(RfmSegmentSummary(
            segment=segment,
            customer_count=len(members),
            avg_revenue=_money(total / len(members)),
            avg_bookings=sum(s.frequency for s in members) / len(members),
            avg_days_since_last_booking=sum(s.recency_days for s in members) / len(members),
            segment_total_revenue=_money(total),
        ))
    out.sort(key=lambda r: (-r.segment_total_revenue, r.segment))
    return out


# -------------------------
# CUSTOMER LIFETIME VALUE / DASHBOARD
# -------------------------
def customer_lifetime_value(db: Session, passenger_id: str) -> CustomerLifetimeValue:
    rows = db.query(Booking.booking_date, Booking.total_amount).filter(Booking.passenger_id == passenger_id).all()
    if not rows:
        return CustomerLifetimeValue(passenger_id=passenger_id)
    dates = [_booked_on(d) for d, _ in rows]
    total = sum((Decimal(a) for _, a in rows), Decimal(0))
    return CustomerLifetimeValue(
        passenger_id=passenger_id,
        total_bookings=len(rows),
        total_revenue=_money(total),
        avg_booking_value=_money(total / len(rows)),
        first_booking_date=min(dates),
        last_booking_date=max(dates),
        customer_lifespan_days=(max(dates) - min(dates)).days,
    )


def _one_year_before(d: date) -> date:
    try:
        return d.replace(year=d.year - 1)
    except ValueError:  # 29 February
        return d.replace(year=d.year - 1, day=28)


def dashboard(db: Session, today: date | None = None, top: int = 10) -> Dashboard:
    today = today or clock_today()

    bookings_total = db.query(func.count(Booking.booking_no)).scalar() or 0
    amounts = [Decimal(a) for (a,) in db.query(Booking.total_amount).all()]
    revenue_total = sum(amounts, Decimal(0))
    passengers_total = db.query(func.count(Passenger.passenger_id)).scalar() or 0
    trains_total = db.query(func.count(Train.train_id)).scalar() or 0

    metrics = [
        DashboardMetric(metric="Total Bookings", value=bookings_total, type="count"),
        DashboardMetric(metric="Total Revenue", value=_money(revenue_total), type="currency"),
        DashboardMetric(metric="Average Booking Value",
                        value=_money(revenue_total / len(amounts)) if amounts else ZERO, type="currency"),
        DashboardMetric(metric="Total Passengers", value=passengers_total, type="count"),
        DashboardMetric(metric="Active Trains", value=trains_total, type="count"),
    ]
    months = [
        MonthlyRevenuePoint(month=p.period, revenue=p.total_revenue, bookings=p.bookings_count)
        for p in revenue_trend(db, "month", _one_year_before(today), today)
    ]
    top_trains = [
        TopTrain(train_id=t.train_id, name=t.name, type=t.type,
                 passenger_count=t.passenger_count, total_revenue=t.total_revenue)
        for t in train_utilization(db)[:top]
    ]
    return Dashboard(metrics=metrics, revenue_by_month=months, top_trains=top_trains)
