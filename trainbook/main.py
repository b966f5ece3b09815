"""Command line entry point: migrations, seeding, writes and JSON reports."""
import argparse
import json
import logging
import os
import sys
from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ValidationError as SchemaError

from trainbook.core.config import settings
from trainbook.core.errors import TrainBookError
from trainbook.core.log import configure_logging
from trainbook.db.session import SessionLocal
from trainbook.schemas.booking import BookingIn, BookingOut
from trainbook.schemas.passenger import PassengerIn, PassengerOut
from trainbook.schemas.search import PassengerSearch
from trainbook.schemas.train import TrainIn, TrainOut
from trainbook.services import report_service
from trainbook.services.audit_service import cleanup_audit_logs
from trainbook.services.booking_service import create_booking
from trainbook.services.integrity_service import check_integrity
from trainbook.services.maintenance_service import create_backup_tables, empty_data
from trainbook.services.passenger_service import register_passenger
from trainbook.services.search_service import search_passengers
from trainbook.services.train_service import create_train

logger = logging.getLogger("trainbook")


def _emit(result) -> None:
    if isinstance(result, BaseModel):
        payload = result.model_dump(mode="json")
    elif isinstance(result, list):
        payload = [r.model_dump(mode="json") if isinstance(r, BaseModel) else r for r in result]
    else:
        payload = result
    print(json.dumps(payload, indent=2, ensure_ascii=False))


def _date(value: str) -> date:
    return date.fromisoformat(value)


def _datetime(value: str) -> datetime:
    return datetime.fromisoformat(value)


def cmd_init_db(args, db):
    from alembic.config import Config
    from alembic import command

    root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    alembic_cfg = Config(os.path.join(root, "alembic.ini"))
    alembic_cfg.set_main_option("script_location", os.path.join(root, "alembic"))
    alembic_cfg.set_main_option("sqlalchemy.url", settings.DATABASE_URL)
    command.upgrade(alembic_cfg, "head")
    return {"ok": True, "database": settings.DATABASE_URL.split("@")[-1]}


def cmd_seed(args, db):
    from trainbook.seed import run as run_seed
    run_seed(db)
    return {"ok": True}


def cmd_add_train(args, db):
    t = create_train(db, TrainIn(
        train_id=args.train_id, name=args.name, type=args.type,
        first_station=args.first_station, last_station=args.last_station,
        departure_time=args.departure, arrival_time=args.arrival,
    ))
    return TrainOut.model_validate(t)


def cmd_add_passenger(args, db):
    p = register_passenger(db, PassengerIn(
        passenger_id=args.passenger_id, first_name=args.first_name, last_name=args.last_name,
        date_of_birth=args.dob, train_id=args.train_id,
    ))
    return PassengerOut.model_validate(p)


def cmd_book(args, db):
    body = BookingIn(passenger_id=args.passenger_id, total_amount=args.amount, booking_date=args.date)
    b = create_booking(db, body.passenger_id, body.total_amount, booking_date=body.booking_date)
    return BookingOut.model_validate(b)


def cmd_report(args, db):
    name = args.report
    if name == "age-brackets":
        return report_service.age_bracket_revenue(db)
    if name == "revenue":
        return report_service.revenue_trend(db, args.granularity, args.start, args.end)
    if name == "trains":
        return report_service.train_utilization(db, train_type=args.type)
    if name == "ranking":
        return report_service.ranking_report(db, order_by=args.by, descending=not args.asc)
    if name == "percentiles":
        return report_service.percentile_report(db)
    if name == "rfm":
        scores = report_service.rfm_scores(db, reference_date=args.reference_date)
        return report_service.rfm_segment_summary(scores) if args.summary else scores
    if name == "clv":
        return report_service.customer_lifetime_value(db, args.passenger_id)
    return report_service.dashboard(db)


def cmd_integrity(args, db):
    return check_integrity(db)


def cmd_search(args, db):
    return search_passengers(db, PassengerSearch(
        first_name=args.first_name, last_name=args.last_name,
        min_age=args.min_age, max_age=args.max_age, train_type=args.train_type,
    ))


def cmd_backup(args, db):
    return {"tables": create_backup_tables(db)}


def cmd_empty(args, db):
    if not args.yes:
        raise SystemExit("refusing to empty the stores without --yes")
    return empty_data(db)


def cmd_cleanup_audit(args, db):
    return {"deleted": cleanup_audit_logs(db, retention_days=args.days)}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="trainbook", description=f"{settings.APP_NAME} store and reports")
    parser.add_argument("--log-level", default=None, help="overrides LOG_LEVEL")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init-db", help="run alembic migrations to head").set_defaults(func=cmd_init_db)
    sub.add_parser("seed", help="insert sample trains, passengers and bookings").set_defaults(func=cmd_seed)

    p = sub.add_parser("add-train")
    p.add_argument("train_id")
    p.add_argument("--name")
    p.add_argument("--type")
    p.add_argument("--first-station")
    p.add_argument("--last-station")
    p.add_argument("--departure", type=_datetime)
    p.add_argument("--arrival", type=_datetime)
    p.set_defaults(func=cmd_add_train)

    p = sub.add_parser("add-passenger")
    p.add_argument("passenger_id")
    p.add_argument("--first-name")
    p.add_argument("--last-name")
    p.add_argument("--dob", type=_date)
    p.add_argument("--train-id")
    p.set_defaults(func=cmd_add_passenger)

    p = sub.add_parser("book")
    p.add_argument("passenger_id")
    p.add_argument("amount", type=Decimal)
    p.add_argument("--date", type=_datetime, default=None)
    p.set_defaults(func=cmd_book)

    p = sub.add_parser("report")
    p.add_argument("report", choices=["age-brackets", "revenue", "trains", "ranking", "percentiles", "rfm", "clv", "dashboard"])
    p.add_argument("--granularity", default="month")
    p.add_argument("--start", type=_date, default=date(2000, 1, 1))
    p.add_argument("--end", type=_date, default=date.today())
    p.add_argument("--type", default=None)
    p.add_argument("--by", default="total_amount")
    p.add_argument("--asc", action="store_true")
    p.add_argument("--reference-date", type=_date, default=None)
    p.add_argument("--summary", action="store_true")
    p.add_argument("--passenger-id", default=None)
    p.set_defaults(func=cmd_report)

    sub.add_parser("integrity").set_defaults(func=cmd_integrity)

    p = sub.add_parser("search")
    p.add_argument("--first-name")
    p.add_argument("--last-name")
    p.add_argument("--min-age", type=int)
    p.add_argument("--max-age", type=int)
    p.add_argument("--train-type")
    p.set_defaults(func=cmd_search)

    sub.add_parser("backup").set_defaults(func=cmd_backup)

    p = sub.add_parser("empty")
    p.add_argument("--yes", action="store_true")
    p.set_defaults(func=cmd_empty)

    p = sub.add_parser("cleanup-audit")
    p.add_argument("--days", type=int, default=settings.AUDIT_RETENTION_DAYS)
    p.set_defaults(func=cmd_cleanup_audit)
    return parser


def main(argv=None, session_factory=SessionLocal) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command == "report" and args.report == "clv" and not args.passenger_id:
        parser.error("report clv requires --passenger-id")
    configure_logging(args.log_level)

    db = session_factory()
    try:
        _emit(args.func(args, db))
    except (TrainBookError, SchemaError) as e:
        logger.error("%s: %s", type(e).__name__, e)
        print(f"error: {e}", file=sys.stderr)
        return 1
    finally:
        db.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
