import uuid, json
import logging
from datetime import datetime, timedelta
from sqlalchemy.orm import Session
from sqlalchemy import delete
from trainbook.core.clock import utcnow
from trainbook.models.audit_log import AuditLog
from trainbook.models.booking import Booking

logger = logging.getLogger(__name__)

def booking_snapshot(b: Booking) -> dict:
    return {
        "passenger_id": b.passenger_id,
        "booking_date": b.booking_date.isoformat() if b.booking_date else None,
        "total_amount": str(b.total_amount) if b.total_amount is not None else None,
    }

def log_audit(db: Session, entity_type: str, entity_id: str, action: str,
              old: dict | None = None, new: dict | None = None, changed_by: str = "system"):
    db.add(AuditLog(
        id=str(uuid.uuid4()),
        entity_type=entity_type,
        entity_id=str(entity_id),
        action=action,
        old_values_json=json.dumps(old, ensure_ascii=False) if old is not None else None,
        new_values_json=json.dumps(new, ensure_ascii=False) if new is not None else None,
        changed_by=changed_by,
    ))

def list_audit(db: Session, entity_type: str, entity_id: str) -> list[AuditLog]:
    return (
        db.query(AuditLog)
        .filter(AuditLog.entity_type == entity_type, AuditLog.entity_id == str(entity_id))
        .order_by(AuditLog.created_at.asc())
        .all()
    )

def cleanup_audit_logs(db: Session, retention_days: int = 90, now: datetime | None = None) -> int:
    cutoff = (now or utcnow()) - timedelta(days=retention_days)
    result = db.execute(delete(AuditLog).where(AuditLog.created_at < cutoff))
    db.commit()
    logger.info("deleted %s audit log rows older than %s days", result.rowcount, retention_days)
    return int(result.rowcount or 0)
