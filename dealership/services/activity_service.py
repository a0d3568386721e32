# dealership/services/activity_service.py
"""
Audit trail writer. record_activity() only adds the row to the session;
the caller commits it together with the change it describes.
"""

from datetime import date, datetime

from sqlalchemy.orm import Session

from dealership.models.activity_log import ActivityLog
from dealership.services.auth_service import Principal
from dealership.services.crud import paginate

SKIP_FIELDS = {"created_at", "updated_at", "created_by", "updated_by"}


def _jsonable(value):
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, list):
        return [_jsonable(v) for v in value]
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    return value


def build_diff(changes: dict) -> dict:
    """{field: [old, new]} with timestamps made JSON-safe and audit stamps dropped."""
    return {
        field: [_jsonable(old), _jsonable(new)]
        for field, (old, new) in changes.items()
        if field not in SKIP_FIELDS
    }


def snapshot(record, fields) -> dict:
    """Creation diff: every listed field as [None, value]."""
    return {f: [None, _jsonable(getattr(record, f))] for f in fields if f not in SKIP_FIELDS}


def record_activity(db: Session, principal: Principal, action: str, entity_type: str,
                    entity_id: int, diff: dict = None) -> ActivityLog:
    entry = ActivityLog(
        actor_id=principal.id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        diff=diff or None,
        ip=principal.ip,
        user_agent=(principal.user_agent or "")[:500] or None,
        at=datetime.utcnow(),
    )
    db.add(entry)
    return entry


def list_activity(db: Session, params):
    q = db.query(ActivityLog)
    if params.entity_type:
        q = q.filter(ActivityLog.entity_type == params.entity_type)
    if params.entity_id is not None:
        q = q.filter(ActivityLog.entity_id == params.entity_id)
    if params.actor_id is not None:
        q = q.filter(ActivityLog.actor_id == params.actor_id)
    if params.action:
        q = q.filter(ActivityLog.action == params.action)
    q = q.order_by(ActivityLog.at.desc(), ActivityLog.id.desc())
    return paginate(q, params.page, params.limit)
