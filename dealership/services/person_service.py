# dealership/services/person_service.py
"""Counterparty records: customers, dealers, companies."""

from datetime import datetime

from sqlalchemy import String, cast, or_
from sqlalchemy.orm import Session

from dealership.exceptions import BusinessRuleError
from dealership.models.person import Person
from dealership.schemas.person import PERSON_SORT_FIELDS, PersonCreate, PersonSearchParams, PersonUpdate
from dealership.services import crud
from dealership.services.activity_service import build_diff, record_activity, snapshot
from dealership.services.auth_service import Principal
from dealership.utils.logger import get_logger

logger = get_logger(__name__)

UNIQUE_FIELDS = {
    "nic_or_passport": "NIC/passport number",
    "company_reg_no": "company registration number",
    "email": "email",
}


def _blank_to_none(data: dict) -> dict:
    """Empty identifiers become NULL so they never collide on the unique indexes."""
    for key in UNIQUE_FIELDS:
        if key in data and isinstance(data[key], str):
            data[key] = data[key].strip() or None
    return data


def list_persons(db: Session, params: PersonSearchParams):
    q = crud.active(db.query(Person), Person)

    if params.q:
        text = params.q.strip()
        q = q.filter(or_(
            crud.ilike(Person.full_name, text),
            crud.ilike(Person.business_name, text),
            crud.ilike(cast(Person.phone, String), text),
            crud.ilike(Person.email, text),
            crud.ilike(Person.nic_or_passport, text),
            crud.ilike(Person.company_reg_no, text),
        ))
    if params.type:
        q = q.filter(Person.type == params.type)
    if params.is_blacklisted is not None:
        q = q.filter(Person.is_blacklisted.is_(params.is_blacklisted))

    q = crud.apply_sort(q, Person, params.sort_by, params.sort_order, PERSON_SORT_FIELDS,
                        default=[Person.updated_at.desc()])
    return crud.paginate(q, params.page, params.limit)


def get_person(db: Session, person_id: int) -> Person:
    return crud.get_active(db, Person, person_id)


def create_person(db: Session, body: PersonCreate, principal: Principal) -> Person:
    data = _blank_to_none(body.model_dump(mode="json"))
    person = Person(**data)
    crud.stamp_created(person, principal.id)

    with crud.unique_guard(db, UNIQUE_FIELDS, "Person"):
        db.add(person)
        db.flush()
        record_activity(db, principal, "CREATE", "Person", person.id, snapshot(person, data.keys()))
    db.refresh(person)
    logger.info(f"[PERSON] Created {person.type} '{person.display_name}' (id={person.id})")
    return person


def update_person(db: Session, person_id: int, body: PersonUpdate, principal: Principal) -> Person:
    person = get_person(db, person_id)
    changes = _blank_to_none(body.model_dump(exclude_unset=True, mode="json"))
    for required in ("type", "phone", "is_blacklisted"):
        if required in changes and changes[required] is None:
            changes.pop(required)

    person_type = changes.get("type", person.type)
    full_name = changes.get("full_name", person.full_name)
    business_name = changes.get("business_name", person.business_name)
    if person_type == "Individual" and not full_name:
        raise BusinessRuleError("Full name is required for individuals")
    if person_type != "Individual" and not business_name:
        raise BusinessRuleError("Business name is required for dealers and companies")

    with crud.unique_guard(db, UNIQUE_FIELDS, "Person"):
        diff = crud.apply_changes(person, changes)
        crud.stamp_updated(person, principal.id)
        db.flush()
        record_activity(db, principal, "UPDATE", "Person", person.id, build_diff(diff))
    db.refresh(person)
    return person


def delete_person(db: Session, person_id: int, principal: Principal):
    person = get_person(db, person_id)
    person.deleted_at = datetime.utcnow()
    crud.stamp_updated(person, principal.id)
    record_activity(db, principal, "DELETE", "Person", person.id)
    db.commit()
    logger.info(f"[PERSON] Soft-deleted '{person.display_name}' (id={person.id})")
