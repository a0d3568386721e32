# dealership/services/vehicle_service.py
"""
Vehicle inventory: list / get / create / update / soft-delete.
Used by the vehicles router, and by transaction_service for status changes.
"""

import re
from datetime import datetime

from sqlalchemy import String, cast, or_
from sqlalchemy.orm import Session

from dealership.exceptions import BusinessRuleError, ConflictError
from dealership.models.vehicle import Vehicle
from dealership.schemas.common import OWNERSHIP_STATUSES
from dealership.schemas.vehicle import VEHICLE_SORT_FIELDS, VehicleCreate, VehicleSearchParams, VehicleUpdate
from dealership.services import crud
from dealership.services.activity_service import build_diff, record_activity, snapshot
from dealership.services.auth_service import Principal
from dealership.utils.logger import get_logger

logger = get_logger(__name__)

UNIQUE_FIELDS = {"registration_number": "registration number", "vin": "VIN"}

# A query made only of letters, digits and dashes with at least one digit is treated as a plate
PLATE_PATTERN = re.compile(r"^(?=.*\d)[A-Z0-9-]+$")


def normalize_registration(value: str) -> str:
    return value.strip().upper()


def _normalize(data: dict) -> dict:
    if data.get("registration_number"):
        data["registration_number"] = normalize_registration(data["registration_number"])
    if "vin" in data:
        data["vin"] = data["vin"].strip().upper() if data["vin"] and data["vin"].strip() else None
    return data


def _parse_statuses(raw: str) -> list:
    statuses = [s.strip() for s in raw.split(",") if s.strip()]
    invalid = [s for s in statuses if s not in OWNERSHIP_STATUSES]
    if invalid:
        raise BusinessRuleError("Invalid search parameters",
                                details={"status": f"Unknown status: {', '.join(invalid)}"})
    return statuses


def list_vehicles(db: Session, params: VehicleSearchParams):
    q = crud.active(db.query(Vehicle), Vehicle)

    if params.q:
        text = params.q.strip()
        if PLATE_PATTERN.match(text.upper()):
            q = q.filter(crud.ilike(Vehicle.registration_number, text))
        else:
            q = q.filter(or_(
                crud.ilike(Vehicle.make, text),
                crud.ilike(Vehicle.vehicle_model, text),
                crud.ilike(cast(Vehicle.tags, String), text),
            ))

    if params.make:
        q = q.filter(crud.ilike(Vehicle.make, params.make))
    if params.model:
        q = q.filter(crud.ilike(Vehicle.vehicle_model, params.model))
    if params.year:
        q = q.filter(Vehicle.year == params.year)
    if params.status:
        q = q.filter(Vehicle.ownership_status.in_(_parse_statuses(params.status)))
    if params.min_year:
        q = q.filter(Vehicle.year >= params.min_year)
    if params.max_year:
        q = q.filter(Vehicle.year <= params.max_year)

    q = crud.apply_sort(q, Vehicle, params.sort_by, params.sort_order, VEHICLE_SORT_FIELDS,
                        default=[Vehicle.updated_at.desc()])
    return crud.paginate(q, params.page, params.limit)


def get_vehicle(db: Session, vehicle_id: int) -> Vehicle:
    return crud.get_active(db, Vehicle, vehicle_id)


def create_vehicle(db: Session, body: VehicleCreate, principal: Principal):
    """
    Returns (vehicle, reactivated).
    A registration number held by an active Sold vehicle brings that vehicle
    back into stock with the submitted details instead of creating a new row.
    """
    data = _normalize(body.model_dump(mode="json"))

    existing = (
        crud.active(db.query(Vehicle), Vehicle)
        .filter(Vehicle.registration_number == data["registration_number"])
        .first()
    )
    if existing is not None:
        if existing.ownership_status != "Sold":
            raise ConflictError(
                "Vehicle with this registration number already exists and is currently active",
                details={"current_status": existing.ownership_status},
            )
        data["ownership_status"] = "InStock"
        with crud.unique_guard(db, UNIQUE_FIELDS, "Vehicle"):
            diff = crud.apply_changes(existing, data)
            crud.stamp_updated(existing, principal.id)
            db.flush()
            record_activity(db, principal, "RESTORE", "Vehicle", existing.id, build_diff(diff))
        db.refresh(existing)
        logger.info(f"[VEHICLE] Reactivated {existing.registration_number} (id={existing.id})")
        return existing, True

    vehicle = Vehicle(**data)
    crud.stamp_created(vehicle, principal.id)
    with crud.unique_guard(db, UNIQUE_FIELDS, "Vehicle"):
        db.add(vehicle)
        db.flush()
        record_activity(db, principal, "CREATE", "Vehicle", vehicle.id, snapshot(vehicle, data.keys()))
    db.refresh(vehicle)
    logger.info(f"[VEHICLE] Created {vehicle.registration_number} (id={vehicle.id})")
    return vehicle, False


def update_vehicle(db: Session, vehicle_id: int, body: VehicleUpdate, principal: Principal) -> Vehicle:
    vehicle = get_vehicle(db, vehicle_id)
    changes = _normalize(body.model_dump(exclude_unset=True, mode="json"))
    for required in ("registration_number", "make", "vehicle_model", "year", "ownership_status"):
        if required in changes and changes[required] is None:
            changes.pop(required)

    with crud.unique_guard(db, UNIQUE_FIELDS, "Vehicle"):
        diff = crud.apply_changes(vehicle, changes)
        crud.stamp_updated(vehicle, principal.id)
        db.flush()
        record_activity(db, principal, "UPDATE", "Vehicle", vehicle.id, build_diff(diff))
    db.refresh(vehicle)
    return vehicle


def set_ownership_status(vehicle: Vehicle, status: str, principal: Principal) -> dict:
    """Change status in the caller's session; returns the diff (empty if unchanged)."""
    diff = crud.apply_changes(vehicle, {"ownership_status": status})
    if diff:
        crud.stamp_updated(vehicle, principal.id)
    return diff


def delete_vehicle(db: Session, vehicle_id: int, principal: Principal):
    vehicle = get_vehicle(db, vehicle_id)
    vehicle.deleted_at = datetime.utcnow()
    crud.stamp_updated(vehicle, principal.id)
    record_activity(db, principal, "DELETE", "Vehicle", vehicle.id)
    db.commit()
    logger.info(f"[VEHICLE] Soft-deleted {vehicle.registration_number} (id={vehicle.id})")
