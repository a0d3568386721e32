# dealership/services/transaction_service.py
"""
Buy / sell transactions.

Creating a transaction also moves the vehicle's ownership_status
(IN → InStock, OUT → Sold) and appends the activity row. All three
writes go out in a single commit; any failure rolls back all of them.
"""

from datetime import datetime

from sqlalchemy.orm import Session

from dealership.exceptions import BusinessRuleError
from dealership.models.person import Person
from dealership.models.transaction import Transaction
from dealership.models.vehicle import Vehicle
from dealership.schemas.transaction import (
    TRANSACTION_SORT_FIELDS, TransactionCreate, TransactionSearchParams, TransactionUpdate,
)
from dealership.services import crud
from dealership.services.activity_service import build_diff, record_activity, snapshot
from dealership.services.auth_service import Principal
from dealership.services.profit_calculator import latest_ownership_status
from dealership.services.vehicle_service import set_ownership_status
from dealership.utils.logger import get_logger

logger = get_logger(__name__)

UNIQUE_FIELDS = {"previous_transaction_id": "originating purchase"}
PRICE_FIELDS = ("base_price", "taxes", "fees", "discount")
STATUS_AFTER = {"IN": "InStock", "OUT": "Sold"}


def compute_total(base_price: float, taxes: list, fees: list, discount: float) -> float:
    """base + Σtaxes + Σfees − discount. Line items may be dicts or pydantic models."""
    def _sum(items):
        return sum(i["amount"] if isinstance(i, dict) else i.amount for i in items or [])

    total = base_price + _sum(taxes) + _sum(fees) - (discount or 0)
    if total < 0:
        raise BusinessRuleError("Total price cannot be negative",
                                details={"total_price": total})
    return total


def list_transactions(db: Session, params: TransactionSearchParams):
    q = crud.active(db.query(Transaction), Transaction)

    if params.vehicle_id is not None:
        q = q.filter(Transaction.vehicle_id == params.vehicle_id)
    if params.direction:
        q = q.filter(Transaction.direction == params.direction)
    if params.counterparty_id is not None:
        q = q.filter(Transaction.counterparty_id == params.counterparty_id)
    if params.start_date:
        q = q.filter(Transaction.date >= params.start_date)
    if params.end_date:
        q = q.filter(Transaction.date <= params.end_date)
    if params.q:
        text = params.q.strip()
        q = q.filter(crud.ilike(Transaction.notes, text) | crud.ilike(Transaction.location, text))

    q = crud.apply_sort(q, Transaction, params.sort_by, params.sort_order, TRANSACTION_SORT_FIELDS,
                        default=[Transaction.created_at.desc(), Transaction.date.desc()])
    items, pagination = crud.paginate(q, params.page, params.limit)
    pagination["pages"] = pagination["total_pages"]
    return items, pagination


def get_transaction(db: Session, transaction_id: int) -> Transaction:
    return crud.get_active(db, Transaction, transaction_id)


def vehicle_transactions(db: Session, vehicle_id: int) -> list:
    return (
        crud.active(db.query(Transaction), Transaction)
        .filter(Transaction.vehicle_id == vehicle_id)
        .order_by(Transaction.date.asc(), Transaction.id.asc())
        .all()
    )


def _unlinked_purchase(db: Session, vehicle_id: int):
    """Latest active IN of the vehicle, if no active OUT points at it yet."""
    last_in = (
        crud.active(db.query(Transaction), Transaction)
        .filter(Transaction.vehicle_id == vehicle_id, Transaction.direction == "IN")
        .order_by(Transaction.date.desc(), Transaction.id.desc())
        .first()
    )
    if last_in is None:
        return None
    already_sold = (
        crud.active(db.query(Transaction), Transaction)
        .filter(Transaction.previous_transaction_id == last_in.id)
        .first()
    )
    return None if already_sold else last_in


def create_transaction(db: Session, body: TransactionCreate, principal: Principal) -> Transaction:
    vehicle = crud.get_active(db, Vehicle, body.vehicle_id)
    crud.get_active(db, Person, body.counterparty_id, label="Counterparty")

    if body.direction == "OUT" and vehicle.ownership_status == "NotOwned":
        raise BusinessRuleError("Cannot sell a vehicle that is not owned")

    data = body.model_dump(mode="json")
    data["date"] = body.date
    data["total_price"] = compute_total(body.base_price, body.taxes, body.fees, body.discount)

    if body.direction == "OUT":
        purchase = _unlinked_purchase(db, vehicle.id)
        data["previous_transaction_id"] = purchase.id if purchase else None

    transaction = Transaction(**data)
    crud.stamp_created(transaction, principal.id)

    with crud.unique_guard(db, UNIQUE_FIELDS, "Transaction"):
        db.add(transaction)
        db.flush()
        status_diff = set_ownership_status(vehicle, STATUS_AFTER[body.direction], principal)
        diff = snapshot(transaction, list(data.keys()))
        diff.update(_vehicle_status_diff(status_diff))
        record_activity(db, principal, "CREATE", "Transaction", transaction.id, diff)

    db.refresh(transaction)
    logger.info(f"[TRANSACTION] {transaction.direction} #{transaction.id} vehicle={vehicle.id} "
                f"total={transaction.total_price} → {vehicle.ownership_status}")
    return transaction


def _vehicle_status_diff(status_diff: dict) -> dict:
    if "ownership_status" not in status_diff:
        return {}
    return {"vehicle_ownership_status": status_diff["ownership_status"]}


def _rederive_vehicle_status(db: Session, vehicle_id: int, principal: Principal) -> dict:
    """Reset the vehicle status from its latest remaining transaction. Call after flushing."""
    vehicle = db.query(Vehicle).filter(Vehicle.id == vehicle_id).first()
    if vehicle is None or vehicle.deleted_at is not None:
        return {}
    status = latest_ownership_status(vehicle_transactions(db, vehicle_id))
    return _vehicle_status_diff(set_ownership_status(vehicle, status, principal))


def update_transaction(db: Session, transaction_id: int, body: TransactionUpdate,
                       principal: Principal) -> Transaction:
    transaction = get_transaction(db, transaction_id)
    changes = body.model_dump(exclude_unset=True, mode="json")
    for required in ("counterparty_id", "date", "base_price", "taxes", "fees", "discount",
                     "payments", "documents"):
        if required in changes and changes[required] is None:
            changes.pop(required)
    if "date" in changes:
        changes["date"] = body.date

    if "counterparty_id" in changes:
        crud.get_active(db, Person, changes["counterparty_id"], label="Counterparty")

    if any(f in changes for f in PRICE_FIELDS):
        changes["total_price"] = compute_total(
            changes.get("base_price", transaction.base_price),
            changes.get("taxes", transaction.taxes),
            changes.get("fees", transaction.fees),
            changes.get("discount", transaction.discount),
        )

    with crud.unique_guard(db, UNIQUE_FIELDS, "Transaction"):
        diff = crud.apply_changes(transaction, changes)
        crud.stamp_updated(transaction, principal.id)
        db.flush()
        diff = build_diff(diff)
        if "date" in diff:
            diff.update(_rederive_vehicle_status(db, transaction.vehicle_id, principal))
        record_activity(db, principal, "UPDATE", "Transaction", transaction.id, diff)

    db.refresh(transaction)
    return transaction


def delete_transaction(db: Session, transaction_id: int, principal: Principal):
    transaction = get_transaction(db, transaction_id)
    transaction.deleted_at = datetime.utcnow()
    crud.stamp_updated(transaction, principal.id)
    db.flush()
    diff = _rederive_vehicle_status(db, transaction.vehicle_id, principal)
    record_activity(db, principal, "DELETE", "Transaction", transaction.id, diff)
    db.commit()
    logger.info(f"[TRANSACTION] Soft-deleted #{transaction.id} vehicle={transaction.vehicle_id}")
