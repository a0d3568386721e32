# dealership/services/expense_service.py
"""Operating expenses, optionally tied to a vehicle and a payee."""

from datetime import datetime

from sqlalchemy.orm import Session

from dealership.models.expense import Expense
from dealership.models.person import Person
from dealership.models.vehicle import Vehicle
from dealership.schemas.expense import EXPENSE_SORT_FIELDS, ExpenseCreate, ExpenseSearchParams, ExpenseUpdate
from dealership.services import crud
from dealership.services.activity_service import build_diff, record_activity, snapshot
from dealership.services.auth_service import Principal
from dealership.utils.logger import get_logger

logger = get_logger(__name__)


def _check_references(db: Session, vehicle_id, payee_id):
    if vehicle_id is not None:
        crud.get_active(db, Vehicle, vehicle_id)
    if payee_id is not None:
        crud.get_active(db, Person, payee_id, label="Payee")


def list_expenses(db: Session, params: ExpenseSearchParams):
    q = crud.active(db.query(Expense), Expense)

    if params.vehicle_id is not None:
        q = q.filter(Expense.vehicle_id == params.vehicle_id)
    if params.category:
        q = q.filter(Expense.category == params.category)
    if params.payee_id is not None:
        q = q.filter(Expense.payee_id == params.payee_id)
    if params.start_date:
        q = q.filter(Expense.date >= params.start_date)
    if params.end_date:
        q = q.filter(Expense.date <= params.end_date)
    if params.q:
        q = q.filter(crud.ilike(Expense.description, params.q.strip()))

    q = crud.apply_sort(q, Expense, params.sort_by, params.sort_order, EXPENSE_SORT_FIELDS,
                        default=[Expense.date.desc(), Expense.created_at.desc()])
    return crud.paginate(q, params.page, params.limit)


def get_expense(db: Session, expense_id: int) -> Expense:
    return crud.get_active(db, Expense, expense_id)


def create_expense(db: Session, body: ExpenseCreate, principal: Principal) -> Expense:
    _check_references(db, body.vehicle_id, body.payee_id)
    data = body.model_dump(mode="json")
    data["date"] = body.date

    expense = Expense(**data)
    crud.stamp_created(expense, principal.id)
    db.add(expense)
    db.flush()
    record_activity(db, principal, "CREATE", "Expense", expense.id, snapshot(expense, data.keys()))
    db.commit()
    db.refresh(expense)
    logger.info(f"[EXPENSE] {expense.category} {expense.amount} vehicle={expense.vehicle_id} (id={expense.id})")
    return expense


def update_expense(db: Session, expense_id: int, body, principal: Principal) -> Expense:
    """
    PATCH passes an ExpenseUpdate (only the fields sent are applied);
    PUT passes a full ExpenseCreate and every field is replaced.
    """
    expense = get_expense(db, expense_id)
    if isinstance(body, ExpenseUpdate):
        changes = body.model_dump(exclude_unset=True, mode="json")
        for required in ("category", "description", "amount", "date", "attachments"):
            if required in changes and changes[required] is None:
                changes.pop(required)
    else:
        changes = body.model_dump(mode="json")
    if "date" in changes:
        changes["date"] = body.date

    _check_references(db, changes.get("vehicle_id"), changes.get("payee_id"))

    diff = crud.apply_changes(expense, changes)
    crud.stamp_updated(expense, principal.id)
    record_activity(db, principal, "UPDATE", "Expense", expense.id, build_diff(diff))
    db.commit()
    db.refresh(expense)
    return expense


def delete_expense(db: Session, expense_id: int, principal: Principal):
    expense = get_expense(db, expense_id)
    expense.deleted_at = datetime.utcnow()
    crud.stamp_updated(expense, principal.id)
    record_activity(db, principal, "DELETE", "Expense", expense.id)
    db.commit()
    logger.info(f"[EXPENSE] Soft-deleted #{expense.id}")
