# dealership/routers/expenses.py
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from dealership.database import get_db
from dealership.schemas.expense import ExpenseCreate, ExpenseOut, ExpenseSearchParams, ExpenseUpdate
from dealership.services import expense_service
from dealership.services.auth_service import DELETE, READ, WRITE, Principal, require_permission

router = APIRouter()


@router.get("/expenses", summary="List expenses")
def list_expenses(
    params: Annotated[ExpenseSearchParams, Query()],
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_permission(READ)),
):
    items, pagination = expense_service.list_expenses(db, params)
    return {"data": [ExpenseOut.model_validate(e) for e in items], "pagination": pagination}


@router.post("/expenses", status_code=201, summary="Log an expense")
def create_expense(
    body: ExpenseCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_permission(WRITE)),
):
    expense = expense_service.create_expense(db, body, principal)
    return {"data": ExpenseOut.model_validate(expense), "message": "Expense created successfully"}


@router.get("/expenses/{expense_id}", summary="Get one expense")
def get_expense(
    expense_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_permission(READ)),
):
    return {"data": ExpenseOut.model_validate(expense_service.get_expense(db, expense_id))}


@router.patch("/expenses/{expense_id}", summary="Update some expense fields")
def patch_expense(
    expense_id: int,
    body: ExpenseUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_permission(WRITE)),
):
    expense = expense_service.update_expense(db, expense_id, body, principal)
    return {"data": ExpenseOut.model_validate(expense), "message": "Expense updated successfully"}


@router.put("/expenses/{expense_id}", summary="Replace an expense")
def replace_expense(
    expense_id: int,
    body: ExpenseCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_permission(WRITE)),
):
    expense = expense_service.update_expense(db, expense_id, body, principal)
    return {"data": ExpenseOut.model_validate(expense), "message": "Expense updated successfully"}


@router.delete("/expenses/{expense_id}", summary="Soft-delete an expense")
def delete_expense(
    expense_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_permission(DELETE)),
):
    expense_service.delete_expense(db, expense_id, principal)
    return {"message": "Expense deleted successfully"}
