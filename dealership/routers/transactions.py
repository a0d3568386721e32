# dealership/routers/transactions.py
"""Buy (IN) / sell (OUT) transactions."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from dealership.database import get_db
from dealership.schemas.transaction import (
    TransactionCreate, TransactionOut, TransactionSearchParams, TransactionUpdate,
)
from dealership.services import transaction_service
from dealership.services.auth_service import DELETE, READ, WRITE, Principal, require_permission

router = APIRouter()


@router.get("/transactions", summary="List transactions with vehicle and counterparty")
def list_transactions(
    params: Annotated[TransactionSearchParams, Query()],
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_permission(READ)),
):
    items, pagination = transaction_service.list_transactions(db, params)
    return {"data": [TransactionOut.model_validate(t) for t in items], "pagination": pagination}


@router.post("/transactions", status_code=201, summary="Record a purchase or sale")
def create_transaction(
    body: TransactionCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_permission(WRITE)),
):
    """
    IN marks the vehicle InStock, OUT marks it Sold. A sale is linked to the
    vehicle's latest purchase that has not been sold yet.
    """
    transaction = transaction_service.create_transaction(db, body, principal)
    return {"data": TransactionOut.model_validate(transaction), "message": "Transaction created successfully"}


@router.get("/transactions/{transaction_id}", summary="Get one transaction")
def get_transaction(
    transaction_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_permission(READ)),
):
    return {"data": TransactionOut.model_validate(transaction_service.get_transaction(db, transaction_id))}


@router.patch("/transactions/{transaction_id}", summary="Update a transaction (total is recomputed)")
def update_transaction(
    transaction_id: int,
    body: TransactionUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_permission(WRITE)),
):
    transaction = transaction_service.update_transaction(db, transaction_id, body, principal)
    return {"data": TransactionOut.model_validate(transaction), "message": "Transaction updated successfully"}


@router.delete("/transactions/{transaction_id}", summary="Soft-delete a transaction")
def delete_transaction(
    transaction_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_permission(DELETE)),
):
    transaction_service.delete_transaction(db, transaction_id, principal)
    return {"message": "Transaction deleted successfully"}
