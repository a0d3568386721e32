# dealership/routers/persons.py
"""Customers, dealers and companies."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from dealership.database import get_db
from dealership.schemas.person import PersonCreate, PersonOut, PersonSearchParams, PersonUpdate
from dealership.services import person_service
from dealership.services.auth_service import DELETE, READ, WRITE, Principal, require_permission

router = APIRouter()


@router.get("/persons", summary="List persons: search, filter, paginate")
def list_persons(
    params: Annotated[PersonSearchParams, Query()],
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_permission(READ)),
):
    items, pagination = person_service.list_persons(db, params)
    return {"data": [PersonOut.model_validate(p) for p in items], "pagination": pagination}


@router.post("/persons", status_code=201, summary="Add a person")
def create_person(
    body: PersonCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_permission(WRITE)),
):
    person = person_service.create_person(db, body, principal)
    return {"data": PersonOut.model_validate(person), "message": "Person created successfully"}


@router.get("/persons/{person_id}", summary="Get one person")
def get_person(
    person_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_permission(READ)),
):
    return {"data": PersonOut.model_validate(person_service.get_person(db, person_id))}


@router.patch("/persons/{person_id}", summary="Update person fields")
def update_person(
    person_id: int,
    body: PersonUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_permission(WRITE)),
):
    person = person_service.update_person(db, person_id, body, principal)
    return {"data": PersonOut.model_validate(person), "message": "Person updated successfully"}


@router.delete("/persons/{person_id}", summary="Soft-delete a person")
def delete_person(
    person_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_permission(DELETE)),
):
    person_service.delete_person(db, person_id, principal)
    return {"message": "Person deleted successfully"}
