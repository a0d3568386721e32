# dealership/routers/users.py
"""API user management (Admin only). New keys are shown once in the create response."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from dealership.database import get_db
from dealership.schemas.user import UserCreate, UserCreated, UserOut
from dealership.services import user_service
from dealership.services.auth_service import MANAGE_USERS, Principal, get_current_principal, require_permission

router = APIRouter()


@router.get("/users/me", summary="Who am I")
def whoami(principal: Principal = Depends(get_current_principal)):
    return {"data": {"id": principal.id, "name": principal.name,
                     "email": principal.email, "role": principal.role}}


@router.get("/users", summary="List API users")
def list_users(
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_permission(MANAGE_USERS)),
):
    return {"data": [UserOut.model_validate(u) for u in user_service.list_users(db)]}


@router.post("/users", status_code=201, summary="Create an API user and issue its key")
def create_user(
    body: UserCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_permission(MANAGE_USERS)),
):
    user, api_key = user_service.create_user(db, body.name, body.email, body.role, principal=principal)
    created = UserCreated(**UserOut.model_validate(user).model_dump(), api_key=api_key)
    return {"data": created, "message": "User created. Store the API key now; it is not shown again."}


@router.delete("/users/{user_id}", summary="Deactivate an API user")
def deactivate_user(
    user_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_permission(MANAGE_USERS)),
):
    user = user_service.deactivate_user(db, user_id, principal)
    return {"data": UserOut.model_validate(user), "message": "User deactivated"}
