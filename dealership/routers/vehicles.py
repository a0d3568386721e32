# dealership/routers/vehicles.py
"""Vehicle inventory CRUD, plus ownership history per vehicle."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder
from sqlalchemy.orm import Session

from dealership.database import get_db
from dealership.schemas.vehicle import VehicleCreate, VehicleOut, VehicleSearchParams, VehicleUpdate
from dealership.services import report_service, vehicle_service
from dealership.services.auth_service import DELETE, READ, WRITE, Principal, require_permission

router = APIRouter()


@router.get("/vehicles", summary="List vehicles: search, filter, paginate")
def list_vehicles(
    params: Annotated[VehicleSearchParams, Query()],
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_permission(READ)),
):
    items, pagination = vehicle_service.list_vehicles(db, params)
    return {"data": [VehicleOut.model_validate(v) for v in items], "pagination": pagination}


@router.post("/vehicles", status_code=201, summary="Add a vehicle (or reactivate a sold one)")
def create_vehicle(
    body: VehicleCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_permission(WRITE)),
):
    vehicle, reactivated = vehicle_service.create_vehicle(db, body, principal)
    if reactivated:
        return JSONResponse(status_code=200, content=jsonable_encoder({
            "data": VehicleOut.model_validate(vehicle),
            "message": "Vehicle reactivated successfully",
            "reactivated": True,
        }))
    return {"data": VehicleOut.model_validate(vehicle), "message": "Vehicle created successfully"}


@router.get("/vehicles/{vehicle_id}", summary="Get one vehicle")
def get_vehicle(
    vehicle_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_permission(READ)),
):
    return {"data": VehicleOut.model_validate(vehicle_service.get_vehicle(db, vehicle_id))}


@router.get("/vehicles/{vehicle_id}/history", summary="Buy/sell cycles of one vehicle")
def get_vehicle_history(
    vehicle_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_permission(READ)),
):
    return report_service.vehicle_history(db, vehicle_id)


@router.patch("/vehicles/{vehicle_id}", summary="Update vehicle fields")
def update_vehicle(
    vehicle_id: int,
    body: VehicleUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_permission(WRITE)),
):
    vehicle = vehicle_service.update_vehicle(db, vehicle_id, body, principal)
    return {"data": VehicleOut.model_validate(vehicle), "message": "Vehicle updated successfully"}


@router.delete("/vehicles/{vehicle_id}", summary="Soft-delete a vehicle")
def delete_vehicle(
    vehicle_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_permission(DELETE)),
):
    vehicle_service.delete_vehicle(db, vehicle_id, principal)
    return {"message": "Vehicle deleted successfully"}
