# dealership/models/vehicle.py
"""
Vehicle inventory table.
ownership_status follows the latest transaction (IN → InStock, OUT → Sold)
and is written in the same commit as the transaction that changes it.
"""

from sqlalchemy import Column, Integer, String, DateTime, Float, JSON, ForeignKey, Index, text
from dealership.database import Base


class Vehicle(Base):
    __tablename__ = "vehicles"
    __table_args__ = (
        # Identifiers are unique among active vehicles only
        Index("uq_vehicles_registration_number_active", "registration_number", unique=True,
              postgresql_where=text("deleted_at IS NULL"), sqlite_where=text("deleted_at IS NULL")),
        Index("uq_vehicles_vin_active", "vin", unique=True,
              postgresql_where=text("deleted_at IS NULL"), sqlite_where=text("deleted_at IS NULL")),
        Index("ix_vehicles_make_model_year", "make", "vehicle_model", "year"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    registration_number = Column(String(20), nullable=False, index=True)
    vin = Column(String(17))
    make = Column(String(50), nullable=False)
    vehicle_model = Column(String(100), nullable=False)
    year = Column(Integer, nullable=False)
    engine_capacity = Column(Float)
    color = Column(String(30))
    mileage = Column(Float)
    transmission = Column(String(20))        # Manual | Automatic | CVT
    fuel_type = Column(String(20))           # Petrol | Diesel | Electric | Hybrid
    body_type = Column(String(50))
    ownership_status = Column(String(20), nullable=False, default="NotOwned", index=True)
    tags = Column(JSON, nullable=False, default=list)
    images = Column(JSON, nullable=False, default=list)
    documents = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, nullable=False)
    created_by = Column(Integer, ForeignKey("users.id"))
    updated_by = Column(Integer, ForeignKey("users.id"))
    deleted_at = Column(DateTime, index=True)

    def __repr__(self):
        return f"<Vehicle {self.registration_number} {self.make} {self.vehicle_model} status={self.ownership_status}>"
