# dealership/models/expense.py
"""
Operating costs: repairs, servicing, transport, commissions.
Expenses tied to a vehicle are netted against that vehicle's profit.
"""

from sqlalchemy import Column, Integer, String, DateTime, Float, JSON, ForeignKey, Index
from sqlalchemy.orm import relationship
from dealership.database import Base


class Expense(Base):
    __tablename__ = "expenses"
    __table_args__ = (
        Index("ix_expenses_vehicle_date", "vehicle_id", "date"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"))
    category = Column(String(20), nullable=False, index=True)   # Repair | Service | Transport | Commission | Other
    description = Column(String(500), nullable=False)
    amount = Column(Float, nullable=False)
    date = Column(DateTime, nullable=False, index=True)
    payee_id = Column(Integer, ForeignKey("persons.id"))
    attachments = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, nullable=False)
    created_by = Column(Integer, ForeignKey("users.id"))
    updated_by = Column(Integer, ForeignKey("users.id"))
    deleted_at = Column(DateTime, index=True)

    vehicle = relationship("Vehicle", lazy="joined")
    payee = relationship("Person", lazy="joined")

    def __repr__(self):
        return f"<Expense {self.id} {self.category} amount={self.amount}>"
