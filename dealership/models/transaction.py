# dealership/models/transaction.py
"""
Buy (IN) and sell (OUT) events tying a vehicle to a counterparty.
An OUT points back at the IN it closes through previous_transaction_id;
the partial unique index allows at most one active sale per purchase.
"""

from sqlalchemy import Column, Integer, String, DateTime, Float, Text, JSON, ForeignKey, Index, text
from sqlalchemy.orm import relationship
from dealership.database import Base


class Transaction(Base):
    __tablename__ = "transactions"
    __table_args__ = (
        Index("uq_transactions_previous_transaction_id_active", "previous_transaction_id", unique=True,
              postgresql_where=text("deleted_at IS NULL"), sqlite_where=text("deleted_at IS NULL")),
        Index("ix_transactions_vehicle_date", "vehicle_id", "date"),
        Index("ix_transactions_counterparty_date", "counterparty_id", "date"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=False)
    direction = Column(String(3), nullable=False, index=True)    # IN | OUT
    counterparty_id = Column(Integer, ForeignKey("persons.id"), nullable=False)
    date = Column(DateTime, nullable=False, index=True)
    location = Column(String(200))
    base_price = Column(Float, nullable=False)
    taxes = Column(JSON, nullable=False, default=list)
    fees = Column(JSON, nullable=False, default=list)
    discount = Column(Float, nullable=False, default=0)
    total_price = Column(Float, nullable=False)
    payments = Column(JSON, nullable=False, default=list)
    documents = Column(JSON, nullable=False, default=list)
    notes = Column(Text)
    previous_transaction_id = Column(Integer, ForeignKey("transactions.id"))
    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, nullable=False)
    created_by = Column(Integer, ForeignKey("users.id"))
    updated_by = Column(Integer, ForeignKey("users.id"))
    deleted_at = Column(DateTime, index=True)

    vehicle = relationship("Vehicle", lazy="joined")
    counterparty = relationship("Person", lazy="joined")

    def __repr__(self):
        return f"<Transaction {self.id} {self.direction} vehicle={self.vehicle_id} total={self.total_price}>"
