# dealership/models/person.py
"""
Counterparties: individual customers, dealers and companies.
Used as the other side of a transaction and as the payee of an expense.
"""

from sqlalchemy import Column, Integer, String, DateTime, Boolean, Text, JSON, ForeignKey, Index, text
from dealership.database import Base

_ACTIVE = text("deleted_at IS NULL")


class Person(Base):
    __tablename__ = "persons"
    __table_args__ = (
        Index("uq_persons_nic_or_passport_active", "nic_or_passport", unique=True,
              postgresql_where=_ACTIVE, sqlite_where=_ACTIVE),
        Index("uq_persons_company_reg_no_active", "company_reg_no", unique=True,
              postgresql_where=_ACTIVE, sqlite_where=_ACTIVE),
        Index("uq_persons_email_active", "email", unique=True,
              postgresql_where=_ACTIVE, sqlite_where=_ACTIVE),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    type = Column(String(20), nullable=False)        # Individual | Dealer | Company
    full_name = Column(String(200))
    business_name = Column(String(200))
    nic_or_passport = Column(String(50))
    company_reg_no = Column(String(50))
    phone = Column(JSON, nullable=False, default=list)
    email = Column(String(200))
    address = Column(String(500))
    images = Column(JSON, nullable=False, default=list)
    notes = Column(Text)
    is_blacklisted = Column(Boolean, default=False, nullable=False)
    risk_notes = Column(String(500))
    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, nullable=False)
    created_by = Column(Integer, ForeignKey("users.id"))
    updated_by = Column(Integer, ForeignKey("users.id"))
    deleted_at = Column(DateTime, index=True)

    @property
    def display_name(self) -> str:
        return self.full_name or self.business_name or "Unknown"

    def __repr__(self):
        return f"<Person {self.id} type={self.type} name={self.display_name}>"
