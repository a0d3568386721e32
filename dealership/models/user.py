# dealership/models/user.py
"""
Back-office users. Each user authenticates with a personal API key;
only the sha256 hash of the key is stored.
"""

from sqlalchemy import Column, Integer, String, DateTime, Boolean
from dealership.database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    email = Column(String(200), unique=True, nullable=False, index=True)
    role = Column(String(20), nullable=False, default="Clerk")   # Admin | Manager | Clerk
    api_key_hash = Column(String(64), unique=True, nullable=False, index=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, nullable=False)

    def __repr__(self):
        return f"<User {self.id} email={self.email} role={self.role}>"
