# dealership/models/activity_log.py
"""
Append-only audit trail. One row per mutating action, written in the
same commit as the change it describes.
"""

from sqlalchemy import Column, Integer, String, DateTime, JSON, ForeignKey, Index
from dealership.database import Base


class ActivityLog(Base):
    __tablename__ = "activity_logs"
    __table_args__ = (
        Index("ix_activity_logs_entity", "entity_type", "entity_id", "at"),
        Index("ix_activity_logs_actor_at", "actor_id", "at"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    actor_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    action = Column(String(20), nullable=False, index=True)      # CREATE | UPDATE | DELETE | RESTORE | LOGIN | LOGOUT
    entity_type = Column(String(20), nullable=False)             # User | Person | Vehicle | Transaction | Expense
    entity_id = Column(Integer, nullable=False)
    diff = Column(JSON)
    ip = Column(String(64))
    user_agent = Column(String(500))
    at = Column(DateTime, nullable=False, index=True)

    def __repr__(self):
        return f"<ActivityLog {self.action} {self.entity_type}#{self.entity_id} by={self.actor_id}>"
