"""
Admin Audit Log Model
"""

from sqlalchemy import Column, Integer, String, Text, DateTime
from sqlalchemy.sql import func
from ..db import Base


class AdminAuditLog(Base):
    __tablename__ = "admin_audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    timestamp = Column(DateTime, default=func.now(), nullable=False, index=True)
    actor_key_id = Column(String(255), nullable=False, index=True)  # admin key id, or "player:<id>" for self-service
    action = Column(String(100), nullable=False, index=True)  # e.g. "jobs_force_clear", "jobs_force_clear_all"
    target = Column(String(255), nullable=False)  # e.g. "owner:42", "owner:42/category:crafting", "*"
    before_value = Column(Text, nullable=True)  # JSON of the cleared job ids
    after_value = Column(Text, nullable=True)   # JSON of the clear report
    client_ip = Column(String(45), nullable=True)
    user_agent = Column(String(500), nullable=True)
