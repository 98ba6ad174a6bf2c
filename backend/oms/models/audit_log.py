"""
Audit log - change history of catalogue and partner records

Each row lists the fields it touched as explicit {field, old, new} entries
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship

from oms.db.base import Base


class AuditLog(Base):
    """Audit trail

    action:
    - create
    - update
    - delete

    resource_type:
    - product
    - customer
    - supplier
    - profile
    """
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)

    user_id = Column(Integer, ForeignKey("profiles.id"), nullable=False, index=True)
    user_name = Column(String(100), nullable=False, comment="Operator name snapshot")

    action = Column(String(20), nullable=False, index=True, comment="Action")
    resource_type = Column(String(50), nullable=False, index=True, comment="Resource type")
    resource_id = Column(Integer, index=True, comment="Resource id")
    resource_name = Column(String(200), comment="Resource name / code")

    # [{"field": ..., "old": ..., "new": ...}, ...]
    changes = Column(JSON, nullable=False, default=list, comment="Field changes")

    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    user = relationship("Profile", foreign_keys=[user_id])

    def __repr__(self):
        return f"<AuditLog {self.action} {self.resource_type}:{self.resource_id}>"

    @property
    def action_display(self) -> str:
        action_map = {
            "create": "Created",
            "update": "Updated",
            "delete": "Deleted",
        }
        return action_map.get(self.action, self.action)
