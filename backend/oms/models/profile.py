from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime

from oms.db.base import Base


class Profile(Base):
    """Application profile of an authenticated principal, carries exactly one role"""
    __tablename__ = "profiles"

    id = Column(Integer, primary_key=True, index=True)
    # identifier issued by the auth provider
    user_id = Column(String(100), unique=True, index=True, nullable=False, comment="External principal id")
    email = Column(String(200), index=True, nullable=False, comment="Email")
    name = Column(String(100), nullable=False, comment="Display name")
    # sales / accountant / warehouse_manager / shipper / admin
    role = Column(String(30), nullable=False, index=True, comment="Role")
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<Profile {self.id}: {self.name} ({self.role})>"

    @property
    def role_display(self) -> str:
        role_map = {
            "sales": "Sales",
            "accountant": "Accountant",
            "warehouse_manager": "Warehouse Manager",
            "shipper": "Shipper",
            "admin": "Administrator",
        }
        return role_map.get(self.role, self.role)
