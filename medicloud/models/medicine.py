from sqlalchemy import Column, Integer, String, DateTime, Float
from sqlalchemy.sql import func

from ..core.database import Base

MEDICINE_TYPES = ("syrup", "tablet", "capsule", "injection", "other")

class MedicineName(Base):
    __tablename__ = "medicine_names"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), unique=True, nullable=False, index=True)
    type = Column(String(20), nullable=False)
    price = Column(Float, nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    def __repr__(self):
        return f"<MedicineName(id={self.id}, name='{self.name}', price={self.price})>"
