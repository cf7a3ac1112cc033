from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Float
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum

from ..core.database import Base

class BillStatus(str, enum.Enum):
    UNPAID = "unpaid"
    PAID = "paid"

class Bill(Base):
    __tablename__ = "bills"

    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=False, index=True)
    doctor_id = Column(Integer, ForeignKey("doctors.id"), nullable=False, index=True)
    # One bill per prescription
    medical_record_id = Column(Integer, ForeignKey("medical_records.id"), unique=True, nullable=True)

    consultation_fee = Column(Float, nullable=False, default=0)
    medicine_cost = Column(Float, nullable=False, default=0)
    total_amount = Column(Float, nullable=False, default=0)
    payment_mode = Column(String(30), nullable=True)
    status = Column(String(20), nullable=False, default=BillStatus.UNPAID.value)

    created_at = Column(DateTime, server_default=func.now())

    patient = relationship("Patient")
    doctor = relationship("Doctor")
    medical_record = relationship("MedicalRecord")

    def __repr__(self):
        return f"<Bill(id={self.id}, total_amount={self.total_amount}, status='{self.status}')>"
