from datetime import datetime
from sqlalchemy import Column, Integer, ForeignKey, DateTime, Date, Text, JSON
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from ..core.database import Base

class MedicalRecord(Base):
    """A prescription written by a doctor at the end of an appointment."""
    __tablename__ = "medical_records"

    id = Column(Integer, primary_key=True, index=True)
    appointment_id = Column(Integer, ForeignKey("appointments.id"), unique=True, nullable=False)
    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=False, index=True)
    doctor_id = Column(Integer, ForeignKey("doctors.id"), nullable=False, index=True)

    diagnosis = Column(Text, nullable=True)
    # List of {"name", "dosage", "duration"} entries
    medicines = Column(JSON, nullable=False, default=list)
    suggestions = Column(Text, nullable=True)
    follow_up_date = Column(Date, nullable=True)

    # Local wall-clock time, matching the "today" window pharmacists work from
    created_at = Column(DateTime, default=datetime.now, server_default=func.now(), index=True)

    appointment = relationship("Appointment", back_populates="medical_record")
    patient = relationship("Patient")
    doctor = relationship("Doctor")

    def __repr__(self):
        return f"<MedicalRecord(id={self.id}, appointment_id={self.appointment_id})>"
