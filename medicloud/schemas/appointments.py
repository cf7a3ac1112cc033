from datetime import date, datetime, time
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..models.appointment import AppointmentStatus


class DoctorSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    full_name: str
    specialization: str
    consultation_fee: float
    available_from: time
    available_to: time


class SlotResponse(BaseModel):
    time: time
    label: str


class AvailableSlotsResponse(BaseModel):
    doctor_id: int
    date: date
    default_date: date
    slots: List[SlotResponse]


class AppointmentCreate(BaseModel):
    doctor_id: int
    appointment_date: date
    # 24-hour "HH:MM[:SS]" or a 12-hour label such as "2:30 PM"
    appointment_time: str = Field(..., min_length=1)
    symptoms: str

    @field_validator("symptoms")
    @classmethod
    def validate_symptoms(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError("Please enter your symptoms before booking.")
        return normalized


class AppointmentStatusUpdate(BaseModel):
    status: AppointmentStatus


class AppointmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    patient_id: int
    doctor_id: int
    appointment_date: date
    appointment_time: time
    status: AppointmentStatus
    symptoms: Optional[str] = None
    created_at: Optional[datetime] = None
    patient_name: Optional[str] = None
    doctor_name: Optional[str] = None
    specialization: Optional[str] = None
