from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PrescribedMedicine(BaseModel):
    name: str = Field(..., min_length=1)
    dosage: str = Field(..., description="Morning-afternoon-evening pattern, e.g. 1-0-1")
    duration: str = Field(..., description="Free text such as '5 Days'")

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Medicine name is required")
        return value


class PrescriptionCreate(BaseModel):
    appointment_id: int
    diagnosis: Optional[str] = None
    medicines: List[PrescribedMedicine] = Field(..., min_length=1)
    suggestions: Optional[str] = None
    follow_up_date: Optional[date] = None


class PrescriptionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    appointment_id: int
    patient_id: int
    doctor_id: int
    diagnosis: Optional[str] = None
    medicines: List[PrescribedMedicine]
    suggestions: Optional[str] = None
    follow_up_date: Optional[date] = None
    created_at: Optional[datetime] = None
    patient_name: Optional[str] = None
    patient_phone: Optional[str] = None
    doctor_name: Optional[str] = None
