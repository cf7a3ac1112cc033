from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..models.medicine import MEDICINE_TYPES


class MedicineCreate(BaseModel):
    name: str
    type: str
    price: float = Field(..., gt=0)

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError("Medicine name is required")
        return normalized

    @field_validator("type")
    @classmethod
    def validate_type(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in MEDICINE_TYPES:
            raise ValueError(f"Medicine type must be one of: {', '.join(MEDICINE_TYPES)}")
        return normalized


class MedicineResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    type: str
    price: float


class BillLineResponse(BaseModel):
    name: str
    dosage: str
    duration: str
    rate: float
    quantity: int
    total: float


class BillPreview(BaseModel):
    medical_record_id: int
    patient_name: str
    doctor_name: str
    date: str
    time: str
    lines: List[BillLineResponse]
    medicine_cost: float
    consultation_fee: float
    total_amount: float


class BillCreate(BaseModel):
    medical_record_id: int
    consultation_fee: Optional[float] = Field(None, ge=0)
    payment_mode: Optional[str] = Field(None, max_length=30)


class BillPayment(BaseModel):
    payment_mode: str = Field(..., min_length=1, max_length=30)


class BillResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    patient_id: int
    doctor_id: int
    medical_record_id: Optional[int] = None
    consultation_fee: float
    medicine_cost: float
    total_amount: float
    payment_mode: Optional[str] = None
    status: str
    created_at: Optional[datetime] = None
