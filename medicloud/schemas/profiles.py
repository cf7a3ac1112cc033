"""Role-specific profile shapes.

A profile is a closed union keyed by ``role``; each variant only carries the
fields that make sense for that role.
"""
from datetime import date, time
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..core.security import UserRole


class PatientProfile(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    role: Literal["patient"] = "patient"
    full_name: str = Field(..., min_length=1, max_length=200)
    phone: Optional[str] = Field(None, max_length=20)
    date_of_birth: Optional[date] = None
    gender: Optional[str] = Field(None, max_length=20)
    address: Optional[str] = Field(None, max_length=255)
    emergency_contact: Optional[str] = Field(None, max_length=100)
    medical_history: Optional[str] = None


class DoctorProfile(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    role: Literal["doctor"] = "doctor"
    full_name: str = Field(..., min_length=1, max_length=200)
    mobile_number: Optional[str] = Field(None, max_length=20)
    specialization: str = Field(..., min_length=1, max_length=100)
    license_number: str = Field(..., min_length=1, max_length=50)
    consultation_fee: float = Field(0, ge=0)
    available_from: time
    available_to: time

    @model_validator(mode="after")
    def check_window(self):
        if self.available_from >= self.available_to:
            raise ValueError("available_from must be earlier than available_to")
        return self


class PharmacistProfile(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    role: Literal["pharmacist"] = "pharmacist"
    full_name: str = Field(..., min_length=1, max_length=200)
    phone: Optional[str] = Field(None, max_length=20)


Profile = Annotated[
    Union[PatientProfile, DoctorProfile, PharmacistProfile],
    Field(discriminator="role"),
]


# Partial updates: the role selects the variant, every other field is optional
class PatientProfileUpdate(BaseModel):
    role: Literal["patient"]
    full_name: Optional[str] = Field(None, min_length=1, max_length=200)
    phone: Optional[str] = Field(None, max_length=20)
    date_of_birth: Optional[date] = None
    gender: Optional[str] = Field(None, max_length=20)
    address: Optional[str] = Field(None, max_length=255)
    emergency_contact: Optional[str] = Field(None, max_length=100)
    medical_history: Optional[str] = None


class DoctorProfileUpdate(BaseModel):
    role: Literal["doctor"]
    full_name: Optional[str] = Field(None, min_length=1, max_length=200)
    mobile_number: Optional[str] = Field(None, max_length=20)
    specialization: Optional[str] = Field(None, min_length=1, max_length=100)
    consultation_fee: Optional[float] = Field(None, ge=0)
    available_from: Optional[time] = None
    available_to: Optional[time] = None


class PharmacistProfileUpdate(BaseModel):
    role: Literal["pharmacist"]
    full_name: Optional[str] = Field(None, min_length=1, max_length=200)
    phone: Optional[str] = Field(None, max_length=20)


ProfileUpdate = Annotated[
    Union[PatientProfileUpdate, DoctorProfileUpdate, PharmacistProfileUpdate],
    Field(discriminator="role"),
]

PROFILE_SCHEMAS = {
    UserRole.PATIENT: PatientProfile,
    UserRole.DOCTOR: DoctorProfile,
    UserRole.PHARMACIST: PharmacistProfile,
}


def profile_from_row(role: UserRole, row) -> Optional[Union[PatientProfile, DoctorProfile, PharmacistProfile]]:
    """Build the profile variant for ``role`` from its ORM row."""
    if row is None:
        return None
    schema = PROFILE_SCHEMAS[UserRole(role)]
    data = {
        name: getattr(row, name)
        for name in schema.model_fields
        if name != "role"
    }
    return schema(**data)
