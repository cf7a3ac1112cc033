from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...core.security import UserRole
from ...api.deps import get_current_user, get_patient_user, require_role
from ...models.user import User
from ...services.appointment_service import AppointmentService, to_appointment_response
from ...schemas.appointments import (
    AppointmentCreate, AppointmentResponse, AppointmentStatusUpdate,
    AvailableSlotsResponse, DoctorSummary
)

router = APIRouter(prefix="/appointments", tags=["Appointments"])

@router.get("/doctors", response_model=List[DoctorSummary])
async def list_doctors(
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user)
):
    """Doctors a patient can book, with their fee and daily window."""
    service = AppointmentService(db)
    return [DoctorSummary.model_validate(doctor) for doctor in service.list_doctors()]

@router.get("/doctors/{doctor_id}/slots", response_model=AvailableSlotsResponse)
async def list_available_slots(
    doctor_id: int,
    on_date: Optional[date] = Query(default=None, alias="date"),
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user)
):
    """Bookable slots for a doctor. Without a date, the proposed default date is used."""
    service = AppointmentService(db)
    return service.available_slots(doctor_id, on_date)

@router.post("", response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
async def book_appointment(
    data: AppointmentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_patient_user)
):
    """Book one of the offered slots."""
    service = AppointmentService(db)
    appointment = service.book_appointment(current_user, data)
    return to_appointment_response(appointment)

@router.get("/mine", response_model=List[AppointmentResponse])
async def list_my_appointments(
    today_only: bool = Query(default=False),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role([UserRole.PATIENT, UserRole.DOCTOR]))
):
    """The patient's or doctor's own appointments, ordered by date and time."""
    service = AppointmentService(db)
    return [
        to_appointment_response(appointment)
        for appointment in service.list_for_user(current_user, today_only=today_only)
    ]

@router.patch("/{appointment_id}/status", response_model=AppointmentResponse)
async def update_appointment_status(
    appointment_id: int,
    update: AppointmentStatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role([UserRole.PATIENT, UserRole.DOCTOR]))
):
    """Doctors move their appointments through statuses; patients may cancel their own."""
    service = AppointmentService(db)
    appointment = service.update_status(current_user, appointment_id, update.status)
    return to_appointment_response(appointment)
