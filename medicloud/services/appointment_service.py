from datetime import date, datetime, time
from typing import List, Optional
import logging

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from ..models.appointment import Appointment, AppointmentStatus
from ..models.doctor import Doctor
from ..models.user import User
from ..core.security import UserRole
from ..schemas.appointments import (
    AppointmentCreate, AppointmentResponse, AvailableSlotsResponse, SlotResponse
)
from .scheduling import Slot, default_booking_date, generate_slots, parse_time_of_day, to_24_hour

logger = logging.getLogger(__name__)


def to_appointment_response(appointment: Appointment) -> AppointmentResponse:
    response = AppointmentResponse.model_validate(appointment)
    if appointment.patient is not None:
        response.patient_name = appointment.patient.full_name
    if appointment.doctor is not None:
        response.doctor_name = appointment.doctor.full_name
        response.specialization = appointment.doctor.specialization
    return response


class AppointmentService:
    def __init__(self, db: Session, now: Optional[datetime] = None):
        self.db = db
        self._now = now

    @property
    def now(self) -> datetime:
        return self._now or datetime.now()

    def list_doctors(self) -> List[Doctor]:
        return self.db.query(Doctor).order_by(Doctor.full_name.asc()).all()

    def get_doctor(self, doctor_id: int) -> Doctor:
        doctor = self.db.query(Doctor).filter(Doctor.id == doctor_id).first()
        if not doctor:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Doctor not found"
            )
        return doctor

    def fetch_booked_slots(self, doctor_id: int, on_date: date) -> List[time]:
        """Times already reserved for the doctor on the date. Cancelled bookings free their slot."""
        rows = self.db.query(Appointment.appointment_time).filter(
            Appointment.doctor_id == doctor_id,
            Appointment.appointment_date == on_date,
            Appointment.status != AppointmentStatus.CANCELLED,
        ).all()
        return [row.appointment_time for row in rows]

    def slots_for(self, doctor: Doctor, on_date: date) -> List[Slot]:
        booked = self.fetch_booked_slots(doctor.id, on_date)
        return generate_slots(
            doctor.available_from,
            doctor.available_to,
            on_date,
            booked,
            now=self.now,
        )

    def available_slots(self, doctor_id: int, on_date: Optional[date] = None) -> AvailableSlotsResponse:
        doctor = self.get_doctor(doctor_id)
        proposed = default_booking_date(doctor.available_from, doctor.available_to, now=self.now)
        target = on_date or proposed

        if target < self.now.date():
            slots = []
        else:
            slots = self.slots_for(doctor, target)

        return AvailableSlotsResponse(
            doctor_id=doctor.id,
            date=target,
            default_date=proposed,
            slots=[SlotResponse(time=slot.time, label=slot.label) for slot in slots],
        )

    def book_appointment(self, patient_user: User, data: AppointmentCreate) -> Appointment:
        patient = patient_user.patient
        if patient is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Patient profile not found"
            )

        requested_time = self._parse_requested_time(data.appointment_time)
        if requested_time is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Please select a valid appointment time."
            )

        if data.appointment_date < self.now.date():
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Appointments must be scheduled in the future."
            )

        doctor = self.get_doctor(data.doctor_id)
        offered = {slot.time for slot in self.slots_for(doctor, data.appointment_date)}
        if requested_time not in offered:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="This time is not available."
            )

        appointment = Appointment(
            patient_id=patient.id,
            doctor_id=doctor.id,
            appointment_date=data.appointment_date,
            appointment_time=requested_time,
            symptoms=data.symptoms,
            status=AppointmentStatus.WAITING,
        )

        try:
            self.db.add(appointment)
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="This time is already booked."
            ) from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error(f"Failed to book appointment: {exc}")
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Failed to book appointment. Please try again."
            ) from exc

        self.db.refresh(appointment)
        logger.info(
            f"Booked appointment {appointment.id} with doctor {doctor.id} "
            f"on {appointment.appointment_date} at {appointment.appointment_time}"
        )
        return appointment

    def list_for_user(self, user: User, today_only: bool = False) -> List[Appointment]:
        query = self.db.query(Appointment).options(
            joinedload(Appointment.patient), joinedload(Appointment.doctor)
        )

        if user.role == UserRole.PATIENT and user.patient is not None:
            query = query.filter(Appointment.patient_id == user.patient.id)
        elif user.role == UserRole.DOCTOR and user.doctor is not None:
            query = query.filter(Appointment.doctor_id == user.doctor.id)
        else:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Only patients and doctors have appointments"
            )

        if today_only:
            query = query.filter(Appointment.appointment_date == self.now.date())

        return query.order_by(
            Appointment.appointment_date.asc(),
            Appointment.appointment_time.asc(),
        ).all()

    def update_status(self, user: User, appointment_id: int, new_status: AppointmentStatus) -> Appointment:
        appointment = self.db.query(Appointment).filter(Appointment.id == appointment_id).first()
        if not appointment:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Appointment not found"
            )

        if user.role == UserRole.DOCTOR:
            if user.doctor is None or appointment.doctor_id != user.doctor.id:
                raise HTTPException(
                    status_code=status.HTTP_403_FORBIDDEN,
                    detail="Only the appointment's doctor can update it"
                )
        elif user.role == UserRole.PATIENT:
            if user.patient is None or appointment.patient_id != user.patient.id:
                raise HTTPException(
                    status_code=status.HTTP_403_FORBIDDEN,
                    detail="Only the patient who booked this appointment can change it"
                )
            if new_status != AppointmentStatus.CANCELLED:
                raise HTTPException(
                    status_code=status.HTTP_403_FORBIDDEN,
                    detail="Patients can only cancel appointments"
                )
        else:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Not enough permissions"
            )

        if new_status == AppointmentStatus.CANCELLED and appointment.medical_record is not None:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Cannot cancel an appointment that already has a prescription"
            )

        appointment.status = new_status
        try:
            self.db.commit()
        except IntegrityError as exc:
            # Reviving a cancelled booking whose slot has been taken since
            self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="This time is already booked."
            ) from exc
        self.db.refresh(appointment)
        logger.info(f"Appointment {appointment.id} status updated to {new_status.value}")
        return appointment

    @staticmethod
    def _parse_requested_time(value: str) -> Optional[time]:
        parsed = parse_time_of_day(value)
        if parsed is not None:
            return parsed
        return parse_time_of_day(to_24_hour(value))
