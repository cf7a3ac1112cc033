from datetime import datetime, time, timedelta
from typing import List, Optional
import logging

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from ..core.security import UserRole
from ..models.appointment import Appointment, AppointmentStatus
from ..models.medical_record import MedicalRecord
from ..models.user import User
from ..schemas.prescriptions import PrescriptionCreate, PrescriptionResponse

logger = logging.getLogger(__name__)


def to_prescription_response(record: MedicalRecord) -> PrescriptionResponse:
    response = PrescriptionResponse.model_validate(record)
    if record.patient is not None:
        response.patient_name = record.patient.full_name
        response.patient_phone = record.patient.phone
    if record.doctor is not None:
        response.doctor_name = record.doctor.full_name
    return response


class PrescriptionService:
    def __init__(self, db: Session, now: Optional[datetime] = None):
        self.db = db
        self._now = now

    @property
    def now(self) -> datetime:
        return self._now or datetime.now()

    def _query(self):
        return self.db.query(MedicalRecord).options(
            joinedload(MedicalRecord.patient), joinedload(MedicalRecord.doctor)
        )

    def create_prescription(self, doctor_user: User, data: PrescriptionCreate) -> MedicalRecord:
        """Record a prescription for one of the doctor's appointments and complete it."""
        doctor = doctor_user.doctor
        appointment = self.db.query(Appointment).filter(
            Appointment.id == data.appointment_id
        ).first()

        if not appointment:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Appointment not found"
            )

        if doctor is None or appointment.doctor_id != doctor.id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Only the appointment's doctor can write a prescription"
            )

        if appointment.status == AppointmentStatus.CANCELLED:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Cannot prescribe for a cancelled appointment"
            )

        record = MedicalRecord(
            appointment_id=appointment.id,
            patient_id=appointment.patient_id,
            doctor_id=appointment.doctor_id,
            diagnosis=data.diagnosis,
            medicines=[medicine.model_dump() for medicine in data.medicines],
            suggestions=data.suggestions,
            follow_up_date=data.follow_up_date,
        )
        appointment.status = AppointmentStatus.COMPLETED

        try:
            self.db.add(record)
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="A prescription already exists for this appointment"
            ) from exc

        self.db.refresh(record)
        logger.info(f"Prescription {record.id} recorded for appointment {appointment.id}")
        return record

    def get_prescription(self, user: User, record_id: int) -> MedicalRecord:
        record = self._query().filter(MedicalRecord.id == record_id).first()
        if not record:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Prescription not found"
            )

        if not self._can_view(user, record):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Not enough permissions"
            )
        return record

    def list_for_user(self, user: User) -> List[MedicalRecord]:
        query = self._query()
        if user.role == UserRole.PATIENT and user.patient is not None:
            query = query.filter(MedicalRecord.patient_id == user.patient.id)
        elif user.role == UserRole.DOCTOR and user.doctor is not None:
            query = query.filter(MedicalRecord.doctor_id == user.doctor.id)
        else:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Only patients and doctors have prescriptions"
            )
        return query.order_by(MedicalRecord.created_at.desc(), MedicalRecord.id.desc()).all()

    def list_today(self, search: Optional[str] = None) -> List[MedicalRecord]:
        """Prescriptions written today, newest first, optionally filtered by patient or doctor name."""
        day_start = datetime.combine(self.now.date(), time.min)
        day_end = day_start + timedelta(days=1)

        records = self._query().filter(
            MedicalRecord.created_at >= day_start,
            MedicalRecord.created_at < day_end,
        ).order_by(MedicalRecord.created_at.desc(), MedicalRecord.id.desc()).all()

        term = (search or "").strip().lower()
        if not term:
            return records

        return [
            record for record in records
            if term in (record.patient.full_name or "").lower()
            or term in (record.doctor.full_name or "").lower()
        ]

    @staticmethod
    def _can_view(user: User, record: MedicalRecord) -> bool:
        if user.role == UserRole.PHARMACIST:
            return True
        if user.role == UserRole.PATIENT:
            return user.patient is not None and record.patient_id == user.patient.id
        if user.role == UserRole.DOCTOR:
            return user.doctor is not None and record.doctor_id == user.doctor.id
        return False
