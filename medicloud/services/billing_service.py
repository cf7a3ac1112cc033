from typing import List
import logging

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from ..models.bill import Bill, BillStatus
from ..models.medical_record import MedicalRecord
from ..models.medicine import MedicineName
from ..schemas.billing import BillCreate, BillLineResponse, BillPreview, MedicineCreate
from .billing import BillSummary, build_bill_lines, price_index, summarize_bill

logger = logging.getLogger(__name__)


class BillingService:
    def __init__(self, db: Session):
        self.db = db

    def add_medicine(self, data: MedicineCreate) -> MedicineName:
        medicine = MedicineName(name=data.name, type=data.type, price=data.price)
        try:
            self.db.add(medicine)
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Medicine already exists"
            ) from exc

        self.db.refresh(medicine)
        logger.info(f"Added medicine {medicine.name} at {medicine.price}")
        return medicine

    def list_medicines(self) -> List[MedicineName]:
        return self.db.query(MedicineName).order_by(MedicineName.name.asc()).all()

    def _get_record(self, record_id: int) -> MedicalRecord:
        record = self.db.query(MedicalRecord).options(
            joinedload(MedicalRecord.patient), joinedload(MedicalRecord.doctor)
        ).filter(MedicalRecord.id == record_id).first()

        if not record:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Prescription not found"
            )
        return record

    def _summarize(self, record: MedicalRecord, consultation_fee=None) -> BillSummary:
        medicines = record.medicines or []
        names = [str(medicine.get("name") or "").strip() for medicine in medicines]
        catalogue = self.db.query(MedicineName).filter(MedicineName.name.in_(names)).all() if names else []

        lines = build_bill_lines(medicines, price_index(catalogue))
        if consultation_fee is None:
            consultation_fee = record.doctor.consultation_fee if record.doctor else 0
        return summarize_bill(lines, consultation_fee)

    def preview_bill(self, record_id: int) -> BillPreview:
        record = self._get_record(record_id)
        summary = self._summarize(record)

        return BillPreview(
            medical_record_id=record.id,
            patient_name=record.patient.full_name,
            doctor_name=record.doctor.full_name,
            date=record.created_at.strftime("%d-%m-%Y") if record.created_at else "",
            time=record.created_at.strftime("%H:%M") if record.created_at else "",
            lines=[
                BillLineResponse(
                    name=line.name,
                    dosage=line.dosage,
                    duration=line.duration,
                    rate=line.rate,
                    quantity=line.quantity,
                    total=line.total,
                )
                for line in summary.lines
            ],
            medicine_cost=summary.medicine_cost,
            consultation_fee=summary.consultation_fee,
            total_amount=summary.total_amount,
        )

    def generate_bill(self, data: BillCreate) -> Bill:
        record = self._get_record(data.medical_record_id)
        existing = self.db.query(Bill).filter(Bill.medical_record_id == record.id).first()
        if existing:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Bill {existing.id} already exists for this prescription"
            )

        summary = self._summarize(record, data.consultation_fee)

        bill = Bill(
            patient_id=record.patient_id,
            doctor_id=record.doctor_id,
            medical_record_id=record.id,
            consultation_fee=summary.consultation_fee,
            medicine_cost=summary.medicine_cost,
            total_amount=summary.total_amount,
            payment_mode=data.payment_mode,
            status=BillStatus.UNPAID.value,
        )
        try:
            self.db.add(bill)
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="A bill already exists for this prescription"
            ) from exc
        self.db.refresh(bill)

        logger.info(f"Generated bill {bill.id} for prescription {record.id}: {bill.total_amount}")
        return bill

    def get_bill(self, bill_id: int) -> Bill:
        bill = self.db.query(Bill).filter(Bill.id == bill_id).first()
        if not bill:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Bill not found"
            )
        return bill

    def mark_paid(self, bill_id: int, payment_mode: str) -> Bill:
        bill = self.get_bill(bill_id)
        if bill.status == BillStatus.PAID.value:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Bill is already paid"
            )

        bill.status = BillStatus.PAID.value
        bill.payment_mode = payment_mode.strip()
        self.db.commit()
        self.db.refresh(bill)
        return bill
