from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...core.security import UserRole
from ...api.deps import get_current_user, get_doctor_user, get_pharmacist_user, require_role
from ...models.user import User
from ...services.prescription_service import PrescriptionService, to_prescription_response
from ...schemas.prescriptions import PrescriptionCreate, PrescriptionResponse

router = APIRouter(prefix="/prescriptions", tags=["Prescriptions"])

@router.post("", response_model=PrescriptionResponse, status_code=status.HTTP_201_CREATED)
async def create_prescription(
    data: PrescriptionCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_doctor_user)
):
    service = PrescriptionService(db)
    record = service.create_prescription(current_user, data)
    return to_prescription_response(record)

@router.get("/today", response_model=List[PrescriptionResponse])
async def list_todays_prescriptions(
    search: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
    _: User = Depends(get_pharmacist_user)
):
    """Pharmacist queue: today's prescriptions, searchable by patient or doctor name."""
    service = PrescriptionService(db)
    return [to_prescription_response(record) for record in service.list_today(search)]

@router.get("/mine", response_model=List[PrescriptionResponse])
async def list_my_prescriptions(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role([UserRole.PATIENT, UserRole.DOCTOR]))
):
    service = PrescriptionService(db)
    return [to_prescription_response(record) for record in service.list_for_user(current_user)]

@router.get("/{record_id}", response_model=PrescriptionResponse)
async def get_prescription(
    record_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    service = PrescriptionService(db)
    return to_prescription_response(service.get_prescription(current_user, record_id))
