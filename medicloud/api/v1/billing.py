from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...api.deps import get_current_user, get_pharmacist_user
from ...models.user import User
from ...services.billing_service import BillingService
from ...schemas.billing import (
    BillCreate, BillPayment, BillPreview, BillResponse, MedicineCreate, MedicineResponse
)

router = APIRouter(prefix="/billing", tags=["Billing"])

@router.post("/medicines", response_model=MedicineResponse, status_code=status.HTTP_201_CREATED)
async def add_medicine(
    data: MedicineCreate,
    db: Session = Depends(get_db),
    _: User = Depends(get_pharmacist_user)
):
    """Add a medicine and its unit price to the catalogue."""
    return BillingService(db).add_medicine(data)

@router.get("/medicines", response_model=List[MedicineResponse])
async def list_medicines(
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user)
):
    return BillingService(db).list_medicines()

@router.get("/prescriptions/{record_id}/preview", response_model=BillPreview)
async def preview_bill(
    record_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(get_pharmacist_user)
):
    """Priced bill lines for a prescription, without saving anything."""
    return BillingService(db).preview_bill(record_id)

@router.post("/bills", response_model=BillResponse, status_code=status.HTTP_201_CREATED)
async def generate_bill(
    data: BillCreate,
    db: Session = Depends(get_db),
    _: User = Depends(get_pharmacist_user)
):
    return BillingService(db).generate_bill(data)

@router.get("/bills/{bill_id}", response_model=BillResponse)
async def get_bill(
    bill_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(get_pharmacist_user)
):
    return BillingService(db).get_bill(bill_id)

@router.patch("/bills/{bill_id}/pay", response_model=BillResponse)
async def pay_bill(
    bill_id: int,
    payment: BillPayment,
    db: Session = Depends(get_db),
    _: User = Depends(get_pharmacist_user)
):
    return BillingService(db).mark_paid(bill_id, payment.payment_mode)
