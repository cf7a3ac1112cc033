from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...core.security import UserRole
from ...api.deps import get_current_user
from ...models.user import User
from ...schemas.profiles import Profile, ProfileUpdate, profile_from_row

router = APIRouter(prefix="/profiles", tags=["Profiles"])

@router.get("/me", response_model=Profile)
async def get_my_profile(
    current_user: User = Depends(get_current_user)
):
    """Profile variant for the signed-in user's role."""
    profile = profile_from_row(current_user.role, current_user.profile)
    if profile is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Profile not found"
        )
    return profile

@router.put("/me", response_model=Profile)
async def update_my_profile(
    update: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Apply a partial update; the payload's role must match the account's."""
    if UserRole(update.role) != current_user.role:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Profile role does not match account role"
        )

    row = current_user.profile
    if row is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Profile not found"
        )

    changes = update.model_dump(exclude={"role"}, exclude_unset=True, exclude_none=True)
    if current_user.role == UserRole.DOCTOR:
        available_from = changes.get("available_from", row.available_from)
        available_to = changes.get("available_to", row.available_to)
        if available_from >= available_to:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="available_from must be earlier than available_to"
            )

    for field, value in changes.items():
        setattr(row, field, value)

    db.commit()
    db.refresh(row)
    return profile_from_row(current_user.role, row)
