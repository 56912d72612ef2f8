"""Phone number and profile image routes for the HandyHub API."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from .auth import get_current_account
from .database import get_db
from .models import Account
from . import schemas, crud

router = APIRouter(prefix="/users", tags=["users"])


@router.post(
    "/phone", response_model=schemas.PhoneNumberOut, status_code=status.HTTP_201_CREATED
)
def add_phone_number(
    phone_in: schemas.PhoneNumberCreate,
    current_account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
):
    """
    Add a phone number to the current account.

    Args:
        phone_in (PhoneNumberCreate): Number and primary flag.
        current_account (Account): Authenticated account.
        db (Session): Database session.

    Returns:
        PhoneNumberOut: Created phone number.
    """
    return crud.add_phone_number(db, current_account.id, phone_in)


@router.put("/phone/{phone_id}", response_model=schemas.PhoneNumberOut)
def update_phone_number(
    phone_id: int,
    changes: schemas.PhoneNumberUpdate,
    current_account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
):
    """
    Update one of the current account's phone numbers.

    Only fields provided in the request are changed.
    """
    return crud.update_phone_number(
        db, current_account.id, phone_id, changes.model_dump(exclude_unset=True)
    )


@router.delete("/phone/{phone_id}", response_model=schemas.Message)
def delete_phone_number(
    phone_id: int,
    current_account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
):
    crud.delete_phone_number(db, current_account.id, phone_id)
    return {"message": "Phone number deleted successfully"}


@router.put("/profile-image", response_model=schemas.ProfileImageOut)
def update_profile_image(
    image_in: schemas.ProfileImageUpdate,
    current_account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
):
    """Set or replace the current account's profile image."""
    return crud.upsert_profile_image(db, current_account.id, image_in.profile_img_url)


@router.delete("/profile-image", response_model=schemas.Message)
def delete_profile_image(
    current_account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
):
    crud.delete_profile_image(db, current_account.id)
    return {"message": "Profile image deleted successfully"}
