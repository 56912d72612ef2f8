"""Portfolio work routes for the HandyHub API."""

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from .auth import get_current_account
from .database import get_db
from .models import Account
from . import schemas, crud

router = APIRouter(prefix="/works", tags=["works"])


@router.post("/", response_model=schemas.WorkOut, status_code=status.HTTP_201_CREATED)
def create_work(
    work_in: schemas.WorkCreate,
    current_account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
):
    """
    Create a work together with its images.

    The work and all images are stored atomically; if any image cannot
    be stored, nothing is.

    Args:
        work_in (WorkCreate): Title and image URLs.
        current_account (Account): Authenticated account.
        db (Session): Database session.

    Returns:
        WorkOut: Created work.
    """
    return crud.create_work_with_images(
        db, current_account.id, work_in.title, work_in.images
    )


@router.get("/user/{user_id}", response_model=List[schemas.WorkOut])
def list_works_by_user(user_id: int, db: Session = Depends(get_db)):
    """List a user's works with images, review count and average rating."""
    return crud.list_works_by_account(db, user_id)


@router.get("/{work_id}", response_model=schemas.WorkDetailOut)
def get_work(work_id: int, db: Session = Depends(get_db)):
    return crud.get_work(db, work_id)


@router.put("/{work_id}", response_model=schemas.WorkOut)
def update_work(
    work_id: int,
    changes: schemas.WorkUpdate,
    current_account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
):
    """
    Rename a work owned by the current account.

    A work that does not exist and a work owned by someone else produce
    the same 404 response.
    """
    return crud.update_work(db, current_account.id, work_id, changes.title)


@router.delete("/{work_id}", response_model=schemas.Message)
def delete_work(
    work_id: int,
    current_account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
):
    crud.delete_work(db, current_account.id, work_id)
    return {"message": "Work deleted successfully"}


@router.post(
    "/{work_id}/images",
    response_model=schemas.WorkImageOut,
    status_code=status.HTTP_201_CREATED,
)
def add_work_image(
    work_id: int,
    image_in: schemas.WorkImageIn,
    current_account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
):
    """Attach an image URL to a work owned by the current account."""
    return crud.add_work_image(db, current_account.id, work_id, image_in.work_img_url)


@router.delete("/{work_id}/images", response_model=schemas.Message)
def delete_work_image(
    work_id: int,
    image_in: schemas.WorkImageIn,
    current_account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
):
    crud.delete_work_image(db, current_account.id, work_id, image_in.work_img_url)
    return {"message": "Image deleted successfully"}
