"""User and work review routes for the HandyHub API."""

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from .auth import get_current_account
from .database import get_db
from .models import Account
from . import schemas, crud

router = APIRouter(prefix="/reviews", tags=["reviews"])


@router.post(
    "/user", response_model=schemas.UserReviewOut, status_code=status.HTTP_201_CREATED
)
def create_user_review(
    review_in: schemas.UserReviewCreate,
    current_account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
):
    """
    Review another user.

    Args:
        review_in (UserReviewCreate): Reviewee and review text.
        current_account (Account): Authenticated reviewer.
        db (Session): Database session.

    Returns:
        UserReviewOut: Created review.
    """
    return crud.create_user_review(db, current_account.id, review_in)


@router.get("/user/{user_id}", response_model=List[schemas.UserReviewListItem])
def list_user_reviews(user_id: int, db: Session = Depends(get_db)):
    """Reviews received by a user, newest first."""
    return crud.list_user_reviews(db, user_id)


@router.put("/user/{review_id}", response_model=schemas.UserReviewOut)
def update_user_review(
    review_id: int,
    changes: schemas.UserReviewUpdate,
    current_account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
):
    return crud.update_user_review(db, current_account.id, review_id, changes.review_text)


@router.delete("/user/{review_id}", response_model=schemas.Message)
def delete_user_review(
    review_id: int,
    current_account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
):
    crud.delete_user_review(db, current_account.id, review_id)
    return {"message": "Review deleted successfully"}


@router.post(
    "/work", response_model=schemas.WorkReviewOut, status_code=status.HTTP_201_CREATED
)
def create_work_review(
    review_in: schemas.WorkReviewCreate,
    current_account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
):
    """
    Rate and review a work.

    Reviewing a work created by the current account is rejected.
    """
    return crud.create_work_review(db, current_account.id, review_in)


@router.get("/work/{work_id}", response_model=schemas.WorkReviewList)
def list_work_reviews(work_id: int, db: Session = Depends(get_db)):
    """Reviews of a work with review count and average rating."""
    return crud.list_work_reviews(db, work_id)


@router.put("/work/{review_id}", response_model=schemas.WorkReviewOut)
def update_work_review(
    review_id: int,
    changes: schemas.WorkReviewUpdate,
    current_account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
):
    """Change rating and/or text of a review written by the current account."""
    return crud.update_work_review(
        db, current_account.id, review_id, changes.model_dump(exclude_unset=True)
    )


@router.delete("/work/{review_id}", response_model=schemas.Message)
def delete_work_review(
    review_id: int,
    current_account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
):
    crud.delete_work_review(db, current_account.id, review_id)
    return {"message": "Work review deleted successfully"}
