"""Skill catalog and handyman skill routes for the HandyHub API."""

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from .auth import get_current_account
from .database import get_db
from .models import Account
from . import schemas, crud

router = APIRouter(prefix="/skills", tags=["skills"])


@router.get("/", response_model=List[schemas.SkillOut])
def list_skills(db: Session = Depends(get_db)):
    """Return the whole skill catalog ordered by name."""
    return crud.list_skills(db)


@router.post("/", response_model=schemas.SkillOut, status_code=status.HTTP_201_CREATED)
def create_skill(
    skill_in: schemas.SkillCreate,
    current_account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
):
    """
    Add a skill to the catalog.

    Any authenticated account may extend the catalog; skills have no owner.
    """
    return crud.create_skill(db, skill_in.skill_name)


@router.post(
    "/handyman",
    response_model=schemas.HandymanSkillOut,
    status_code=status.HTTP_201_CREATED,
)
def add_handyman_skill(
    skill_in: schemas.HandymanSkillCreate,
    current_account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
):
    """
    Advertise a skill with years of experience on the current account.

    Args:
        skill_in (HandymanSkillCreate): Skill identifier and experience.
        current_account (Account): Authenticated account.
        db (Session): Database session.

    Returns:
        HandymanSkillOut: Created handyman skill.
    """
    return crud.add_handyman_skill(db, current_account.id, skill_in)


@router.get("/handyman/{user_id}", response_model=List[schemas.HandymanSkillOut])
def list_handyman_skills(user_id: int, db: Session = Depends(get_db)):
    return crud.list_handyman_skills(db, user_id)


@router.put("/handyman/{skill_id}", response_model=schemas.HandymanSkillOut)
def update_handyman_skill(
    skill_id: int,
    changes: schemas.HandymanSkillUpdate,
    current_account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
):
    """Change the experience recorded for one of the current account's skills."""
    return crud.update_handyman_skill(db, current_account.id, skill_id, changes.experience)


@router.delete("/handyman/{skill_id}", response_model=schemas.Message)
def delete_handyman_skill(
    skill_id: int,
    current_account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
):
    crud.delete_handyman_skill(db, current_account.id, skill_id)
    return {"message": "Skill removed successfully"}
