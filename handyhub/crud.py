"""Resource services for accounts, phones, skills, works and reviews.

Each operation composes the shared building blocks: the ownership guard
for mutations, the conflict translator around writes, the unit of work
for multi-row writes and the aggregator for read-time statistics. The
functions are independent of FastAPI and raise the errors defined in
:mod:`handyhub.errors`.
"""

import logging

from sqlalchemy import select, update, func
from sqlalchemy.orm import Session

from . import models, schemas, aggregates
from .errors import Conflict, ConflictKind, ResourceNotFound
from .ownership import authorize, ensure_not_self, load_owned
from .store import translate_conflicts, unit_of_work

logger = logging.getLogger(__name__)


# Accounts


def get_account(db: Session, account_id: int) -> models.Account | None:
    """
    Retrieve an account by primary key.

    Args:
        db (Session): Database session.
        account_id (int): Account identifier.

    Returns:
        Account | None: Account if found, otherwise ``None``.
    """
    return db.get(models.Account, account_id)


def get_account_by_email(db: Session, email: str) -> models.Account | None:
    """
    Retrieve an account by email address.

    Args:
        db (Session): Database session.
        email (str): Account email.

    Returns:
        Account | None: Account if found, otherwise ``None``.
    """
    return db.execute(
        select(models.Account).where(models.Account.email == email)
    ).scalar_one_or_none()


def create_account(
    db: Session, account_in: schemas.AccountCreate, hashed_password: str
) -> models.Account:
    """
    Create and persist a new account.

    The email is checked first; a concurrent registration that slips
    past the check is caught by the unique constraint and reported the
    same way.

    Args:
        db (Session): Database session.
        account_in (AccountCreate): Registration data.
        hashed_password (str): Securely hashed password.

    Raises:
        Conflict: If the email is already registered.

    Returns:
        Account: Newly created account.
    """
    if get_account_by_email(db, account_in.email) is not None:
        raise Conflict(ConflictKind.EMAIL_TAKEN)

    account = models.Account(
        first_name=account_in.first_name,
        last_name=account_in.last_name,
        email=account_in.email,
        hashed_password=hashed_password,
    )
    db.add(account)
    with translate_conflicts(db):
        db.commit()
    db.refresh(account)
    return account


def update_account(db: Session, account: models.Account, changes: dict) -> models.Account:
    """Apply name changes to the caller's own account."""
    for key, value in changes.items():
        if value is not None:
            setattr(account, key, value)
    db.add(account)
    db.commit()
    db.refresh(account)
    return account


def get_profile(db: Session, account: models.Account) -> dict:
    """
    Build the caller's profile: account fields, profile image and phones.

    Phone numbers are listed primary first, then newest first.
    """
    phones = db.scalars(
        select(models.PhoneNumber)
        .where(models.PhoneNumber.account_id == account.id)
        .order_by(
            models.PhoneNumber.is_primary.desc(),
            models.PhoneNumber.added_at.desc(),
            models.PhoneNumber.id.desc(),
        )
    ).all()
    image = db.get(models.ProfileImage, account.id)
    return {
        "id": account.id,
        "first_name": account.first_name,
        "last_name": account.last_name,
        "email": account.email,
        "profile_img_url": image.profile_img_url if image else None,
        "profile_img_uploaded": image.uploaded_at if image else None,
        "phone_numbers": list(phones),
    }


# Phone numbers


def _unset_primary(db: Session, account_id: int, keep_id: int | None = None) -> None:
    stmt = update(models.PhoneNumber).where(
        models.PhoneNumber.account_id == account_id,
        models.PhoneNumber.is_primary.is_(True),
    )
    if keep_id is not None:
        stmt = stmt.where(models.PhoneNumber.id != keep_id)
    db.execute(stmt.values(is_primary=False))


def add_phone_number(
    db: Session, account_id: int, phone_in: schemas.PhoneNumberCreate
) -> models.PhoneNumber:
    """
    Register a phone number for an account.

    When the new number is primary, the account's other numbers lose the
    flag in the same transaction.

    Args:
        db (Session): Database session.
        account_id (int): Owner of the number.
        phone_in (PhoneNumberCreate): Number and primary flag.

    Raises:
        Conflict: If the number is registered to any account.

    Returns:
        PhoneNumber: Newly created phone number.
    """
    phone = models.PhoneNumber(
        account_id=account_id,
        phone_number=phone_in.phone_number,
        is_primary=phone_in.is_primary,
    )
    with translate_conflicts(db):
        with unit_of_work(db):
            if phone_in.is_primary:
                _unset_primary(db, account_id)
            db.add(phone)
    db.refresh(phone)
    return phone


def update_phone_number(
    db: Session, actor_id: int, phone_id: int, changes: dict
) -> models.PhoneNumber:
    """
    Change the number or primary flag of one of the caller's phones.

    Args:
        db (Session): Database session.
        actor_id (int): Authenticated account.
        phone_id (int): Phone number identifier.
        changes (dict): Fields to update.

    Raises:
        NotFoundOrForbidden: If the phone is missing or not the caller's.
        Conflict: If the new number is already registered.

    Returns:
        PhoneNumber: Updated phone number.
    """
    phone = load_owned(db, models.PhoneNumber, phone_id, actor_id, "Phone number")
    with translate_conflicts(db):
        with unit_of_work(db):
            if changes.get("is_primary"):
                _unset_primary(db, actor_id, keep_id=phone.id)
            for key, value in changes.items():
                if value is not None:
                    setattr(phone, key, value)
    db.refresh(phone)
    return phone


def delete_phone_number(db: Session, actor_id: int, phone_id: int) -> None:
    """Delete one of the caller's phone numbers."""
    phone = load_owned(db, models.PhoneNumber, phone_id, actor_id, "Phone number")
    db.delete(phone)
    db.commit()


# Profile image


def upsert_profile_image(db: Session, account_id: int, url: str) -> models.ProfileImage:
    """
    Set the account's profile image.

    Creates the image row when the account has none, otherwise replaces
    the URL and refreshes the upload timestamp.
    """
    image = db.get(models.ProfileImage, account_id)
    if image is None:
        image = models.ProfileImage(account_id=account_id, profile_img_url=url)
        db.add(image)
    else:
        image.profile_img_url = url
        image.uploaded_at = func.now()
    db.commit()
    db.refresh(image)
    return image


def delete_profile_image(db: Session, account_id: int) -> None:
    image = db.get(models.ProfileImage, account_id)
    if image is None:
        raise ResourceNotFound("Profile image")
    db.delete(image)
    db.commit()


# Skills


def list_skills(db: Session) -> list[models.Skill]:
    """Return the whole skill catalog ordered by name."""
    return list(db.scalars(select(models.Skill).order_by(models.Skill.skill_name)).all())


def create_skill(db: Session, skill_name: str) -> models.Skill:
    """
    Add a skill to the global catalog.

    Raises:
        Conflict: If a skill with this name exists.
    """
    skill = models.Skill(skill_name=skill_name)
    db.add(skill)
    with translate_conflicts(db):
        db.commit()
    db.refresh(skill)
    return skill


def add_handyman_skill(
    db: Session, account_id: int, skill_in: schemas.HandymanSkillCreate
) -> models.HandymanSkill:
    """
    Advertise a catalog skill on the caller's account.

    Args:
        db (Session): Database session.
        account_id (int): Authenticated account.
        skill_in (HandymanSkillCreate): Skill id and years of experience.

    Raises:
        ResourceNotFound: If the skill does not exist.
        Conflict: If the account already has this skill.

    Returns:
        HandymanSkill: Created association.
    """
    if db.get(models.Skill, skill_in.skill_id) is None:
        raise ResourceNotFound("Skill")

    handyman_skill = models.HandymanSkill(
        account_id=account_id,
        skill_id=skill_in.skill_id,
        experience=skill_in.experience,
    )
    db.add(handyman_skill)
    with translate_conflicts(db):
        db.commit()
    db.refresh(handyman_skill)
    return handyman_skill


def list_handyman_skills(db: Session, account_id: int) -> list[models.HandymanSkill]:
    return list(
        db.scalars(
            select(models.HandymanSkill)
            .join(models.Skill)
            .where(models.HandymanSkill.account_id == account_id)
            .order_by(models.Skill.skill_name)
        ).all()
    )


def _owned_handyman_skill(db: Session, actor_id: int, skill_id: int) -> models.HandymanSkill:
    handyman_skill = db.execute(
        select(models.HandymanSkill).where(
            models.HandymanSkill.account_id == actor_id,
            models.HandymanSkill.skill_id == skill_id,
        )
    ).scalar_one_or_none()
    return authorize(actor_id, handyman_skill, "Skill")


def update_handyman_skill(
    db: Session, actor_id: int, skill_id: int, experience: int
) -> models.HandymanSkill:
    """Change the experience recorded for one of the caller's skills."""
    handyman_skill = _owned_handyman_skill(db, actor_id, skill_id)
    handyman_skill.experience = experience
    db.commit()
    db.refresh(handyman_skill)
    return handyman_skill


def delete_handyman_skill(db: Session, actor_id: int, skill_id: int) -> None:
    handyman_skill = _owned_handyman_skill(db, actor_id, skill_id)
    db.delete(handyman_skill)
    db.commit()


# Works


def _work_projection(work: models.Work, stats: dict) -> dict:
    return {
        "id": work.id,
        "account_id": work.account_id,
        "title": work.title,
        "images": stats["images"],
        "review_count": stats["review_count"],
        "average_rating": stats["average_rating"],
    }


def create_work_with_images(
    db: Session, owner_id: int, title: str, image_urls: list[str]
) -> dict:
    """
    Create a work and all of its images as one atomic write.

    The work row, every image row and the read-back of the result run in
    a single transaction. Any failure, including a duplicate URL within
    ``image_urls``, rolls everything back so no work without its images
    is ever stored.

    Args:
        db (Session): Database session.
        owner_id (int): Account creating the work.
        title (str): Work title.
        image_urls (list[str]): Image URLs, possibly empty.

    Raises:
        Conflict: If an image URL repeats for this work.

    Returns:
        dict: Work projection with its image list and zero statistics.
    """
    with translate_conflicts(db):
        with unit_of_work(db):
            work = models.Work(account_id=owner_id, title=title)
            db.add(work)
            db.flush()
            for url in image_urls:
                db.add(models.WorkImage(work_id=work.id, work_img_url=url))
                db.flush()
            projection = _work_projection(
                work,
                {
                    "images": aggregates.image_urls(db, work.id),
                    "review_count": 0,
                    "average_rating": 0.0,
                },
            )
    logger.info(
        "Account %s created work %s with %d image(s)",
        owner_id,
        projection["id"],
        len(projection["images"]),
    )
    return projection


def get_work(db: Session, work_id: int) -> dict:
    """
    Retrieve a work with its creator's name, images and rating statistics.

    Raises:
        ResourceNotFound: If the work does not exist.
    """
    work = db.get(models.Work, work_id)
    if work is None:
        raise ResourceNotFound("Work")
    projection = _work_projection(
        work,
        {
            "images": aggregates.image_urls(db, work.id),
            "review_count": aggregates.review_count(db, work.id),
            "average_rating": aggregates.average_rating(db, work.id),
        },
    )
    projection["first_name"] = work.account.first_name
    projection["last_name"] = work.account.last_name
    return projection


def list_works_by_account(db: Session, account_id: int) -> list[dict]:
    """
    List an account's works, newest first.

    Each work carries its own image list (empty when it has none), its
    review count and average rating.
    """
    works = db.scalars(
        select(models.Work)
        .where(models.Work.account_id == account_id)
        .order_by(models.Work.id.desc())
    ).all()
    stats = aggregates.work_statistics(db, [work.id for work in works])
    return [_work_projection(work, stats[work.id]) for work in works]


def update_work(db: Session, actor_id: int, work_id: int, title: str) -> dict:
    """
    Rename one of the caller's works.

    Raises:
        NotFoundOrForbidden: If the work is missing or not the caller's.
    """
    work = load_owned(db, models.Work, work_id, actor_id, "Work")
    work.title = title
    db.commit()
    db.refresh(work)
    return _work_projection(work, aggregates.work_statistics(db, [work.id])[work.id])


def delete_work(db: Session, actor_id: int, work_id: int) -> None:
    """Delete one of the caller's works with its images and reviews."""
    work = load_owned(db, models.Work, work_id, actor_id, "Work")
    db.delete(work)
    db.commit()


def add_work_image(db: Session, actor_id: int, work_id: int, url: str) -> models.WorkImage:
    """
    Attach one more image to the caller's work.

    Raises:
        NotFoundOrForbidden: If the work is missing or not the caller's.
        Conflict: If the URL is already attached to this work.
    """
    load_owned(db, models.Work, work_id, actor_id, "Work")
    image = models.WorkImage(work_id=work_id, work_img_url=url)
    db.add(image)
    with translate_conflicts(db):
        db.commit()
    db.refresh(image)
    return image


def delete_work_image(db: Session, actor_id: int, work_id: int, url: str) -> None:
    load_owned(db, models.Work, work_id, actor_id, "Work")
    image = db.execute(
        select(models.WorkImage).where(
            models.WorkImage.work_id == work_id,
            models.WorkImage.work_img_url == url,
        )
    ).scalar_one_or_none()
    if image is None:
        raise ResourceNotFound("Image")
    db.delete(image)
    db.commit()


# Reviews


def _reviewer_fields(reviewer: models.Account, image: models.ProfileImage | None) -> dict:
    return {
        "reviewer_first_name": reviewer.first_name,
        "reviewer_last_name": reviewer.last_name,
        "reviewer_profile_img": image.profile_img_url if image else None,
    }


def create_user_review(
    db: Session, reviewer_id: int, review_in: schemas.UserReviewCreate
) -> models.UserReview:
    """
    Review another account.

    Args:
        db (Session): Database session.
        reviewer_id (int): Authenticated account writing the review.
        review_in (UserReviewCreate): Reviewee and text.

    Raises:
        InvalidTarget: If the reviewer targets their own account.
        ResourceNotFound: If the reviewee does not exist.
        Conflict: If the reviewer already reviewed this account.

    Returns:
        UserReview: Created review.
    """
    ensure_not_self(reviewer_id, review_in.reviewee_id, "You cannot review yourself")
    if get_account(db, review_in.reviewee_id) is None:
        raise ResourceNotFound("User")

    review = models.UserReview(
        reviewer_id=reviewer_id,
        reviewee_id=review_in.reviewee_id,
        review_text=review_in.review_text,
    )
    db.add(review)
    with translate_conflicts(db):
        db.commit()
    db.refresh(review)
    return review


def list_user_reviews(db: Session, reviewee_id: int) -> list[dict]:
    """Reviews received by an account, newest first, with reviewer details."""
    rows = db.execute(
        select(models.UserReview, models.Account, models.ProfileImage)
        .join(models.Account, models.UserReview.reviewer_id == models.Account.id)
        .outerjoin(
            models.ProfileImage,
            models.UserReview.reviewer_id == models.ProfileImage.account_id,
        )
        .where(models.UserReview.reviewee_id == reviewee_id)
        .order_by(models.UserReview.created_at.desc(), models.UserReview.id.desc())
    ).all()
    return [
        {
            "id": review.id,
            "reviewer_id": review.reviewer_id,
            "reviewee_id": review.reviewee_id,
            "review_text": review.review_text,
            "created_at": review.created_at,
            **_reviewer_fields(reviewer, image),
        }
        for review, reviewer, image in rows
    ]


def update_user_review(
    db: Session, actor_id: int, review_id: int, review_text: str
) -> models.UserReview:
    review = load_owned(db, models.UserReview, review_id, actor_id, "Review")
    review.review_text = review_text
    db.commit()
    db.refresh(review)
    return review


def delete_user_review(db: Session, actor_id: int, review_id: int) -> None:
    review = load_owned(db, models.UserReview, review_id, actor_id, "Review")
    db.delete(review)
    db.commit()


def create_work_review(
    db: Session, reviewer_id: int, review_in: schemas.WorkReviewCreate
) -> models.WorkReview:
    """
    Rate and review someone else's work.

    Args:
        db (Session): Database session.
        reviewer_id (int): Authenticated account writing the review.
        review_in (WorkReviewCreate): Work, rating and text.

    Raises:
        ResourceNotFound: If the work does not exist.
        InvalidTarget: If the work belongs to the reviewer.
        Conflict: If the reviewer already reviewed this work.

    Returns:
        WorkReview: Created review.
    """
    work = db.get(models.Work, review_in.work_id)
    if work is None:
        raise ResourceNotFound("Work")
    ensure_not_self(reviewer_id, work.owner_id, "You cannot review your own work")

    review = models.WorkReview(
        reviewer_id=reviewer_id,
        work_id=review_in.work_id,
        rating=review_in.rating,
        review_text=review_in.review_text,
    )
    db.add(review)
    with translate_conflicts(db):
        db.commit()
    db.refresh(review)
    return review


def list_work_reviews(db: Session, work_id: int) -> dict:
    """
    Reviews of a work, newest first, with count and average rating.

    A work without reviews reports ``count == 0`` and
    ``average_rating == 0``.
    """
    rows = db.execute(
        select(models.WorkReview, models.Account, models.ProfileImage)
        .join(models.Account, models.WorkReview.reviewer_id == models.Account.id)
        .outerjoin(
            models.ProfileImage,
            models.WorkReview.reviewer_id == models.ProfileImage.account_id,
        )
        .where(models.WorkReview.work_id == work_id)
        .order_by(models.WorkReview.created_at.desc(), models.WorkReview.id.desc())
    ).all()
    reviews = [
        {
            "id": review.id,
            "reviewer_id": review.reviewer_id,
            "work_id": review.work_id,
            "rating": review.rating,
            "review_text": review.review_text,
            "created_at": review.created_at,
            **_reviewer_fields(reviewer, image),
        }
        for review, reviewer, image in rows
    ]
    return {
        "count": len(reviews),
        "average_rating": aggregates.mean_rating(review["rating"] for review in reviews),
        "reviews": reviews,
    }


def update_work_review(
    db: Session, actor_id: int, review_id: int, changes: dict
) -> models.WorkReview:
    """Change rating and/or text of one of the caller's work reviews."""
    review = load_owned(db, models.WorkReview, review_id, actor_id, "Review")
    for key, value in changes.items():
        if value is not None:
            setattr(review, key, value)
    db.commit()
    db.refresh(review)
    return review


def delete_work_review(db: Session, actor_id: int, review_id: int) -> None:
    review = load_owned(db, models.WorkReview, review_id, actor_id, "Review")
    db.delete(review)
    db.commit()
