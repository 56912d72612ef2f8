"""Read-time statistics derived from work reviews and work images.

Nothing here is persisted; every value is recomputed from the current
rows each time it is requested.
"""

from typing import Iterable

from sqlalchemy import select, func
from sqlalchemy.orm import Session

from . import models


def mean_rating(ratings: Iterable[int]) -> float:
    """Average of ``ratings``, or ``0.0`` when there are none."""
    values = list(ratings)
    if not values:
        return 0.0
    return sum(values) / len(values)


def average_rating(db: Session, work_id: int) -> float:
    """
    Average rating of a work.

    Args:
        db (Session): Database session.
        work_id (int): Work identifier.

    Returns:
        float: Mean of all ratings, ``0.0`` if the work has no reviews.
    """
    value = db.execute(
        select(func.avg(models.WorkReview.rating)).where(
            models.WorkReview.work_id == work_id
        )
    ).scalar_one()
    return float(value) if value is not None else 0.0


def review_count(db: Session, work_id: int) -> int:
    """Number of reviews a work has received."""
    return db.execute(
        select(func.count(models.WorkReview.id)).where(
            models.WorkReview.work_id == work_id
        )
    ).scalar_one()


def image_urls(db: Session, work_id: int) -> list[str]:
    """Image URLs of a work in insertion order; empty list when none."""
    return list(
        db.scalars(
            select(models.WorkImage.work_img_url)
            .where(models.WorkImage.work_id == work_id)
            .order_by(models.WorkImage.id)
        ).all()
    )


def work_statistics(db: Session, work_ids: list[int]) -> dict[int, dict]:
    """
    Images, review count and average rating for several works at once.

    Uses one query for reviews and one for images. Each requested work
    gets its own entry, with an empty image list and zero statistics
    when it has no images or reviews.

    Args:
        db (Session): Database session.
        work_ids (list[int]): Works to describe.

    Returns:
        dict[int, dict]: ``{work_id: {"images", "review_count", "average_rating"}}``.
    """
    stats = {
        work_id: {"images": [], "review_count": 0, "average_rating": 0.0}
        for work_id in work_ids
    }
    if not work_ids:
        return stats

    review_rows = db.execute(
        select(
            models.WorkReview.work_id,
            func.count(models.WorkReview.id),
            func.avg(models.WorkReview.rating),
        )
        .where(models.WorkReview.work_id.in_(work_ids))
        .group_by(models.WorkReview.work_id)
    ).all()
    for work_id, count, average in review_rows:
        stats[work_id]["review_count"] = count
        stats[work_id]["average_rating"] = float(average) if average is not None else 0.0

    image_rows = db.execute(
        select(models.WorkImage.work_id, models.WorkImage.work_img_url)
        .where(models.WorkImage.work_id.in_(work_ids))
        .order_by(models.WorkImage.id)
    ).all()
    for work_id, url in image_rows:
        stats[work_id]["images"].append(url)

    return stats
