import pytest
from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError

from handyhub import models
from handyhub.aggregates import average_rating, mean_rating, review_count, work_statistics
from handyhub.errors import Conflict, ConflictKind
from handyhub.store import conflict_for, constraint_name, translate_conflicts, unit_of_work


def add_account(db_session, email="store@example.com"):
    account = models.Account(
        first_name="Store", last_name="Test", email=email, hashed_password="x"
    )
    db_session.add(account)
    db_session.commit()
    return account


def test_conflict_kinds_by_constraint_name():
    assert conflict_for("uq_accounts_email") is ConflictKind.EMAIL_TAKEN
    assert conflict_for("uq_work_images_work_url") is ConflictKind.DUPLICATE_WORK_IMAGE
    assert conflict_for("uq_phone_numbers_phone_number") is ConflictKind.PHONE_ALREADY_REGISTERED
    assert conflict_for("some_other_constraint") is None
    assert conflict_for(None) is None


def test_constraint_name_from_sqlite_error(db_session):
    add_account(db_session, "twin@example.com")
    db_session.add(
        models.Account(first_name="A", last_name="B", email="twin@example.com", hashed_password="x")
    )
    with pytest.raises(IntegrityError) as excinfo:
        db_session.commit()
    db_session.rollback()

    assert constraint_name(excinfo.value) == "uq_accounts_email"


def test_constraint_name_for_composite_unique(db_session):
    account = add_account(db_session)
    reviewer = add_account(db_session, "reviewer@store.example.com")
    work = models.Work(account_id=account.id, title="Shelf")
    db_session.add(work)
    db_session.commit()

    for _ in range(2):
        db_session.add(
            models.WorkReview(
                reviewer_id=reviewer.id, work_id=work.id, rating=3, review_text="Fine shelf work."
            )
        )
    with pytest.raises(IntegrityError) as excinfo:
        db_session.commit()
    db_session.rollback()

    assert constraint_name(excinfo.value) == "uq_work_reviews_reviewer_work"


def test_mean_rating():
    assert mean_rating([]) == 0.0
    assert mean_rating([3, 5]) == 4.0
    assert mean_rating(iter([1, 2, 2])) == pytest.approx(5 / 3)


def test_unit_of_work_rolls_back_every_write(db_session):
    account = add_account(db_session)
    account_id = account.id

    with pytest.raises(RuntimeError):
        with unit_of_work(db_session):
            db_session.add(models.Work(account_id=account_id, title="One"))
            db_session.flush()
            db_session.add(models.Work(account_id=account_id, title="Two"))
            db_session.flush()
            raise RuntimeError("boom")

    works = db_session.execute(select(func.count()).select_from(models.Work)).scalar_one()
    assert works == 0


def test_unit_of_work_commits_on_success(db_session):
    account = add_account(db_session)
    with unit_of_work(db_session):
        db_session.add(models.Work(account_id=account.id, title="Kept"))

    titles = db_session.scalars(select(models.Work.title)).all()
    assert titles == ["Kept"]


def test_translate_conflicts_raises_conflict_kind(db_session):
    add_account(db_session, "clash@example.com")
    with pytest.raises(Conflict) as excinfo:
        with translate_conflicts(db_session):
            with unit_of_work(db_session):
                db_session.add(
                    models.Account(
                        first_name="C", last_name="D", email="clash@example.com", hashed_password="x"
                    )
                )
    assert excinfo.value.kind is ConflictKind.EMAIL_TAKEN
    assert excinfo.value.message == "User with this email already exists"


def test_translate_conflicts_passes_other_integrity_errors(db_session):
    with pytest.raises(IntegrityError):
        with translate_conflicts(db_session):
            with unit_of_work(db_session):
                db_session.add(models.PhoneNumber(account_id=999, phone_number="5559999"))


def test_work_aggregates_are_read_from_reviews(db_session):
    owner = add_account(db_session)
    first = add_account(db_session, "first@store.example.com")
    second = add_account(db_session, "second@store.example.com")
    work = models.Work(account_id=owner.id, title="Bench")
    db_session.add(work)
    db_session.commit()

    assert review_count(db_session, work.id) == 0
    assert average_rating(db_session, work.id) == 0.0

    for reviewer, rating in ((first, 2), (second, 5)):
        db_session.add(
            models.WorkReview(
                reviewer_id=reviewer.id, work_id=work.id, rating=rating, review_text="Sturdy bench."
            )
        )
    db_session.commit()

    assert review_count(db_session, work.id) == 2
    assert average_rating(db_session, work.id) == 3.5
    assert work_statistics(db_session, [work.id, 9999]) == {
        work.id: {"images": [], "review_count": 2, "average_rating": 3.5},
        9999: {"images": [], "review_count": 0, "average_rating": 0.0},
    }
