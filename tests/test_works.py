import pytest
from fastapi import status
from sqlalchemy import select, func
from sqlalchemy.exc import OperationalError

from handyhub import aggregates, crud, models
from handyhub.auth import get_password_hash
from handyhub.errors import Conflict, ConflictKind
from handyhub.schemas import AccountCreate


def make_account(db_session, email):
    account_in = AccountCreate(
        first_name="Work", last_name="Owner", email=email, password="secret123"
    )
    return crud.create_account(db_session, account_in, get_password_hash("secret123"))


def count(db_session, model):
    return db_session.execute(select(func.count()).select_from(model)).scalar_one()


def test_work_without_images_has_empty_image_list(db_session):
    owner = make_account(db_session, "empty@example.com")
    work = crud.create_work_with_images(db_session, owner.id, "T", [])
    assert work["images"] == []
    assert work["review_count"] == 0
    assert work["average_rating"] == 0


def test_duplicate_image_in_request_rolls_back_whole_work(db_session):
    owner = make_account(db_session, "atomic@example.com")

    with pytest.raises(Conflict) as excinfo:
        crud.create_work_with_images(db_session, owner.id, "Deck", ["a", "a"])

    assert excinfo.value.kind is ConflictKind.DUPLICATE_WORK_IMAGE
    assert count(db_session, models.Work) == 0
    assert count(db_session, models.WorkImage) == 0


def test_create_work_over_http(client, register):
    account_id, headers = register("creator@example.com")
    resp = client.post(
        "/works/",
        json={"title": "Kitchen", "images": ["https://img/1.jpg", "https://img/2.jpg"]},
        headers=headers,
    )
    assert resp.status_code == status.HTTP_201_CREATED
    data = resp.json()
    assert data["account_id"] == account_id
    assert data["images"] == ["https://img/1.jpg", "https://img/2.jpg"]


def test_duplicate_image_over_http_creates_nothing(client, register):
    account_id, headers = register("dupimg@example.com")
    resp = client.post(
        "/works/", json={"title": "Fence", "images": ["https://img/x", "https://img/x"]},
        headers=headers,
    )
    assert resp.status_code == status.HTTP_400_BAD_REQUEST
    assert resp.json()["kind"] == "duplicate_work_image"
    assert client.get(f"/works/user/{account_id}").json() == []


def test_list_works_reports_images_per_work(client, register):
    account_id, headers = register("portfolio@example.com")
    client.post("/works/", json={"title": "Bare"}, headers=headers)
    client.post("/works/", json={"title": "Shown", "images": ["https://img/s"]}, headers=headers)

    works = client.get(f"/works/user/{account_id}").json()
    assert [w["title"] for w in works] == ["Shown", "Bare"]
    assert works[0]["images"] == ["https://img/s"]
    assert works[1]["images"] == []


def test_work_detail_includes_owner_and_statistics(client, register):
    _, owner = register("detail@example.com", first_name="Bob", last_name="Builder")
    _, reviewer = register("critic@example.com")
    work = client.post("/works/", json={"title": "Shed"}, headers=owner).json()
    client.post(
        "/reviews/work",
        json={"work_id": work["id"], "rating": 4, "review_text": "Solid work, on time."},
        headers=reviewer,
    )

    detail = client.get(f"/works/{work['id']}").json()
    assert detail["first_name"] == "Bob"
    assert detail["last_name"] == "Builder"
    assert detail["review_count"] == 1
    assert detail["average_rating"] == 4


def test_missing_work_detail_is_404(client):
    assert client.get("/works/12345").status_code == status.HTTP_404_NOT_FOUND


def test_foreign_and_missing_work_update_look_the_same(client, register):
    _, owner = register("realowner@example.com")
    _, other = register("notowner@example.com")
    work = client.post("/works/", json={"title": "Patio"}, headers=owner).json()

    foreign = client.put(f"/works/{work['id']}", json={"title": "Mine"}, headers=other)
    missing = client.put("/works/99999", json={"title": "Mine"}, headers=other)

    assert foreign.status_code == missing.status_code == status.HTTP_404_NOT_FOUND
    assert foreign.json() == missing.json()
    assert client.get(f"/works/{work['id']}").json()["title"] == "Patio"


def test_owner_can_rename_work(client, register):
    _, owner = register("renamer@example.com")
    work = client.post("/works/", json={"title": "Old"}, headers=owner).json()
    resp = client.put(f"/works/{work['id']}", json={"title": "New"}, headers=owner)
    assert resp.status_code == status.HTTP_200_OK
    assert resp.json()["title"] == "New"


def test_work_images_can_be_added_and_removed(client, register):
    _, owner = register("gallery@example.com")
    work = client.post("/works/", json={"title": "Bath", "images": ["https://img/a"]}, headers=owner).json()

    added = client.post(
        f"/works/{work['id']}/images", json={"work_img_url": "https://img/b"}, headers=owner
    )
    assert added.status_code == status.HTTP_201_CREATED

    duplicate = client.post(
        f"/works/{work['id']}/images", json={"work_img_url": "https://img/b"}, headers=owner
    )
    assert duplicate.status_code == status.HTTP_400_BAD_REQUEST
    assert duplicate.json()["kind"] == "duplicate_work_image"

    removed = client.delete(
        f"/works/{work['id']}/images", json={"work_img_url": "https://img/a"}, headers=owner
    )
    assert removed.status_code == status.HTTP_200_OK
    assert client.get(f"/works/{work['id']}").json()["images"] == ["https://img/b"]

    gone = client.delete(
        f"/works/{work['id']}/images", json={"work_img_url": "https://img/a"}, headers=owner
    )
    assert gone.status_code == status.HTTP_404_NOT_FOUND


def test_deleting_work_removes_images_and_reviews(client, db_session, register):
    _, owner = register("deleter@example.com")
    _, reviewer = register("fan@example.com")
    work = client.post("/works/", json={"title": "Gate", "images": ["https://img/g"]}, headers=owner).json()
    client.post(
        "/reviews/work",
        json={"work_id": work["id"], "rating": 5, "review_text": "Great gate, thanks!"},
        headers=reviewer,
    )

    assert client.delete(f"/works/{work['id']}", headers=reviewer).status_code == 404
    assert client.delete(f"/works/{work['id']}", headers=owner).status_code == 200

    assert count(db_session, models.Work) == 0
    assert count(db_session, models.WorkImage) == 0
    assert count(db_session, models.WorkReview) == 0


def test_store_failure_during_work_creation_leaves_nothing(client, db_session, register, monkeypatch):
    account_id, headers = register("outage@example.com")

    def unavailable(db, work_id):
        raise OperationalError("SELECT work_images", {}, Exception("database is locked"))

    monkeypatch.setattr(aggregates, "image_urls", unavailable)

    resp = client.post(
        "/works/", json={"title": "Roof", "images": ["https://img/r1", "https://img/r2"]},
        headers=headers,
    )
    assert resp.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
    assert resp.json() == {"success": False, "detail": "Service temporarily unavailable"}

    monkeypatch.undo()
    assert count(db_session, models.Work) == 0
    assert count(db_session, models.WorkImage) == 0
    assert client.get(f"/works/user/{account_id}").json() == []
