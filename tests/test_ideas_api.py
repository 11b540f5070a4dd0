"""Tests for the users, ideas, versions and review endpoints."""

from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.models.idea import Stage
from tests.conftest import as_user, create_category, create_idea, create_user


async def test_register_user(client: AsyncClient):
    """POST /api/users should create a user with the default role."""
    resp = await client.post("/api/users", json={"name": "Yash", "email": "Yash@Example.com"})
    assert resp.status_code == 201
    data = resp.json()
    assert data["email"] == "yash@example.com"
    assert data["roles"] == ["user"]


async def test_register_user_rejects_bad_email_and_duplicates(client: AsyncClient):
    resp = await client.post("/api/users", json={"name": "x", "email": "not-an-email"})
    assert resp.status_code == 422

    payload = {"name": "Ann", "email": "ann@example.com"}
    assert (await client.post("/api/users", json=payload)).status_code == 201
    resp = await client.post("/api/users", json=payload)
    assert resp.status_code == 409
    assert resp.json()["error"] == "state_conflict"


async def test_identity_header_required(client: AsyncClient, db: AsyncSession):
    """Endpoints that act for a user need a known X-User-Id."""
    user = await create_user(db, "yash")
    await db.commit()

    assert (await client.get("/api/users/me")).status_code == 401
    assert (await client.get("/api/users/me", headers={"X-User-Id": "ghost"})).status_code == 401
    resp = await client.get("/api/users/me", headers=as_user(user))
    assert resp.status_code == 200
    assert resp.json()["id"] == user.id


async def test_only_admins_change_roles(client: AsyncClient, db: AsyncSession):
    admin = await create_user(db, "admin", roles=["administrator"])
    user = await create_user(db, "user")
    await db.commit()

    body = {"roles": ["user", "manager"]}
    resp = await client.put(f"/api/users/{user.id}/roles", json=body, headers=as_user(user))
    assert resp.status_code == 403
    resp = await client.put(f"/api/users/{user.id}/roles", json=body, headers=as_user(admin))
    assert resp.status_code == 200
    assert resp.json()["roles"] == ["user", "manager"]


async def test_create_and_edit_idea(client: AsyncClient, db: AsyncSession):
    author = await create_user(db, "author")
    category = await create_category(db)
    await db.commit()

    resp = await client.post(
        "/api/ideas",
        json={
            "title": "Digital permits",
            "description": "Replace paper permits-to-work with a tablet workflow.",
            "category_id": category.id,
        },
        headers=as_user(author),
    )
    assert resp.status_code == 201
    idea = resp.json()
    assert idea["current_stage"] == "draft"

    resp = await client.patch(
        f"/api/ideas/{idea['id']}",
        json={"title": "Digital permits-to-work", "note": "Clearer title"},
        headers=as_user(author),
    )
    assert resp.status_code == 200
    assert resp.json()["title"] == "Digital permits-to-work"

    versions = (await client.get(f"/api/ideas/{idea['id']}/versions")).json()
    assert [v["version_number"] for v in versions] == [2, 1]

    resp = await client.get(
        "/api/versions/compare", params={"a": versions[1]["id"], "b": versions[0]["id"]}
    )
    assert resp.status_code == 200
    assert resp.json()["differences"]["title"] == {
        "old": "Digital permits",
        "new": "Digital permits-to-work",
    }

    resp = await client.post(
        f"/api/versions/{versions[1]['id']}/restore", headers=as_user(author)
    )
    assert resp.status_code == 200
    assert resp.json()["title"] == "Digital permits"


async def test_create_idea_validation(client: AsyncClient, db: AsyncSession):
    author = await create_user(db, "author")
    await db.commit()

    resp = await client.post(
        "/api/ideas", json={"title": "Hi", "description": "short"}, headers=as_user(author)
    )
    assert resp.status_code == 422
    assert resp.json()["error"] == "validation_error"


async def test_get_missing_idea(client: AsyncClient):
    resp = await client.get("/api/ideas/does-not-exist")
    assert resp.status_code == 404
    assert resp.json() == {"detail": "Idea does-not-exist not found", "error": "not_found"}


async def test_list_ideas_by_stage(client: AsyncClient, db: AsyncSession):
    author = await create_user(db, "author")
    await create_idea(db, author, title="Drafted")
    await create_idea(db, author, title="In review", stage=Stage.MANAGER_REVIEW)
    await db.commit()

    resp = await client.get("/api/ideas", params={"stage": "manager_review"})
    assert [i["title"] for i in resp.json()] == ["In review"]
    assert (await client.get("/api/ideas", params={"stage": "limbo"})).status_code == 422


async def test_review_pipeline_over_http(client: AsyncClient, db: AsyncSession):
    author = await create_user(db, "author")
    manager = await create_user(db, "manager", roles=["manager"])
    sme = await create_user(db, "sme", roles=["sme"])
    board = await create_user(db, "board", roles=["board_member"])
    idea = await create_idea(db, author)
    await db.commit()

    assert (
        await client.post(f"/api/ideas/{idea.id}/submit", headers=as_user(author))
    ).status_code == 200
    resp = await client.post(f"/api/ideas/{idea.id}/open-review", headers=as_user(manager))
    assert resp.json()["current_stage"] == "manager_review"

    pending = (await client.get("/api/reviews/pending", headers=as_user(manager))).json()
    assert [i["id"] for i in pending] == [idea.id]

    review = {"level": "manager", "decision": "approved", "rating": 4, "comments": "Solid"}
    resp = await client.post(
        f"/api/ideas/{idea.id}/reviews", json=review, headers=as_user(author)
    )
    assert resp.status_code == 403
    assert resp.json()["error"] == "self_review_forbidden"

    resp = await client.post(
        f"/api/ideas/{idea.id}/reviews", json=review, headers=as_user(manager)
    )
    assert resp.status_code == 201
    assert resp.json()["new_stage"] == "sme_review"

    resp = await client.post(
        f"/api/ideas/{idea.id}/reviews", json=review, headers=as_user(manager)
    )
    assert resp.status_code == 409
    assert resp.json()["error"] == "stage_mismatch"

    resp = await client.post(
        f"/api/ideas/{idea.id}/reviews",
        json={"level": "sme", "decision": "approved", "rating": 9},
        headers=as_user(sme),
    )
    assert resp.status_code == 422

    await client.post(
        f"/api/ideas/{idea.id}/reviews",
        json={"level": "sme", "decision": "approved", "rating": 5},
        headers=as_user(sme),
    )
    resp = await client.post(
        f"/api/ideas/{idea.id}/quick-approve", json={"level": "board"}, headers=as_user(board)
    )
    assert resp.status_code == 201
    assert resp.json()["new_stage"] == "completed"
    assert resp.json()["review"]["rating"] == 5

    reviews = (await client.get(f"/api/ideas/{idea.id}/reviews")).json()
    assert len(reviews) == 3

    await db.refresh(idea)
    assert idea.current_stage == Stage.COMPLETED.value
    assert idea.completed_at is not None

    points = (await client.get("/api/points/me", headers=as_user(author))).json()
    assert points["total_points"] == 300


async def test_audit_trail_is_admin_only(client: AsyncClient, db: AsyncSession):
    author = await create_user(db, "author")
    admin = await create_user(db, "admin", roles=["administrator"])
    await db.commit()

    resp = await client.post(
        "/api/ideas",
        json={"title": "Shared tool library", "description": "Pool rarely used tools per region."},
        headers=as_user(author),
    )
    idea_id = resp.json()["id"]
    await client.post(f"/api/ideas/{idea_id}/submit", headers=as_user(author))

    url = f"/api/audit/idea/{idea_id}"
    assert (await client.get(url, headers=as_user(author))).status_code == 403
    trail = (await client.get(url, headers=as_user(admin))).json()
    assert {entry["action"] for entry in trail} == {"create", "status_change"}
    assert all(entry["entity_id"] == idea_id for entry in trail)


async def test_list_limits_are_bounded(client: AsyncClient, db: AsyncSession):
    user = await create_user(db, "user")
    await db.commit()

    assert (await client.get("/api/ideas", params={"limit": -1})).status_code == 422
    assert (await client.get("/api/ideas", params={"limit": 201})).status_code == 422
    assert (await client.get("/api/ideas", params={"limit": 200})).status_code == 200
    resp = await client.get("/api/points/leaderboard", params={"limit": 0})
    assert resp.status_code == 422
    resp = await client.get("/api/notifications", params={"limit": -5}, headers=as_user(user))
    assert resp.status_code == 422
