from src.auth.context import AuthContext


def _org(org_id: str) -> dict:
    return {
        "id": org_id,
        "name": f"Organization {org_id}",
        "slug": org_id,
        "digest_enabled": True,
        "status": "active",
        "created_at": "2026-01-01T00:00:00+00:00",
        "updated_at": "2026-01-01T00:00:00+00:00",
    }


def _volunteer(volunteer_id: str, org_id: str, **extra) -> dict:
    row = {
        "id": volunteer_id,
        "organization_id": org_id,
        "first_name": "Ada",
        "last_name": "Lovelace",
        "email": f"{volunteer_id}@example.com",
        "phone": None,
        "skills": [],
        "status": "active",
        "created_at": "2026-01-01T00:00:00+00:00",
        "updated_at": "2026-01-01T00:00:00+00:00",
    }
    row.update(extra)
    return row


def _base_tables() -> dict:
    return {
        "organizations": [_org("org-1"), _org("org-2")],
        "volunteers": [
            _volunteer("v-1", "org-1", first_name="Ana", skills=["cooking", "driving"], created_at="2026-01-01T00:00:00+00:00"),
            _volunteer("v-2", "org-1", first_name="Ben", skills=["cooking", "baking"], created_at="2026-01-02T00:00:00+00:00"),
            _volunteer("v-3", "org-1", first_name="Cal", status="inactive", created_at="2026-01-03T00:00:00+00:00"),
            _volunteer("v-4", "org-2", first_name="Dora", skills=["cooking", "baking"], created_at="2026-01-04T00:00:00+00:00"),
        ],
    }


def _manager(org_id: str = "org-1") -> AuthContext:
    return AuthContext(user_id="u-manager", org_id=org_id, role="manager")


def _viewer(org_id: str = "org-1") -> AuthContext:
    return AuthContext(user_id="u-viewer", org_id=org_id, role="viewer")


def test_create_volunteer_applies_defaults(client, fake_db, set_auth):
    fake_db.tables = _base_tables()
    set_auth(_manager())

    response = client.post(
        "/api/v1/volunteers/",
        json={"organization_id": "org-1", "first_name": "Grace", "last_name": "Hopper", "email": "grace@example.com"},
    )

    assert response.status_code == 201
    body = response.json()
    assert body["skills"] == []
    assert body["status"] == "active"
    assert body["organization_id"] == "org-1"
    assert len(fake_db.tables["volunteers"]) == 5


def test_create_volunteer_for_missing_organization_is_rejected(client, fake_db, set_auth):
    fake_db.tables = {"organizations": [], "volunteers": []}
    set_auth(_manager(org_id="org-gone"))

    response = client.post(
        "/api/v1/volunteers/",
        json={"organization_id": "org-gone", "first_name": "Grace", "last_name": "Hopper", "email": "grace@example.com"},
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Organization not found"
    assert fake_db.tables["volunteers"] == []


def test_create_volunteer_in_other_organization_is_forbidden(client, fake_db, set_auth):
    fake_db.tables = _base_tables()
    set_auth(_manager(org_id="org-2"))

    response = client.post(
        "/api/v1/volunteers/",
        json={"organization_id": "org-1", "first_name": "Grace", "last_name": "Hopper", "email": "grace@example.com"},
    )

    assert response.status_code == 403
    assert ("organizations", "select") not in fake_db.calls


def test_viewer_cannot_create_volunteer(client, fake_db, set_auth):
    fake_db.tables = _base_tables()
    set_auth(_viewer())

    response = client.post(
        "/api/v1/volunteers/",
        json={"organization_id": "org-1", "first_name": "Grace", "last_name": "Hopper", "email": "grace@example.com"},
    )

    assert response.status_code == 403


def test_create_volunteer_validates_email(client, fake_db, set_auth):
    fake_db.tables = _base_tables()
    set_auth(_manager())

    response = client.post(
        "/api/v1/volunteers/",
        json={"organization_id": "org-1", "first_name": "Grace", "last_name": "Hopper", "email": "not-an-email"},
    )

    assert response.status_code == 422
    assert any(detail["field"] == "email" for detail in response.json()["details"])


def test_list_defaults_to_actor_organization(client, fake_db, set_auth):
    fake_db.tables = _base_tables()
    set_auth(_viewer())

    response = client.get("/api/v1/volunteers/")

    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 3
    assert [row["id"] for row in body["data"]] == ["v-3", "v-2", "v-1"]


def test_list_other_organization_is_forbidden(client, fake_db, set_auth):
    fake_db.tables = _base_tables()
    set_auth(_viewer())

    response = client.get("/api/v1/volunteers/?organization_id=org-2")

    assert response.status_code == 403


def test_list_skills_filter_requires_all_skills(client, fake_db, set_auth):
    fake_db.tables = _base_tables()
    set_auth(_viewer())

    both = client.get("/api/v1/volunteers/?organization_id=org-1&skills=cooking,baking").json()
    cooking = client.get("/api/v1/volunteers/?skills=cooking").json()

    assert [row["id"] for row in both["data"]] == ["v-2"]
    assert sorted(row["id"] for row in cooking["data"]) == ["v-1", "v-2"]


def test_list_status_search_and_sort(client, fake_db, set_auth):
    fake_db.tables = _base_tables()
    set_auth(_viewer())

    active = client.get("/api/v1/volunteers/?status=active&sort_by=first_name&sort_order=asc").json()
    search = client.get("/api/v1/volunteers/?search=V-3@EXAMPLE").json()

    assert [row["first_name"] for row in active["data"]] == ["Ana", "Ben"]
    assert [row["id"] for row in search["data"]] == ["v-3"]


def test_get_volunteer_in_other_org_is_forbidden(client, fake_db, set_auth):
    fake_db.tables = _base_tables()
    set_auth(_viewer(org_id="org-2"))

    response = client.get("/api/v1/volunteers/v-1")

    assert response.status_code == 403


def test_get_missing_volunteer_is_404(client, fake_db, set_auth):
    fake_db.tables = _base_tables()
    set_auth(_viewer())

    response = client.get("/api/v1/volunteers/v-404")

    assert response.status_code == 404
    assert response.json()["message"] == "Volunteer not found"


def test_manager_patches_volunteer(client, fake_db, set_auth):
    fake_db.tables = _base_tables()
    set_auth(_manager())

    response = client.patch("/api/v1/volunteers/v-1", json={"skills": ["first aid", "first aid", " driving "], "status": "inactive"})

    assert response.status_code == 200
    body = response.json()
    assert body["skills"] == ["first aid", "driving"]
    assert body["status"] == "inactive"
    assert body["organization_id"] == "org-1"


def test_patch_cannot_move_volunteer_to_other_organization(client, fake_db, set_auth):
    fake_db.tables = _base_tables()
    set_auth(_manager())

    response = client.patch("/api/v1/volunteers/v-1", json={"organization_id": "org-2"})

    assert response.status_code == 422
    assert fake_db.tables["volunteers"][0]["organization_id"] == "org-1"


def test_volunteer_role_cannot_patch(client, fake_db, set_auth):
    fake_db.tables = _base_tables()
    set_auth(AuthContext(user_id="u-vol", org_id="org-1", role="volunteer"))

    response = client.patch("/api/v1/volunteers/v-1", json={"status": "inactive"})

    assert response.status_code == 403
    assert fake_db.tables["volunteers"][0]["status"] == "active"


def test_put_replaces_editable_fields(client, fake_db, set_auth):
    fake_db.tables = _base_tables()
    set_auth(_manager())

    response = client.put(
        "/api/v1/volunteers/v-2",
        json={"first_name": "Benjamin", "last_name": "Franklin", "email": "ben@example.com"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["first_name"] == "Benjamin"
    assert body["skills"] == []
    assert body["status"] == "active"


def test_manager_of_other_org_cannot_delete(client, fake_db, set_auth):
    fake_db.tables = _base_tables()
    set_auth(_manager(org_id="org-2"))

    response = client.delete("/api/v1/volunteers/v-1")

    assert response.status_code == 403
    assert len(fake_db.tables["volunteers"]) == 4


def test_manager_deletes_volunteer(client, fake_db, set_auth):
    fake_db.tables = _base_tables()
    set_auth(_manager())

    response = client.delete("/api/v1/volunteers/v-1")

    assert response.status_code == 204
    assert [row["id"] for row in fake_db.tables["volunteers"]] == ["v-2", "v-3", "v-4"]


def test_patch_rejects_null_for_required_fields(client, fake_db, set_auth):
    fake_db.tables = _base_tables()
    set_auth(_manager())

    response = client.patch("/api/v1/volunteers/v-1", json={"first_name": None, "skills": None})

    assert response.status_code == 422
    assert {detail["field"] for detail in response.json()["details"]} == {"first_name", "skills"}
    stored = fake_db.tables["volunteers"][0]
    assert stored["first_name"] == "Ana"
    assert stored["skills"] == ["cooking", "driving"]


def test_patch_may_clear_phone(client, fake_db, set_auth):
    tables = _base_tables()
    tables["volunteers"][0]["phone"] = "555-0100"
    fake_db.tables = tables
    set_auth(_manager())

    response = client.patch("/api/v1/volunteers/v-1", json={"phone": None})

    assert response.status_code == 200
    assert response.json()["phone"] is None


def test_skills_dedupe_ignores_case(client, fake_db, set_auth):
    fake_db.tables = _base_tables()
    set_auth(_manager())

    response = client.post(
        "/api/v1/volunteers/",
        json={
            "organization_id": "org-1",
            "first_name": "Grace",
            "last_name": "Hopper",
            "email": "grace@example.com",
            "skills": ["Cooking", "cooking", " COOKING ", "baking"],
        },
    )

    assert response.status_code == 201
    assert response.json()["skills"] == ["Cooking", "baking"]
