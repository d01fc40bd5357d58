import pytest
from fastapi.testclient import TestClient

from budget_tracker.core.security import create_access_token
from budget_tracker.main import create_app
from budget_tracker.models import DivisionCreate, UserRole
from tests.helpers import FailingAdapter, add_code, add_project, add_user, make_config, make_store


@pytest.fixture
def config():
    return make_config()


@pytest.fixture
def api_store():
    return make_store()


@pytest.fixture
def people(api_store):
    return {
        "root": add_user(api_store, "Sarah Chen", UserRole.SUPER_ADMIN),
        "admin": add_user(api_store, "Adam Lee", UserRole.ADMIN),
        "alice": add_user(api_store, "Alice Tan"),
        "bob": add_user(api_store, "Bob Kumar"),
    }


@pytest.fixture
def client(config, api_store):
    with TestClient(create_app(config, store=api_store)) as c:
        yield c


@pytest.fixture
def auth(config, people):
    def headers(name):
        token = create_access_token(people[name].id, config=config)
        return {"Authorization": f"Bearer {token}"}
    return headers


def test_health(client):
    response = client.get("/api/v1/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "storage": "memory", "persistence_errors": 0}


def test_authentication_required(client, people):
    assert client.get("/api/v1/projects").status_code == 401
    bad = client.get("/api/v1/projects", headers={"Authorization": "Bearer not-a-token"})
    assert bad.status_code == 403


def test_cookie_authentication(client, config, people):
    token = create_access_token(people["alice"].id, config=config)
    client.cookies.set("access_token", token)
    response = client.get("/api/v1/users/me")
    assert response.status_code == 200
    assert response.json()["email"] == "alice.tan@example.com"


def test_token_for_deleted_user(client, auth, api_store, people):
    headers = auth("bob")
    api_store.delete_user(people["bob"].id)
    assert client.get("/api/v1/users/me", headers=headers).status_code == 404


def test_project_lifecycle(client, auth, people):
    response = client.post(
        "/api/v1/projects",
        json={"name": "Website Redesign", "budget": 500, "assignedUsers": [people["bob"].id]},
        headers=auth("alice"),
    )
    assert response.status_code == 200
    project = response.json()
    assert project["createdBy"] == people["alice"].id
    assert project["status"] == "planning"
    assert project["spent"] == 0

    entry = client.post(
        "/api/v1/budget-entries",
        json={"projectId": project["id"], "amount": 120, "type": "expense", "date": "2024-03-01"},
        headers=auth("bob"),
    )
    assert entry.status_code == 200
    assert entry.json()["createdBy"] == people["bob"].id

    spent = client.get(f"/api/v1/projects/{project['id']}", headers=auth("alice")).json()["spent"]
    assert spent == 120

    patched = client.patch(f"/api/v1/projects/{project['id']}", json={"description": "Phase 2"},
                           headers=auth("bob"))
    assert patched.status_code == 200
    assert patched.json()["description"] == "Phase 2"

    assert client.delete(f"/api/v1/projects/{project['id']}", headers=auth("alice")).status_code == 403
    assert client.delete(f"/api/v1/projects/{project['id']}", headers=auth("root")).status_code == 200
    assert client.get("/api/v1/budget-entries", headers=auth("root")).json() == []


def test_project_validation(client, auth):
    response = client.post("/api/v1/projects", json={"name": "ab", "budget": -5}, headers=auth("alice"))
    assert response.status_code == 400
    assert len(response.json()["detail"]) == 2

    dates = client.post(
        "/api/v1/projects",
        json={"name": "Backwards", "startDate": "2024-05-01", "endDate": "2024-04-01"},
        headers=auth("alice"),
    )
    assert dates.status_code == 400


def test_project_update_forbidden_for_outsiders(client, auth, api_store, people):
    project = add_project(api_store, created_by=people["root"].id)
    response = client.patch(f"/api/v1/projects/{project.id}", json={"name": "Hijacked"}, headers=auth("bob"))
    assert response.status_code == 403
    assert client.patch("/api/v1/projects/missing", json={"name": "Nothing"}, headers=auth("root")).status_code == 404


def test_entries_need_membership(client, auth, api_store, people):
    project = add_project(api_store, created_by=people["root"].id)
    body = {"projectId": project.id, "amount": 10}
    assert client.post("/api/v1/budget-entries", json=body, headers=auth("bob")).status_code == 403
    assert client.post("/api/v1/budget-entries", json=body, headers=auth("admin")).status_code == 200
    missing = client.post("/api/v1/budget-entries", json={"projectId": "nope", "amount": 10}, headers=auth("admin"))
    assert missing.status_code == 404
    zero = client.post("/api/v1/budget-entries", json={"projectId": project.id, "amount": 0}, headers=auth("admin"))
    assert zero.status_code == 422


def test_budget_codes(client, auth):
    body = {"code": "1-2345", "name": "Marketing", "budget": 1000}
    assert client.post("/api/v1/budget-codes", json=body, headers=auth("alice")).status_code == 403

    created = client.post("/api/v1/budget-codes", json=body, headers=auth("admin"))
    assert created.status_code == 200
    code_id = created.json()["id"]
    assert created.json()["isActive"] is True

    assert client.post("/api/v1/budget-codes", json=body, headers=auth("admin")).status_code == 400
    bad = client.post("/api/v1/budget-codes", json={"code": "ABC", "name": "Bad"}, headers=auth("admin"))
    assert bad.status_code == 422

    toggled = client.post(f"/api/v1/budget-codes/{code_id}/toggle", headers=auth("admin"))
    assert toggled.json()["isActive"] is False
    assert client.get("/api/v1/budget-codes?active_only=true", headers=auth("alice")).json() == []

    assert client.delete(f"/api/v1/budget-codes/{code_id}", headers=auth("admin")).status_code == 403
    assert client.delete(f"/api/v1/budget-codes/{code_id}", headers=auth("root")).status_code == 200


def test_code_alert_reaches_notifications(client, auth, api_store, people):
    code = add_code(api_store, budget=1000)
    project = add_project(api_store, created_by=people["admin"].id)
    client.post("/api/v1/budget-entries",
                json={"projectId": project.id, "amount": 900, "budgetCodeId": code.id},
                headers=auth("admin"))

    mine = client.get("/api/v1/notifications", headers=auth("alice")).json()
    assert "budget_code_alert" in [n["type"] for n in mine]
    count = client.get("/api/v1/notifications/unread-count", headers=auth("alice")).json()["count"]
    assert count == len(mine)

    first = mine[0]["id"]
    read = client.post(f"/api/v1/notifications/{first}/read", headers=auth("alice"))
    assert read.json()["read"] is True
    assert client.post(f"/api/v1/notifications/{first}/read", headers=auth("bob")).status_code == 403

    assert client.post("/api/v1/notifications/read-all", headers=auth("alice")).json() == {"updated": count - 1}
    assert client.get("/api/v1/notifications?unread_only=true", headers=auth("alice")).json() == []


def test_users_endpoints(client, auth, people):
    assert client.get("/api/v1/users", headers=auth("alice")).status_code == 403
    assert len(client.get("/api/v1/users", headers=auth("admin")).json()) == 4

    body = {"name": "New Hire", "email": "new.hire@example.com"}
    assert client.post("/api/v1/users", json=body, headers=auth("admin")).status_code == 403
    created = client.post("/api/v1/users", json=body, headers=auth("root"))
    assert created.status_code == 200
    assert created.json()["initials"] == "NH"
    assert created.json()["role"] == "user"

    assert client.post("/api/v1/users", json=body, headers=auth("root")).status_code == 400
    assert client.delete(f"/api/v1/users/{people['root'].id}", headers=auth("root")).status_code == 400

    me = client.patch("/api/v1/users/me", json={"name": "Alice Wong"}, headers=auth("alice"))
    assert me.json()["initials"] == "AW"
    promote = client.patch("/api/v1/users/me", json={"role": "super_admin"}, headers=auth("alice"))
    assert promote.status_code == 403


def test_organization_endpoints(client, auth):
    division = client.post("/api/v1/divisions", json={"name": "Engineering"}, headers=auth("admin")).json()
    unit = client.post("/api/v1/units", json={"name": "Platform", "divisionId": division["id"]},
                       headers=auth("admin"))
    assert unit.status_code == 200
    orphan = client.post("/api/v1/units", json={"name": "Lost", "divisionId": "nope"}, headers=auth("admin"))
    assert orphan.status_code == 400

    assert client.delete(f"/api/v1/divisions/{division['id']}", headers=auth("admin")).status_code == 403
    assert client.delete(f"/api/v1/divisions/{division['id']}", headers=auth("root")).status_code == 200
    assert client.get("/api/v1/units", headers=auth("alice")).json() == []


def test_settings(client, auth, api_store):
    assert client.get("/api/v1/settings", headers=auth("alice")).json()["budgetAlertThreshold"] == 75
    assert client.patch("/api/v1/settings", json={"currency": "USD"}, headers=auth("admin")).status_code == 403

    updated = client.patch("/api/v1/settings", json={"budgetAlertThreshold": 90}, headers=auth("root"))
    assert updated.status_code == 200
    assert updated.json()["budgetAlertThreshold"] == 90
    assert api_store.get_settings().budget_alert_threshold == 90

    assert client.post("/api/v1/settings/rebuild-rollups", headers=auth("admin")).status_code == 403
    assert client.post("/api/v1/settings/rebuild-rollups", headers=auth("root")).status_code == 200


def test_app_builds_its_own_store(tmp_path):
    config = make_config(STORAGE_BACKEND="local", DATA_DIR=tmp_path)
    app = create_app(config)
    with TestClient(app) as c:
        assert c.get("/api/v1/health").json()["storage"] == "local"
        app.state.store.create_division(DivisionCreate(name="Ops"))
    assert (tmp_path / "divisions.json").exists()


def test_write_failures_survive_health_checks(config):
    failing = make_store(FailingAdapter())
    root = add_user(failing, "Sarah Chen", UserRole.SUPER_ADMIN)
    admin = add_user(failing, "Adam Lee", UserRole.ADMIN)
    token = {name: {"Authorization": f"Bearer {create_access_token(user.id, config=config)}"}
             for name, user in (("root", root), ("admin", admin))}

    with TestClient(create_app(config, store=failing)) as c:
        for _ in range(2):
            health = c.get("/api/v1/health").json()
            assert health["status"] == "degraded"
            assert health["persistence_errors"] > 0

        queued = c.get("/api/v1/settings/persistence-errors", headers=token["admin"]).json()
        assert {error["category"] for error in queued} == {"network"}
        assert c.post("/api/v1/settings/persistence-errors/drain", headers=token["admin"]).status_code == 403

        drained = c.post("/api/v1/settings/persistence-errors/drain", headers=token["root"]).json()
        assert drained == queued
        assert c.get("/api/v1/health").json()["persistence_errors"] == 0


def test_entry_cannot_be_moved_into_a_foreign_project(client, auth, api_store, people):
    own = add_project(api_store, created_by=people["alice"].id)
    foreign = add_project(api_store, name="Office Move", created_by=people["bob"].id)
    entry = client.post("/api/v1/budget-entries", json={"projectId": own.id, "amount": 50},
                        headers=auth("alice")).json()

    moved = client.patch(f"/api/v1/budget-entries/{entry['id']}", json={"projectId": foreign.id},
                         headers=auth("alice"))
    assert moved.status_code == 403
    missing = client.patch(f"/api/v1/budget-entries/{entry['id']}", json={"projectId": "nope"},
                           headers=auth("alice"))
    assert missing.status_code == 404
    assert api_store.get_project(foreign.id).spent == 0
