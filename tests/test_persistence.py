import json
import os

import pytest

from budget_tracker.core.exceptions import PersistenceError, PersistenceErrorCategory
from budget_tracker.models import ProjectUpdate
from budget_tracker.persistence import ALL_KEYS, Debouncer, JsonFileAdapter, MemoryAdapter, build_adapter
from budget_tracker.services.store import EntityStore
from tests.helpers import FailingAdapter, add_code, add_entry, add_project, add_user, make_config, make_store


def test_json_adapter_round_trip(tmp_path):
    adapter = JsonFileAdapter(tmp_path / "data")
    assert adapter.load("users", []) == []

    adapter.save("users", [{"id": "u1", "name": "Sarah Chen"}])

    assert adapter.load("users") == [{"id": "u1", "name": "Sarah Chen"}]
    assert json.loads(adapter.get_path("users").read_text(encoding="utf-8"))[0]["id"] == "u1"
    assert [p.name for p in (tmp_path / "data").iterdir()] == ["users.json"]


def test_json_adapter_sets_corrupt_file_aside(tmp_path, caplog):
    adapter = JsonFileAdapter(tmp_path)
    adapter.get_path("projects").write_text("{not json", encoding="utf-8")

    assert adapter.load("projects", []) == []
    assert "Could not read" in caplog.text
    kept = list(tmp_path.glob("projects.json.corrupt-*"))
    assert len(kept) == 1
    assert kept[0].read_text(encoding="utf-8") == "{not json"

    adapter.save("projects", [])
    assert kept[0].exists()


def test_json_adapter_read_errors_propagate(tmp_path):
    adapter = JsonFileAdapter(tmp_path)
    adapter.get_path("users").mkdir()
    with pytest.raises(PersistenceError) as info:
        adapter.load("users", [])
    assert info.value.key == "users"


@pytest.mark.skipif(os.name != "posix" or os.geteuid() == 0, reason="needs a non-root POSIX user")
def test_unreadable_file_stops_the_load_and_keeps_the_data(tmp_path):
    adapter = JsonFileAdapter(tmp_path)
    adapter.save("projects", [{"id": "p1", "name": "Good Project"}])
    path = adapter.get_path("projects")
    path.chmod(0o000)
    try:
        with pytest.raises(PersistenceError) as info:
            make_store(adapter)
        assert info.value.category == PersistenceErrorCategory.AUTH
    finally:
        path.chmod(0o600)
    assert json.loads(path.read_text(encoding="utf-8")) == [{"id": "p1", "name": "Good Project"}]


@pytest.mark.skipif(os.name != "posix" or os.geteuid() == 0, reason="needs a non-root POSIX user")
def test_json_adapter_permission_error(tmp_path):
    locked = tmp_path / "locked"
    locked.mkdir()
    locked.chmod(0o500)
    try:
        with pytest.raises(PersistenceError) as info:
            JsonFileAdapter(locked).save("users", [])
        assert info.value.category == PersistenceErrorCategory.AUTH
        assert info.value.key == "users"
    finally:
        locked.chmod(0o700)


def test_store_writes_camel_case_records(store, adapter):
    user = add_user(store, "Sarah Chen")
    project = add_project(store, assigned_users=[user.id])
    add_entry(store, project.id, 25)

    saved_project = adapter.data["projects"][0]
    assert saved_project["assignedUsers"] == [user.id]
    assert saved_project["spent"] == 25
    assert "createdAt" in saved_project
    assert adapter.data["budget_entries"][0]["projectId"] == project.id


def test_store_reloads_from_adapter(store, adapter):
    code = add_code(store)
    project = add_project(store)
    add_entry(store, project.id, 40, budget_code_id=code.id)
    store.update_project(project.id, ProjectUpdate(description="persisted"))

    reloaded = make_store(adapter)

    assert reloaded.get_project(project.id).description == "persisted"
    assert reloaded.get_project(project.id).spent == 40
    assert reloaded.get_budget_code(code.id).spent == 40
    assert len(reloaded.list_notifications()) == len(store.list_notifications())


def test_invalid_records_are_skipped():
    adapter = MemoryAdapter({
        "projects": [{"id": "p1", "name": "Good Project"}, {"id": "p2"}],
        "settings": {"budgetAlertThreshold": 500},
    })
    store = make_store(adapter)
    assert [p.id for p in store.list_projects()] == ["p1"]
    assert store.get_settings().budget_alert_threshold == 75


def test_loaded_notifications_respect_retention():
    records = [
        {"id": f"n{i}", "userId": "u1", "type": "project_updated", "title": "t", "message": "m",
         "createdAt": f"2024-01-01T00:00:{i:02d}+00:00"}
        for i in range(12)
    ]
    store = make_store(MemoryAdapter({"notifications": records}), NOTIFICATION_RETENTION=5)
    assert [n.id for n in store.list_notifications()] == ["n11", "n10", "n9", "n8", "n7"]


def test_debounced_writes_coalesce():
    adapter = MemoryAdapter()
    store = EntityStore(adapter, make_config(), debouncer=Debouncer(60))
    project = add_project(store)
    for i in range(5):
        store.update_project(project.id, ProjectUpdate(description=f"rev {i}"))
    assert adapter.writes == []

    store.flush()

    project_writes = [value for key, value in adapter.writes if key == "projects"]
    assert len(project_writes) == 1
    assert project_writes[0][0]["description"] == "rev 4"


def test_debounced_payload_is_a_snapshot():
    adapter = MemoryAdapter()
    store = EntityStore(adapter, make_config(), debouncer=Debouncer(60))
    project = add_project(store)
    store.flush()
    store.update_project(project.id, ProjectUpdate(description="scheduled"))
    store.close()
    assert adapter.data["projects"][0]["description"] == "scheduled"


def test_write_failures_keep_memory_state(caplog):
    store = make_store(FailingAdapter())
    project = add_project(store)

    assert store.get_project(project.id) is not None
    errors = store.drain_persistence_errors()
    assert {e.key for e in errors} == {"projects"}
    assert all(e.category == PersistenceErrorCategory.NETWORK for e in errors)
    assert store.drain_persistence_errors() == []
    assert "Saving 'projects' failed" in caplog.text


def test_build_adapter_selects_backend(tmp_path):
    assert isinstance(build_adapter(make_config(STORAGE_BACKEND="memory")), MemoryAdapter)
    local = build_adapter(make_config(STORAGE_BACKEND="local", DATA_DIR=tmp_path))
    assert isinstance(local, JsonFileAdapter)
    assert local.data_dir == tmp_path


def test_every_key_round_trips_through_json_files(tmp_path):
    adapter = JsonFileAdapter(tmp_path)
    store = make_store(adapter)
    root = add_user(store, "Sarah Chen")
    project = add_project(store, created_by=root.id)
    add_entry(store, project.id, 10)
    store.close()

    assert {p.stem for p in tmp_path.glob("*.json")} <= set(ALL_KEYS)
    reloaded = make_store(JsonFileAdapter(tmp_path))
    assert reloaded.get_user(root.id).name == "Sarah Chen"
    assert reloaded.get_project(project.id).spent == 10


def test_failed_writes_are_retried_on_flush():
    adapter = FailingAdapter(failures=1)
    store = make_store(adapter)
    project = add_project(store)
    assert "projects" not in adapter.data

    store.flush()

    assert [p["id"] for p in adapter.data["projects"]] == [project.id]
    assert [e.key for e in store.drain_persistence_errors()] == ["projects"]
    store.flush()
    assert [key for key, _ in adapter.writes] == ["projects"]
