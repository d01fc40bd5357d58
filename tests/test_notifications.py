from budget_tracker.models import (
    AppSettingsUpdate,
    BudgetCodeUpdate,
    NotificationCreate,
    NotificationType,
    ProjectStatus,
    ProjectUpdate,
    UserCreate,
    UserRole,
)
from budget_tracker.services.notifications import is_over_threshold, usage_percentage
from tests.helpers import add_code, add_entry, add_project, add_user, make_store, of_type


def recipients(notifications):
    return sorted(n.user_id for n in notifications)


def test_threshold_math():
    assert usage_percentage(75, 100) == 75
    assert is_over_threshold(75, 100, 75)
    assert not is_over_threshold(74.9, 100, 75)
    assert not is_over_threshold(500, 0, 75)


def test_project_created_notifies_everyone_but_creator(store, team):
    project = add_project(store, created_by=team["admin"].id, assigned_users=[team["alice"].id, "ghost"])

    created = of_type(store.list_notifications(), NotificationType.PROJECT_CREATED)
    assert recipients(created) == sorted([team["root"].id, team["alice"].id, team["bob"].id])
    assert created[0].data == {"projectId": project.id}
    assert created[0].action_url == f"/projects/{project.id}"

    assigned = of_type(store.list_notifications(), NotificationType.USER_ASSIGNED)
    assigned = [n for n in assigned if n.title == "Assigned to Project"]
    assert recipients(assigned) == [team["alice"].id]


def test_project_update_notifies_all_but_updater(store, team):
    project = add_project(store, created_by=team["admin"].id)
    before = len(store.list_notifications())

    store.update_project(project.id, ProjectUpdate(description="New scope"), actor_id=team["admin"].id)

    new = store.list_notifications()[: len(store.list_notifications()) - before]
    assert [n.type for n in new] == [NotificationType.PROJECT_UPDATED] * 3
    assert team["admin"].id not in recipients(new)


def test_completed_fires_on_transition_only(store, team):
    project = add_project(store)
    store.update_project(project.id, ProjectUpdate(status=ProjectStatus.COMPLETED))
    store.update_project(project.id, ProjectUpdate(status=ProjectStatus.COMPLETED))

    completed = of_type(store.list_notifications(), NotificationType.PROJECT_COMPLETED)
    assert recipients(completed) == sorted(u.id for u in team.values())


def test_new_assignees_only(store, team):
    project = add_project(store, assigned_users=[team["alice"].id])
    store.update_project(project.id, ProjectUpdate(assigned_users=[team["alice"].id, team["bob"].id]))

    assigned = [n for n in of_type(store.list_notifications(), NotificationType.USER_ASSIGNED)
                if n.title == "Assigned to Project"]
    assert recipients(assigned) == sorted([team["alice"].id, team["bob"].id])


def test_project_budget_alert_on_update(store, team):
    project = add_project(store, budget=1000)
    add_entry(store, project.id, 800)
    assert of_type(store.list_notifications(), NotificationType.BUDGET_ALERT) == []

    store.update_project(project.id, ProjectUpdate(description="Phase 2"))

    alerts = of_type(store.list_notifications(), NotificationType.BUDGET_ALERT)
    assert len(alerts) == len(team)
    assert alerts[0].data["percentage"] == 80.0
    assert alerts[0].data["spent"] == 800


def test_project_deleted_notice(store, team):
    project = add_project(store, name="Office Move")
    store.delete_project(project.id, actor_id=team["root"].id)

    deleted = [n for n in store.list_notifications() if n.title == "Project Deleted"]
    assert {n.type for n in deleted} == {NotificationType.PROJECT_UPDATED}
    assert team["root"].id not in recipients(deleted)
    assert len(deleted) == 3


def test_entry_added_recipients(store, team):
    project = add_project(store, created_by=team["admin"].id,
                          assigned_users=[team["alice"].id, team["bob"].id])
    add_entry(store, project.id, 5000, created_by=team["alice"].id)

    added = of_type(store.list_notifications(), NotificationType.BUDGET_ENTRY_ADDED)
    assert recipients(added) == sorted([team["admin"].id, team["bob"].id])
    assert added[0].message == "Alice Tan added a new expense of MYR 5,000.00 to Website Redesign."
    assert added[0].data == {"projectId": project.id, "amount": 5000, "type": "expense"}


def test_budget_code_alert_scenario(store, team):
    code = add_code(store, budget=1000)
    project = add_project(store)
    add_entry(store, project.id, 900, budget_code_id=code.id)

    assert store.get_budget_code(code.id).spent == 900
    alerts = of_type(store.list_notifications(), NotificationType.BUDGET_CODE_ALERT)
    assert len(alerts) == len(team)
    assert alerts[0].data == {"budgetCodeId": code.id, "percentage": 90.0, "budget": 1000, "spent": 900}
    assert alerts[0].message == (
        'Budget code "1-1000 - Operations" has used 90.0% of its allocated budget (MYR 900.00 of MYR 1.0K).'
    )


def test_alerts_refire_without_dedup():
    store = make_store()
    user = add_user(store, "Solo User")
    store.update_settings(AppSettingsUpdate(budget_alert_threshold=80))
    code = add_code(store, budget=1000)
    project = add_project(store, budget=5000)
    add_entry(store, project.id, 700, budget_code_id=code.id)
    assert of_type(store.list_notifications(user.id), NotificationType.BUDGET_CODE_ALERT) == []

    add_entry(store, project.id, 150, budget_code_id=code.id)
    add_entry(store, project.id, 100, budget_code_id=code.id)

    alerts = of_type(store.list_notifications(user.id), NotificationType.BUDGET_CODE_ALERT)
    assert [a.data["percentage"] for a in alerts] == [95.0, 85.0]


def test_income_never_alerts(store, team):
    code = add_code(store, budget=100)
    project = add_project(store)
    add_entry(store, project.id, 500, type="income", budget_code_id=code.id)
    assert of_type(store.list_notifications(), NotificationType.BUDGET_CODE_ALERT) == []


def test_code_budget_change_reevaluates_alert(store, team):
    code = add_code(store, budget=1000)
    project = add_project(store)
    add_entry(store, project.id, 500, budget_code_id=code.id)

    store.update_budget_code(code.id, BudgetCodeUpdate(name="Renamed"))
    assert of_type(store.list_notifications(), NotificationType.BUDGET_CODE_ALERT) == []

    store.update_budget_code(code.id, BudgetCodeUpdate(budget=600))
    alerts = of_type(store.list_notifications(), NotificationType.BUDGET_CODE_ALERT)
    assert len(alerts) == len(team)


def test_new_user_notifies_admins_except_actor(store, team):
    newcomer = add_user(store, "New Hire")
    notices = [n for n in store.list_notifications() if n.data.get("userId") == newcomer.id]
    assert recipients(notices) == sorted([team["root"].id, team["admin"].id])
    assert {n.title for n in notices} == {"New User Added"}

    store.create_user(UserCreate(name="Another One", email="another@example.com"), actor_id=team["root"].id)
    latest = store.list_notifications()[0]
    assert latest.user_id == team["admin"].id


def test_retention_is_global():
    store = make_store(NOTIFICATION_RETENTION=100)
    users = [add_user(store, f"Admin {i}", UserRole.ADMIN) for i in range(3)]
    for i in range(120):
        store.add_notification(NotificationCreate(
            user_id=users[i % 3].id, type=NotificationType.PROJECT_UPDATED, title=f"#{i}", message="m",
        ))
    add_project(store)

    notifications = store.list_notifications()
    assert len(notifications) == 100
    assert notifications[0].type == NotificationType.PROJECT_CREATED
    assert all(len(store.list_notifications(u.id)) <= 100 for u in users)


def test_notifications_are_newest_first(store, team):
    project = add_project(store)
    store.update_project(project.id, ProjectUpdate(description="x"), actor_id=team["root"].id)
    mine = store.list_notifications(team["alice"].id)
    assert [n.type for n in mine[:2]] == [NotificationType.PROJECT_UPDATED, NotificationType.PROJECT_CREATED]


def test_entry_message_shows_date_in_configured_format(store, team):
    store.update_settings(AppSettingsUpdate(date_format="YYYY-MM-DD"))
    project = add_project(store, created_by=team["admin"].id)
    add_entry(store, project.id, 250, date="2024-03-07", created_by=team["alice"].id)

    added = of_type(store.list_notifications(), NotificationType.BUDGET_ENTRY_ADDED)
    assert added[0].message == "Alice Tan added a new expense of MYR 250.00 to Website Redesign on 2024-03-07."
