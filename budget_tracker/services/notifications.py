"""
Notification Dispatcher

Turns store mutations into Notification records addressed to the affected
users and evaluates budget alert thresholds. The dispatcher only builds
notifications; the store delivers them and applies retention.

Alerts are not deduplicated: every qualifying mutation emits a fresh alert.
"""
import logging
from typing import Dict, Iterable, List, Optional

from budget_tracker.models.budget import BudgetCode, BudgetEntry
from budget_tracker.models.notification import Notification, NotificationType
from budget_tracker.models.project import Project, ProjectStatus
from budget_tracker.models.settings import AppSettings
from budget_tracker.models.user import User
from budget_tracker.utils.formatting import format_currency, format_currency_compact, format_date

logger = logging.getLogger(__name__)


def usage_percentage(spent: float, budget: float) -> float:
    return spent / budget * 100 if budget > 0 else 0.0


def is_over_threshold(spent: float, budget: float, threshold: float) -> bool:
    """True when spend has reached the alert threshold (percent). Zero budgets never alert."""
    return budget > 0 and usage_percentage(spent, budget) >= threshold


def project_url(project_id: str) -> str:
    return f"/projects/{project_id}"


def budget_code_url(code_id: str) -> str:
    return f"/budget-codes/{code_id}"


class NotificationDispatcher:
    def __init__(self, retention: int = 100):
        self.retention = retention

    # --- helpers -----------------------------------------------------------

    @staticmethod
    def _fan_out(
        user_ids: Iterable[str],
        type: NotificationType,
        title: str,
        message: str,
        data: Optional[dict] = None,
        action_url: Optional[str] = None,
    ) -> List[Notification]:
        return [
            Notification(
                user_id=user_id,
                type=type,
                title=title,
                message=message,
                data=dict(data or {}),
                action_url=action_url,
            )
            for user_id in user_ids
        ]

    @staticmethod
    def _everyone_except(users: Dict[str, User], excluded: Optional[str]) -> List[str]:
        return [user_id for user_id in users if user_id != excluded]

    def apply_retention(self, notifications: List[Notification]) -> List[Notification]:
        """Keep the newest `retention` notifications; the list is ordered newest first."""
        if len(notifications) <= self.retention:
            return notifications
        dropped = len(notifications) - self.retention
        logger.debug("Dropping %d oldest notification(s) over the retention cap", dropped)
        return notifications[:self.retention]

    # --- projects ----------------------------------------------------------

    def project_created(self, project: Project, users: Dict[str, User]) -> List[Notification]:
        data = {"projectId": project.id}
        url = project_url(project.id)
        notifications = self._fan_out(
            self._everyone_except(users, project.created_by),
            NotificationType.PROJECT_CREATED,
            "New Project Created",
            f'A new project "{project.name}" has been created.',
            data,
            url,
        )
        notifications += self._assignment_notices(project, project.assigned_users, users)
        return notifications

    def project_updated(
        self,
        before: Project,
        after: Project,
        users: Dict[str, User],
        settings: AppSettings,
        actor_id: Optional[str] = None,
    ) -> List[Notification]:
        data = {"projectId": after.id}
        url = project_url(after.id)
        notifications = self._fan_out(
            self._everyone_except(users, actor_id),
            NotificationType.PROJECT_UPDATED,
            "Project Updated",
            f'Project "{after.name}" has been updated.',
            data,
            url,
        )

        if after.status == ProjectStatus.COMPLETED and before.status != ProjectStatus.COMPLETED:
            notifications += self._fan_out(
                users,
                NotificationType.PROJECT_COMPLETED,
                "Project Completed",
                f'The "{after.name}" project has been marked as completed.',
                data,
                url,
            )

        notifications += self.project_budget_alert(after, users, settings)

        added = [user_id for user_id in after.assigned_users if user_id not in before.assigned_users]
        notifications += self._assignment_notices(after, added, users)
        return notifications

    def project_deleted(
        self, project: Project, users: Dict[str, User], actor_id: Optional[str] = None
    ) -> List[Notification]:
        return self._fan_out(
            self._everyone_except(users, actor_id),
            NotificationType.PROJECT_UPDATED,
            "Project Deleted",
            f'Project "{project.name}" has been deleted.',
            {"projectId": project.id},
        )

    def project_budget_alert(
        self, project: Project, users: Dict[str, User], settings: AppSettings
    ) -> List[Notification]:
        if not is_over_threshold(project.spent, project.budget, settings.budget_alert_threshold):
            return []
        percentage = usage_percentage(project.spent, project.budget)
        return self._fan_out(
            users,
            NotificationType.BUDGET_ALERT,
            "Budget Alert",
            f'Project "{project.name}" has used {percentage:.1f}% of its budget '
            f"({format_currency(project.spent, settings.currency)} of "
            f"{format_currency(project.budget, settings.currency)}).",
            {
                "projectId": project.id,
                "percentage": round(percentage, 1),
                "budget": project.budget,
                "spent": project.spent,
            },
            project_url(project.id),
        )

    def _assignment_notices(
        self, project: Project, user_ids: Iterable[str], users: Dict[str, User]
    ) -> List[Notification]:
        return self._fan_out(
            [user_id for user_id in user_ids if user_id in users],
            NotificationType.USER_ASSIGNED,
            "Assigned to Project",
            f'You have been assigned to the "{project.name}" project.',
            {"projectId": project.id},
            project_url(project.id),
        )

    # --- budget entries and codes ------------------------------------------

    def entry_added(
        self,
        entry: BudgetEntry,
        project: Project,
        users: Dict[str, User],
        settings: AppSettings,
    ) -> List[Notification]:
        recipients = list(project.assigned_users)
        if project.created_by and project.created_by not in recipients:
            recipients.append(project.created_by)
        recipients = [user_id for user_id in recipients if user_id != entry.created_by and user_id in users]

        author = users.get(entry.created_by)
        author_name = author.name if author else "Someone"
        data = {"projectId": project.id, "amount": entry.amount, "type": entry.type.value}
        if entry.budget_code_id:
            data["budgetCodeId"] = entry.budget_code_id
        shown_date = format_date(entry.date, settings.date_format)
        when = f" on {shown_date}" if shown_date else ""
        return self._fan_out(
            recipients,
            NotificationType.BUDGET_ENTRY_ADDED,
            "New Budget Entry",
            f"{author_name} added a new {entry.type.value} of "
            f"{format_currency(entry.amount, settings.currency)} to {project.name}{when}.",
            data,
            project_url(project.id),
        )

    def budget_code_alert(
        self, code: BudgetCode, users: Dict[str, User], settings: AppSettings
    ) -> List[Notification]:
        if not is_over_threshold(code.spent, code.budget, settings.budget_alert_threshold):
            return []
        percentage = usage_percentage(code.spent, code.budget)
        return self._fan_out(
            users,
            NotificationType.BUDGET_CODE_ALERT,
            "Budget Code Alert",
            f'Budget code "{code.code} - {code.name}" has used {percentage:.1f}% of its allocated budget '
            f"({format_currency_compact(code.spent, settings.currency)} of "
            f"{format_currency_compact(code.budget, settings.currency)}).",
            {
                "budgetCodeId": code.id,
                "percentage": round(percentage, 1),
                "budget": code.budget,
                "spent": code.spent,
            },
            budget_code_url(code.id),
        )

    # --- users -------------------------------------------------------------

    def user_added(
        self, user: User, users: Dict[str, User], actor_id: Optional[str] = None
    ) -> List[Notification]:
        """Tell every admin and super admin, except the one who added the user."""
        admins = [
            existing.id
            for existing in users.values()
            if existing.is_privileged and existing.id != actor_id and existing.id != user.id
        ]
        return self._fan_out(
            admins,
            NotificationType.USER_ASSIGNED,
            "New User Added",
            f"{user.name} ({user.email}) has joined as {user.role.value.replace('_', ' ')}.",
            {"userId": user.id},
            "/users",
        )
