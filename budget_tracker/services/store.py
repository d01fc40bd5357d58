"""
Entity Store Module

The EntityStore owns every collection of the budget tracker in memory. Each
mutation runs to completion synchronously: apply the change and its cascades,
update the spend rollups, build and deliver notifications, announce the
change on the event bus and schedule a debounced write-back for every
collection it touched.

Callers never receive the stored objects themselves; every read and every
mutation result is a deep copy, so spend figures can only change through the
store.

Unknown ids are ignored (the call returns None) unless STRICT_LOOKUPS is
enabled, in which case EntityNotFound is raised.
"""
import logging
import threading
from collections import deque
from typing import Any, Callable, Deque, Dict, List, Optional, Set, Type, TypeVar

from pydantic import ValidationError as PydanticValidationError

from budget_tracker.core.config import Settings, settings as default_settings
from budget_tracker.core.exceptions import EntityNotFound, PersistenceError
from budget_tracker.models import (
    AppSettings,
    AppSettingsUpdate,
    BudgetCode,
    BudgetCodeCreate,
    BudgetCodeUpdate,
    BudgetEntry,
    BudgetEntryCreate,
    BudgetEntryUpdate,
    Division,
    DivisionCreate,
    DivisionUpdate,
    EntityModel,
    Notification,
    NotificationCreate,
    Project,
    ProjectCreate,
    ProjectUpdate,
    Unit,
    UnitCreate,
    UnitUpdate,
    User,
    UserCreate,
    UserUpdate,
    make_initials,
    utc_now,
)
from budget_tracker.persistence import base as keys
from budget_tracker.persistence.base import PersistenceAdapter
from budget_tracker.persistence.debounce import Debouncer
from budget_tracker.services import rollup
from budget_tracker.services.events import (
    ENTITY_CREATED,
    ENTITY_DELETED,
    ENTITY_UPDATED,
    NOTIFICATION_CREATED,
    EventBus,
)
from budget_tracker.services.notifications import NotificationDispatcher
from budget_tracker.services.permissions import Action, check_permission

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=EntityModel)

MAX_KEPT_PERSISTENCE_ERRORS = 50


def _copy(entity: Optional[T]) -> Optional[T]:
    return entity.model_copy(deep=True) if entity is not None else None


class EntityStore:
    def __init__(
        self,
        adapter: PersistenceAdapter,
        config: Optional[Settings] = None,
        debouncer: Optional[Debouncer] = None,
        events: Optional[EventBus] = None,
    ):
        self.config = config or default_settings
        self.adapter = adapter
        self.debouncer = debouncer or Debouncer(self.config.PERSIST_DEBOUNCE_SECONDS, order=keys.WRITE_ORDER)
        self.events = events or EventBus()
        self.dispatcher = NotificationDispatcher(self.config.NOTIFICATION_RETENTION)

        self._users: Dict[str, User] = {}
        self._divisions: Dict[str, Division] = {}
        self._units: Dict[str, Unit] = {}
        self._projects: Dict[str, Project] = {}
        self._budget_codes: Dict[str, BudgetCode] = {}
        self._budget_entries: Dict[str, BudgetEntry] = {}
        self._notifications: List[Notification] = []  # newest first
        self._settings = AppSettings()
        self._persistence_errors: Deque[PersistenceError] = deque(maxlen=MAX_KEPT_PERSISTENCE_ERRORS)
        # Keys whose last write failed; written again on the next persist or flush
        self._failed_keys: Set[str] = set()
        self._failed_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def load(self) -> None:
        """
        Replace in-memory state with what the adapter holds.

        Records that no longer validate are skipped with a warning. Adapter
        failures propagate: starting empty would overwrite the stored data on
        the next write.
        """
        self._users = self._load_collection(keys.USERS, User)
        self._divisions = self._load_collection(keys.DIVISIONS, Division)
        self._units = self._load_collection(keys.UNITS, Unit)
        self._projects = self._load_collection(keys.PROJECTS, Project)
        self._budget_codes = self._load_collection(keys.BUDGET_CODES, BudgetCode)
        self._budget_entries = self._load_collection(keys.BUDGET_ENTRIES, BudgetEntry)

        notifications = self._load_collection(keys.NOTIFICATIONS, Notification).values()
        ordered = sorted(notifications, key=lambda n: n.created_at, reverse=True)
        self._notifications = self.dispatcher.apply_retention(ordered)

        raw_settings = self.adapter.load(keys.SETTINGS, None)
        try:
            self._settings = AppSettings.model_validate(raw_settings) if raw_settings else AppSettings()
        except PydanticValidationError as exc:
            logger.warning("Stored settings are invalid, using defaults: %s", exc)
            self._settings = AppSettings()

        logger.info(
            "Loaded %d user(s), %d project(s), %d budget code(s), %d entr(ies), %d notification(s)",
            len(self._users), len(self._projects), len(self._budget_codes),
            len(self._budget_entries), len(self._notifications),
        )

    def _load_collection(self, key: str, model: Type[T]) -> Dict[str, T]:
        records = self.adapter.load(key, []) or []
        collection: Dict[str, T] = {}
        for record in records:
            try:
                entity = model.model_validate(record)
            except PydanticValidationError as exc:
                logger.warning("Skipping invalid %s record: %s", key, exc)
                continue
            collection[entity.id] = entity
        return collection

    def flush(self) -> None:
        """Write every pending collection now, retrying the ones that failed."""
        self._persist()
        self.debouncer.flush()

    def close(self) -> None:
        self.flush()
        self.debouncer.cancel_all()

    def subscribe(self, event_name: str, handler: Callable) -> None:
        self.events.subscribe(event_name, handler)

    def unsubscribe(self, event_name: str, handler: Callable) -> None:
        self.events.unsubscribe(event_name, handler)

    def peek_persistence_errors(self) -> List[PersistenceError]:
        """The queued write failures, oldest first, left in place."""
        return list(self._persistence_errors)

    def drain_persistence_errors(self) -> List[PersistenceError]:
        """Return and forget the write failures collected since the last call."""
        errors = []
        while self._persistence_errors:
            errors.append(self._persistence_errors.popleft())
        return errors

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _get(self, collection: Dict[str, T], entity: str, entity_id: str) -> Optional[T]:
        found = collection.get(entity_id)
        if found is None and self.config.STRICT_LOOKUPS:
            raise EntityNotFound(entity, entity_id)
        return found

    def _authorize(self, actor_id: Optional[str], action: Action, target: Any = None) -> None:
        """Apply the permission policy when a mutation names an actor."""
        if actor_id is None or not self.config.ENFORCE_PERMISSIONS:
            return
        check_permission(self._users.get(actor_id), action, target)

    def _snapshot(self, key: str) -> Any:
        if key == keys.SETTINGS:
            return self._settings.to_record()
        if key == keys.NOTIFICATIONS:
            return [n.to_record() for n in self._notifications]
        collection = {
            keys.USERS: self._users,
            keys.DIVISIONS: self._divisions,
            keys.UNITS: self._units,
            keys.PROJECTS: self._projects,
            keys.BUDGET_CODES: self._budget_codes,
            keys.BUDGET_ENTRIES: self._budget_entries,
        }[key]
        return [entity.to_record() for entity in collection.values()]

    def _persist(self, *collection_keys: str) -> None:
        with self._failed_lock:
            due = set(collection_keys) | self._failed_keys
            self._failed_keys = set()
        # Parents first; the payload is captured now so timer threads never read live state
        for key in sorted(due, key=keys.WRITE_ORDER.index):
            self.debouncer.schedule(key, self._write, key, self._snapshot(key))

    def _write(self, key: str, value: Any) -> None:
        try:
            self.adapter.save(key, value)
        except PersistenceError as exc:
            exc.key = exc.key or key
            logger.warning("Saving '%s' failed (%s): %s", key, exc.category.value, exc)
            self._persistence_errors.append(exc)
            with self._failed_lock:
                self._failed_keys.add(key)
        else:
            with self._failed_lock:
                self._failed_keys.discard(key)

    def _publish(self, event_name: str, collection: str, entity: EntityModel) -> None:
        self.events.publish(event_name, {"collection": collection, "id": entity.id, "entity": _copy(entity)})

    def _deliver(self, notifications: List[Notification]) -> None:
        if not notifications:
            return
        self._notifications = self.dispatcher.apply_retention(list(reversed(notifications)) + self._notifications)
        kinds = sorted({n.type.value for n in notifications})
        logger.info("Dispatched %d notification(s): %s", len(notifications), ", ".join(kinds))
        self._persist(keys.NOTIFICATIONS)
        for notification in notifications:
            self.events.publish(NOTIFICATION_CREATED, {"collection": keys.NOTIFICATIONS, "id": notification.id, "entity": _copy(notification)})

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    def get_user(self, user_id: str) -> Optional[User]:
        return _copy(self._get(self._users, "User", user_id))

    def list_users(self) -> List[User]:
        return [_copy(u) for u in self._users.values()]

    def find_user_by_email(self, email: str) -> Optional[User]:
        email = email.strip().lower()
        for user in self._users.values():
            if user.email.lower() == email:
                return _copy(user)
        return None

    def create_user(self, data: UserCreate, actor_id: Optional[str] = None) -> User:
        self._authorize(actor_id, Action.MANAGE_USERS)
        fields = data.model_dump()
        if not fields.get("initials"):
            fields["initials"] = make_initials(data.name)
        user = User(**fields)

        notifications = self.dispatcher.user_added(user, self._users, actor_id)
        self._users[user.id] = user
        logger.debug("Created user %s (%s)", user.id, user.role.value)

        self._deliver(notifications)
        self._persist(keys.USERS)
        self._publish(ENTITY_CREATED, keys.USERS, user)
        return _copy(user)

    def update_user(self, user_id: str, data: UserUpdate, actor_id: Optional[str] = None) -> Optional[User]:
        user = self._get(self._users, "User", user_id)
        if user is None:
            return None
        changes = data.changes()
        # Users may edit their own profile but not their own role
        if actor_id != user_id or "role" in changes:
            self._authorize(actor_id, Action.MANAGE_USERS)
        if "name" in changes and "initials" not in changes:
            changes["initials"] = make_initials(changes["name"])

        updated = user.model_copy(update=changes)
        self._users[user_id] = updated
        self._persist(keys.USERS)
        self._publish(ENTITY_UPDATED, keys.USERS, updated)
        return _copy(updated)

    def delete_user(self, user_id: str, actor_id: Optional[str] = None) -> Optional[User]:
        """
        Remove a user, unassign them from every project and delete the
        notifications addressed to them. Entries they created are kept.
        """
        self._authorize(actor_id, Action.MANAGE_USERS)
        user = self._get(self._users, "User", user_id)
        if user is None:
            return None
        del self._users[user_id]

        touched_projects = False
        for project in self._projects.values():
            if user_id in project.assigned_users:
                project.assigned_users = [uid for uid in project.assigned_users if uid != user_id]
                project.updated_at = utc_now()
                touched_projects = True

        remaining = [n for n in self._notifications if n.user_id != user_id]
        touched_notifications = len(remaining) != len(self._notifications)
        self._notifications = remaining

        self._persist(
            keys.USERS,
            *([keys.PROJECTS] if touched_projects else []),
            *([keys.NOTIFICATIONS] if touched_notifications else []),
        )
        self._publish(ENTITY_DELETED, keys.USERS, user)
        return _copy(user)

    # ------------------------------------------------------------------
    # Divisions and units
    # ------------------------------------------------------------------

    def get_division(self, division_id: str) -> Optional[Division]:
        return _copy(self._get(self._divisions, "Division", division_id))

    def list_divisions(self) -> List[Division]:
        return [_copy(d) for d in self._divisions.values()]

    def create_division(self, data: DivisionCreate, actor_id: Optional[str] = None) -> Division:
        self._authorize(actor_id, Action.MANAGE_ORGANIZATION)
        division = Division(name=data.name, created_by=data.created_by or actor_id or "")
        self._divisions[division.id] = division
        self._persist(keys.DIVISIONS)
        self._publish(ENTITY_CREATED, keys.DIVISIONS, division)
        return _copy(division)

    def update_division(self, division_id: str, data: DivisionUpdate, actor_id: Optional[str] = None) -> Optional[Division]:
        self._authorize(actor_id, Action.MANAGE_ORGANIZATION)
        division = self._get(self._divisions, "Division", division_id)
        if division is None:
            return None
        updated = division.model_copy(update=data.changes())
        self._divisions[division_id] = updated
        self._persist(keys.DIVISIONS)
        self._publish(ENTITY_UPDATED, keys.DIVISIONS, updated)
        return _copy(updated)

    def delete_division(self, division_id: str, actor_id: Optional[str] = None) -> Optional[Division]:
        """
        Remove a division together with its units. Projects in those units and
        entries of the division stay, with their unit/division links cleared.
        """
        self._authorize(actor_id, Action.DELETE_ORGANIZATION)
        division = self._get(self._divisions, "Division", division_id)
        if division is None:
            return None
        del self._divisions[division_id]

        unit_ids = {u.id for u in self._units.values() if u.division_id == division_id}
        for unit_id in unit_ids:
            del self._units[unit_id]

        touched_projects = self._unlink_projects(unit_ids)
        touched_entries = False
        for entry in self._budget_entries.values():
            if entry.division_id == division_id:
                entry.division_id = ""
                touched_entries = True
            if entry.unit_id in unit_ids:
                entry.unit_id = ""
                touched_entries = True

        self._persist(
            keys.DIVISIONS,
            *([keys.UNITS] if unit_ids else []),
            *([keys.PROJECTS] if touched_projects else []),
            *([keys.BUDGET_ENTRIES] if touched_entries else []),
        )
        self._publish(ENTITY_DELETED, keys.DIVISIONS, division)
        return _copy(division)

    def get_unit(self, unit_id: str) -> Optional[Unit]:
        return _copy(self._get(self._units, "Unit", unit_id))

    def list_units(self, division_id: Optional[str] = None) -> List[Unit]:
        return [_copy(u) for u in self._units.values() if division_id is None or u.division_id == division_id]

    def create_unit(self, data: UnitCreate, actor_id: Optional[str] = None) -> Unit:
        self._authorize(actor_id, Action.MANAGE_ORGANIZATION)
        unit = Unit(name=data.name, division_id=data.division_id, created_by=data.created_by or actor_id or "")
        self._units[unit.id] = unit
        self._persist(keys.UNITS)
        self._publish(ENTITY_CREATED, keys.UNITS, unit)
        return _copy(unit)

    def update_unit(self, unit_id: str, data: UnitUpdate, actor_id: Optional[str] = None) -> Optional[Unit]:
        self._authorize(actor_id, Action.MANAGE_ORGANIZATION)
        unit = self._get(self._units, "Unit", unit_id)
        if unit is None:
            return None
        updated = unit.model_copy(update=data.changes())
        self._units[unit_id] = updated
        self._persist(keys.UNITS)
        self._publish(ENTITY_UPDATED, keys.UNITS, updated)
        return _copy(updated)

    def delete_unit(self, unit_id: str, actor_id: Optional[str] = None) -> Optional[Unit]:
        self._authorize(actor_id, Action.DELETE_ORGANIZATION)
        unit = self._get(self._units, "Unit", unit_id)
        if unit is None:
            return None
        del self._units[unit_id]

        touched_projects = self._unlink_projects({unit_id})
        touched_entries = False
        for entry in self._budget_entries.values():
            if entry.unit_id == unit_id:
                entry.unit_id = ""
                touched_entries = True

        self._persist(
            keys.UNITS,
            *([keys.PROJECTS] if touched_projects else []),
            *([keys.BUDGET_ENTRIES] if touched_entries else []),
        )
        self._publish(ENTITY_DELETED, keys.UNITS, unit)
        return _copy(unit)

    def _unlink_projects(self, unit_ids) -> bool:
        touched = False
        for project in self._projects.values():
            if project.unit_id and project.unit_id in unit_ids:
                project.unit_id = ""
                project.updated_at = utc_now()
                touched = True
        return touched

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    def get_project(self, project_id: str) -> Optional[Project]:
        return _copy(self._get(self._projects, "Project", project_id))

    def list_projects(self, unit_id: Optional[str] = None) -> List[Project]:
        return [_copy(p) for p in self._projects.values() if unit_id is None or p.unit_id == unit_id]

    def create_project(self, data: ProjectCreate, actor_id: Optional[str] = None) -> Project:
        """
        Add a project. Referenced users and budget codes are not checked.

        Status and priority fall back to the AppSettings defaults; spend
        starts at zero.
        """
        self._authorize(actor_id, Action.CREATE_PROJECT)
        fields = data.model_dump(exclude={"created_by", "status", "priority"})
        project = Project(
            **fields,
            status=data.status or self._settings.default_project_status,
            priority=data.priority or self._settings.default_project_priority,
            created_by=data.created_by or actor_id or "",
        )
        self._projects[project.id] = project
        logger.debug("Created project %s", project.id)

        self._deliver(self.dispatcher.project_created(project, self._users))
        self._persist(keys.PROJECTS)
        self._publish(ENTITY_CREATED, keys.PROJECTS, project)
        return _copy(project)

    def update_project(self, project_id: str, data: ProjectUpdate, actor_id: Optional[str] = None) -> Optional[Project]:
        project = self._get(self._projects, "Project", project_id)
        if project is None:
            return None
        self._authorize(actor_id, Action.UPDATE_PROJECT, project)

        updated = project.model_copy(update={**data.changes(), "updated_at": utc_now()})
        self._projects[project_id] = updated

        self._deliver(self.dispatcher.project_updated(project, updated, self._users, self._settings, actor_id))
        self._persist(keys.PROJECTS)
        self._publish(ENTITY_UPDATED, keys.PROJECTS, updated)
        return _copy(updated)

    def delete_project(self, project_id: str, actor_id: Optional[str] = None) -> Optional[Project]:
        """
        Remove a project and all of its budget entries. Budget codes survive;
        with RECONCILE_CODES_ON_PROJECT_DELETE their spend gives back the
        removed expense entries, otherwise it keeps them as historical spend.
        """
        project = self._get(self._projects, "Project", project_id)
        if project is None:
            return None
        self._authorize(actor_id, Action.DELETE_PROJECT, project)
        del self._projects[project_id]

        removed = [e for e in self._budget_entries.values() if e.project_id == project_id]
        touched_codes = set()
        for entry in removed:
            del self._budget_entries[entry.id]
            if self.config.RECONCILE_CODES_ON_PROJECT_DELETE:
                touched_codes |= rollup.remove_entry(self._projects, self._budget_codes, entry).budget_code_ids

        self._deliver(self.dispatcher.project_deleted(project, self._users, actor_id))
        self._persist(
            keys.PROJECTS,
            *([keys.BUDGET_ENTRIES] if removed else []),
            *([keys.BUDGET_CODES] if touched_codes else []),
        )
        self._publish(ENTITY_DELETED, keys.PROJECTS, project)
        return _copy(project)

    # ------------------------------------------------------------------
    # Budget codes
    # ------------------------------------------------------------------

    def get_budget_code(self, code_id: str) -> Optional[BudgetCode]:
        return _copy(self._get(self._budget_codes, "BudgetCode", code_id))

    def find_budget_code_by_code(self, code: str) -> Optional[BudgetCode]:
        for budget_code in self._budget_codes.values():
            if budget_code.code == code:
                return _copy(budget_code)
        return None

    def list_budget_codes(self, active_only: bool = False) -> List[BudgetCode]:
        return [_copy(c) for c in self._budget_codes.values() if c.is_active or not active_only]

    def create_budget_code(self, data: BudgetCodeCreate, actor_id: Optional[str] = None) -> BudgetCode:
        self._authorize(actor_id, Action.MANAGE_BUDGET_CODES)
        code = BudgetCode(**data.model_dump(exclude={"created_by"}), created_by=data.created_by or actor_id or "")
        self._budget_codes[code.id] = code
        self._persist(keys.BUDGET_CODES)
        self._publish(ENTITY_CREATED, keys.BUDGET_CODES, code)
        return _copy(code)

    def update_budget_code(self, code_id: str, data: BudgetCodeUpdate, actor_id: Optional[str] = None) -> Optional[BudgetCode]:
        """Merge changes; a new allocation re-evaluates the budget code alert."""
        self._authorize(actor_id, Action.MANAGE_BUDGET_CODES)
        code = self._get(self._budget_codes, "BudgetCode", code_id)
        if code is None:
            return None
        changes = data.changes()
        updated = code.model_copy(update={**changes, "updated_at": utc_now()})
        self._budget_codes[code_id] = updated

        if "budget" in changes:
            self._deliver(self.dispatcher.budget_code_alert(updated, self._users, self._settings))
        self._persist(keys.BUDGET_CODES)
        self._publish(ENTITY_UPDATED, keys.BUDGET_CODES, updated)
        return _copy(updated)

    def toggle_budget_code_status(self, code_id: str, actor_id: Optional[str] = None) -> Optional[BudgetCode]:
        code = self._get(self._budget_codes, "BudgetCode", code_id)
        if code is None:
            return None
        return self.update_budget_code(code_id, BudgetCodeUpdate(is_active=not code.is_active), actor_id)

    def delete_budget_code(self, code_id: str, actor_id: Optional[str] = None) -> Optional[BudgetCode]:
        """
        Remove a budget code from the store and from every project's code
        list. Entries that charged it are kept with the code cleared.
        """
        self._authorize(actor_id, Action.DELETE_BUDGET_CODE)
        code = self._get(self._budget_codes, "BudgetCode", code_id)
        if code is None:
            return None
        del self._budget_codes[code_id]

        touched_projects = False
        for project in self._projects.values():
            if code_id in project.budget_codes:
                project.budget_codes = [cid for cid in project.budget_codes if cid != code_id]
                project.updated_at = utc_now()
                touched_projects = True

        touched_entries = False
        for entry in self._budget_entries.values():
            if entry.budget_code_id == code_id:
                entry.budget_code_id = ""
                touched_entries = True

        self._persist(
            keys.BUDGET_CODES,
            *([keys.PROJECTS] if touched_projects else []),
            *([keys.BUDGET_ENTRIES] if touched_entries else []),
        )
        self._publish(ENTITY_DELETED, keys.BUDGET_CODES, code)
        return _copy(code)

    # ------------------------------------------------------------------
    # Budget entries
    # ------------------------------------------------------------------

    def get_budget_entry(self, entry_id: str) -> Optional[BudgetEntry]:
        return _copy(self._get(self._budget_entries, "BudgetEntry", entry_id))

    def list_budget_entries(
        self, project_id: Optional[str] = None, budget_code_id: Optional[str] = None
    ) -> List[BudgetEntry]:
        return [
            _copy(e)
            for e in self._budget_entries.values()
            if (project_id is None or e.project_id == project_id)
            and (budget_code_id is None or e.budget_code_id == budget_code_id)
        ]

    def create_budget_entry(self, data: BudgetEntryCreate, actor_id: Optional[str] = None) -> Optional[BudgetEntry]:
        """
        Record an entry against an existing project.

        Unit and division default to the project's unit and that unit's
        division. Expenses raise the project's and the budget code's spend;
        the budget code alert is checked after the increment.
        """
        project = self._get(self._projects, "Project", data.project_id)
        if project is None:
            return None
        self._authorize(actor_id, Action.CREATE_ENTRY, project)

        unit_id = data.unit_id if data.unit_id is not None else project.unit_id
        division_id = data.division_id
        if division_id is None:
            unit = self._units.get(unit_id) if unit_id else None
            division_id = unit.division_id if unit else ""

        entry = BudgetEntry(
            **data.model_dump(exclude={"unit_id", "division_id", "created_by"}),
            unit_id=unit_id,
            division_id=division_id,
            created_by=data.created_by or actor_id or "",
        )
        self._budget_entries[entry.id] = entry
        touched = rollup.add_entry(self._projects, self._budget_codes, entry)
        logger.debug("Created %s entry %s of %s on project %s", entry.type.value, entry.id, entry.amount, project.id)

        notifications = self.dispatcher.entry_added(entry, self._projects[project.id], self._users, self._settings)
        for code_id in touched.budget_code_ids:
            notifications += self.dispatcher.budget_code_alert(self._budget_codes[code_id], self._users, self._settings)
        self._deliver(notifications)

        self._persist(keys.BUDGET_ENTRIES, *self._rollup_keys(touched))
        self._publish(ENTITY_CREATED, keys.BUDGET_ENTRIES, entry)
        return _copy(entry)

    def update_budget_entry(self, entry_id: str, data: BudgetEntryUpdate, actor_id: Optional[str] = None) -> Optional[BudgetEntry]:
        entry = self._get(self._budget_entries, "BudgetEntry", entry_id)
        if entry is None:
            return None
        self._authorize(actor_id, Action.CHANGE_ENTRY, entry)

        changes = data.changes()
        if changes.get("project_id", entry.project_id) != entry.project_id:
            # Moving an entry is recording it on the target project
            target = self._get(self._projects, "Project", changes["project_id"])
            if target is None:
                return None
            self._authorize(actor_id, Action.CREATE_ENTRY, target)
            if "unit_id" not in changes:
                changes["unit_id"] = target.unit_id
            if "division_id" not in changes:
                unit = self._units.get(changes["unit_id"]) if changes["unit_id"] else None
                changes["division_id"] = unit.division_id if unit else ""

        updated = entry.model_copy(update=changes)
        self._budget_entries[entry_id] = updated
        touched = rollup.replace_entry(self._projects, self._budget_codes, entry, updated)

        self._persist(keys.BUDGET_ENTRIES, *self._rollup_keys(touched))
        self._publish(ENTITY_UPDATED, keys.BUDGET_ENTRIES, updated)
        return _copy(updated)

    def delete_budget_entry(self, entry_id: str, actor_id: Optional[str] = None) -> Optional[BudgetEntry]:
        entry = self._get(self._budget_entries, "BudgetEntry", entry_id)
        if entry is None:
            return None
        self._authorize(actor_id, Action.CHANGE_ENTRY, entry)

        del self._budget_entries[entry_id]
        touched = rollup.remove_entry(self._projects, self._budget_codes, entry)

        self._persist(keys.BUDGET_ENTRIES, *self._rollup_keys(touched))
        self._publish(ENTITY_DELETED, keys.BUDGET_ENTRIES, entry)
        return _copy(entry)

    def rebuild_rollups(self, actor_id: Optional[str] = None) -> None:
        """Recompute every spent figure from the entries currently stored."""
        self._authorize(actor_id, Action.MAINTAIN_DATA)
        rollup.recompute_all(self._projects, self._budget_codes, self._budget_entries)
        self._persist(keys.PROJECTS, keys.BUDGET_CODES)

    @staticmethod
    def _rollup_keys(touched: rollup.RollupResult) -> List[str]:
        result = []
        if touched.project_ids:
            result.append(keys.PROJECTS)
        if touched.budget_code_ids:
            result.append(keys.BUDGET_CODES)
        return result

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    def list_notifications(self, user_id: Optional[str] = None, unread_only: bool = False) -> List[Notification]:
        """Newest first."""
        return [
            _copy(n)
            for n in self._notifications
            if (user_id is None or n.user_id == user_id) and not (unread_only and n.read)
        ]

    def get_notification(self, notification_id: str) -> Optional[Notification]:
        return _copy(self._find_notification(notification_id))

    def _find_notification(self, notification_id: str) -> Optional[Notification]:
        for notification in self._notifications:
            if notification.id == notification_id:
                return notification
        if self.config.STRICT_LOOKUPS:
            raise EntityNotFound("Notification", notification_id)
        return None

    def get_unread_notification_count(self, user_id: Optional[str] = None) -> int:
        return sum(1 for n in self._notifications if not n.read and (user_id is None or n.user_id == user_id))

    def add_notification(self, data: NotificationCreate) -> Notification:
        notification = Notification(**data.model_dump())
        self._deliver([notification])
        return _copy(notification)

    def mark_notification_as_read(self, notification_id: str, actor_id: Optional[str] = None) -> Optional[Notification]:
        notification = self._find_notification(notification_id)
        if notification is None:
            return None
        self._authorize(actor_id, Action.MANAGE_NOTIFICATION, notification)
        if not notification.read:
            notification.read = True
            self._persist(keys.NOTIFICATIONS)
            self._publish(ENTITY_UPDATED, keys.NOTIFICATIONS, notification)
        return _copy(notification)

    def mark_all_notifications_as_read(self, user_id: str, actor_id: Optional[str] = None) -> int:
        """Mark every unread notification of `user_id` as read; returns how many changed."""
        if actor_id is not None and actor_id != user_id:
            self._authorize(actor_id, Action.MANAGE_USERS)
        changed = 0
        for notification in self._notifications:
            if notification.user_id == user_id and not notification.read:
                notification.read = True
                changed += 1
        if changed:
            self._persist(keys.NOTIFICATIONS)
        return changed

    def delete_notification(self, notification_id: str, actor_id: Optional[str] = None) -> Optional[Notification]:
        notification = self._find_notification(notification_id)
        if notification is None:
            return None
        self._authorize(actor_id, Action.MANAGE_NOTIFICATION, notification)
        self._notifications = [n for n in self._notifications if n.id != notification_id]
        self._persist(keys.NOTIFICATIONS)
        self._publish(ENTITY_DELETED, keys.NOTIFICATIONS, notification)
        return _copy(notification)

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    def get_settings(self) -> AppSettings:
        return _copy(self._settings)

    def update_settings(self, data: AppSettingsUpdate, actor_id: Optional[str] = None) -> AppSettings:
        self._authorize(actor_id, Action.UPDATE_SETTINGS)
        self._settings = AppSettings.model_validate({**self._settings.model_dump(), **data.changes()})
        self._persist(keys.SETTINGS)
        return _copy(self._settings)
