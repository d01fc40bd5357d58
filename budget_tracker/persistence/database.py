"""
Database persistence backend.

DatabaseAdapter implements the key/value contract on top of SQL tables: a
save replaces the stored collection with the given records (upsert present
rows, delete missing ones). RemoteRepository offers async per-entity CRUD for
hosts that work against the database directly.

SQLAlchemy errors are translated into PersistenceError with a network, auth
or schema category.
"""
import asyncio
import logging
from typing import Any, Dict, List, Optional, Type

from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, NoSuchTableError, ProgrammingError, SQLAlchemyError
from sqlmodel import Session, SQLModel, select

from budget_tracker.core.exceptions import EntityNotFound, PersistenceError, PersistenceErrorCategory
from budget_tracker.db.session import init_db
from budget_tracker.db.tables import (
    AppSettingsRecord,
    BudgetCodeRecord,
    BudgetEntryRecord,
    DivisionRecord,
    NotificationRecord,
    ProjectRecord,
    UnitRecord,
    UserRecord,
)
from budget_tracker.models import BudgetCode, BudgetEntry, Division, EntityModel, Notification, Project, Unit, User
from budget_tracker.persistence import base

logger = logging.getLogger(__name__)

ENTITY_MODELS: Dict[str, Type[EntityModel]] = {
    base.USERS: User,
    base.DIVISIONS: Division,
    base.UNITS: Unit,
    base.PROJECTS: Project,
    base.BUDGET_CODES: BudgetCode,
    base.BUDGET_ENTRIES: BudgetEntry,
    base.NOTIFICATIONS: Notification,
}

TABLES: Dict[str, Type[SQLModel]] = {
    base.USERS: UserRecord,
    base.DIVISIONS: DivisionRecord,
    base.UNITS: UnitRecord,
    base.PROJECTS: ProjectRecord,
    base.BUDGET_CODES: BudgetCodeRecord,
    base.BUDGET_ENTRIES: BudgetEntryRecord,
    base.NOTIFICATIONS: NotificationRecord,
}

# Entity fields where "" means "not set"; stored as NULL
BLANK_AS_NULL = {"unit_id", "division_id", "budget_code_id", "created_by", "start_date", "end_date", "date"}

SCHEMA_HINTS = ("no such table", "no such column", "does not exist", "unknown column", "doesn't exist")
AUTH_HINTS = ("access denied", "authentication", "password", "permission denied", "not authorized")


def classify_error(exc: Exception, key: Optional[str] = None) -> PersistenceError:
    message = str(exc)
    lowered = message.lower()
    if isinstance(exc, (NoSuchTableError, ProgrammingError, IntegrityError)) or any(h in lowered for h in SCHEMA_HINTS):
        category = PersistenceErrorCategory.SCHEMA
    elif any(h in lowered for h in AUTH_HINTS):
        category = PersistenceErrorCategory.AUTH
    else:
        category = PersistenceErrorCategory.NETWORK
    return PersistenceError(message, category, key)


def to_row(key: str, record: Dict[str, Any]) -> SQLModel:
    values = ENTITY_MODELS[key].model_validate(record).model_dump(mode="json")
    for field in BLANK_AS_NULL & values.keys():
        if values[field] == "":
            values[field] = None
    return TABLES[key](**values)


def from_row(key: str, row: SQLModel) -> EntityModel:
    values = row.model_dump()
    for field in BLANK_AS_NULL & values.keys():
        if values[field] is None:
            values[field] = ""
    return ENTITY_MODELS[key].model_validate(values)


class DatabaseAdapter:
    def __init__(self, engine: Engine, create_tables: bool = True):
        self.engine = engine
        if create_tables:
            try:
                init_db(engine)
            except SQLAlchemyError as exc:
                raise classify_error(exc) from exc

    def load(self, key: str, default: Any = None) -> Any:
        try:
            with Session(self.engine) as session:
                if key == base.SETTINGS:
                    row = session.get(AppSettingsRecord, 1)
                    return dict(row.data) if row is not None else default
                rows = session.exec(select(TABLES[key])).all()
                records = [from_row(key, row).to_record() for row in rows]
        except SQLAlchemyError as exc:
            raise classify_error(exc, key) from exc
        return records if records else default

    def save(self, key: str, value: Any) -> None:
        try:
            with Session(self.engine) as session:
                if key == base.SETTINGS:
                    session.merge(AppSettingsRecord(id=1, data=dict(value)))
                else:
                    self._replace_collection(session, key, value)
                session.commit()
        except SQLAlchemyError as exc:
            raise classify_error(exc, key) from exc

    @staticmethod
    def _replace_collection(session: Session, key: str, records: List[Dict[str, Any]]) -> None:
        table = TABLES[key]
        rows = [to_row(key, record) for record in records]
        keep = {row.id for row in rows}
        stale = set(session.exec(select(table.id)).all()) - keep
        for stale_id in stale:
            session.delete(session.get(table, stale_id))
        for row in rows:
            session.merge(row)
        logger.debug("Synced %s: %d row(s), %d removed", key, len(rows), len(stale))


class RemoteRepository:
    """
    Async CRUD for one entity collection.

    The blocking SQL work runs in a worker thread; every method either returns
    typed entities or raises PersistenceError.
    """

    def __init__(self, engine: Engine, key: str):
        if key not in TABLES:
            raise ValueError(f"No table for collection '{key}'")
        self.engine = engine
        self.key = key
        self.table = TABLES[key]

    async def get_all(self) -> List[EntityModel]:
        return await asyncio.to_thread(self._call, self._get_all)

    async def create(self, entity: EntityModel) -> EntityModel:
        return await asyncio.to_thread(self._call, self._create, entity)

    async def update(self, entity_id: str, changes: Dict[str, Any]) -> EntityModel:
        return await asyncio.to_thread(self._call, self._update, entity_id, changes)

    async def delete(self, entity_id: str) -> None:
        await asyncio.to_thread(self._call, self._delete, entity_id)

    def _call(self, func, *args):
        try:
            return func(*args)
        except SQLAlchemyError as exc:
            raise classify_error(exc, self.key) from exc

    def _get_all(self) -> List[EntityModel]:
        with Session(self.engine) as session:
            rows = session.exec(select(self.table).order_by(self.table.created_at.desc())).all()
            return [from_row(self.key, row) for row in rows]

    def _create(self, entity: EntityModel) -> EntityModel:
        with Session(self.engine) as session:
            row = to_row(self.key, entity.to_record())
            session.add(row)
            session.commit()
            session.refresh(row)
            return from_row(self.key, row)

    def _update(self, entity_id: str, changes: Dict[str, Any]) -> EntityModel:
        with Session(self.engine) as session:
            row = session.get(self.table, entity_id)
            if row is None:
                raise EntityNotFound(self.key, entity_id)
            merged = from_row(self.key, row).model_copy(update=changes)
            updated = to_row(self.key, merged.to_record())
            for field, value in updated.model_dump().items():
                setattr(row, field, value)
            session.add(row)
            session.commit()
            session.refresh(row)
            return from_row(self.key, row)

    def _delete(self, entity_id: str) -> None:
        with Session(self.engine) as session:
            row = session.get(self.table, entity_id)
            if row is None:
                return
            session.delete(row)
            session.commit()
