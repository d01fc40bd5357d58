"""
Shared building blocks for the entity models.

Entities use snake_case attributes in Python and camelCase keys when
serialized, which is the layout of the persisted JSON collections.
"""
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


def utc_now() -> str:
    """Current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


def new_id() -> str:
    return str(uuid.uuid4())


def unique_ids(values: List[str]) -> List[str]:
    """Drop blanks and duplicates while keeping the original order."""
    seen = set()
    result = []
    for value in values or []:
        if value and value not in seen:
            seen.add(value)
            result.append(value)
    return result


class EntityModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_record(self) -> Dict[str, Any]:
        """JSON-ready dict with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)


class UpdateModel(EntityModel):
    """
    Partial update: only explicitly provided, non-null fields are applied.

    Optional references are cleared with an empty string, never with null.
    """

    def changes(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True, exclude_none=True)
