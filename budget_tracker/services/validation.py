"""
Validation rules applied at the public edge of the core.

Field-level checks (code format, positive amounts, enum values) live on the
pydantic Create/Update models. The rules here need context such as the
current AppSettings or other fields of the same entity, and collect every
problem before raising.
"""
from datetime import date
from typing import List, Optional

from budget_tracker.core.exceptions import ValidationError
from budget_tracker.models.settings import AppSettings

MAX_BUDGET_AMOUNT = 999_999_999
PROJECT_NAME_MIN = 3
PROJECT_NAME_MAX = 100


def parse_date(value: str) -> Optional[date]:
    try:
        return date.fromisoformat(value[:10])
    except (TypeError, ValueError):
        return None


def budget_amount_errors(amount: float, settings: AppSettings, label: str = "Budget") -> List[str]:
    errors = []
    if amount < 0 and not settings.allow_negative_budget:
        errors.append(f"{label} cannot be negative")
    if abs(amount) > MAX_BUDGET_AMOUNT:
        errors.append(f"{label} cannot exceed {MAX_BUDGET_AMOUNT:,}")
    return errors


def date_range_errors(start_date: str, end_date: str, settings: AppSettings) -> List[str]:
    errors = []
    start = parse_date(start_date) if start_date else None
    end = parse_date(end_date) if end_date else None
    if start_date and start is None:
        errors.append(f"Invalid start date: {start_date}")
    if end_date and end is None:
        errors.append(f"Invalid end date: {end_date}")
    if start and end:
        if start > end:
            errors.append("End date must be on or after the start date")
        elif (end - start).days > settings.max_project_duration:
            errors.append(f"Project duration cannot exceed {settings.max_project_duration} days")
    return errors


def validate_project_fields(fields: dict, settings: AppSettings) -> None:
    """
    Check project data (a create payload or an update merged onto the current
    project) against AppSettings.
    """
    errors = []
    name = fields.get("name")
    if name is not None and not PROJECT_NAME_MIN <= len(name.strip()) <= PROJECT_NAME_MAX:
        errors.append(f"Project name must be between {PROJECT_NAME_MIN} and {PROJECT_NAME_MAX} characters")
    if fields.get("budget") is not None:
        errors.extend(budget_amount_errors(fields["budget"], settings))
    errors.extend(date_range_errors(fields.get("start_date") or "", fields.get("end_date") or "", settings))
    if errors:
        raise ValidationError(errors)


def validate_budget_code_fields(fields: dict, settings: AppSettings) -> None:
    if fields.get("budget") is None:
        return
    errors = budget_amount_errors(fields["budget"], settings)
    if errors:
        raise ValidationError(errors)


def validate_entry_fields(fields: dict) -> None:
    errors = []
    if fields.get("amount") is not None and fields["amount"] > MAX_BUDGET_AMOUNT:
        errors.append(f"Amount cannot exceed {MAX_BUDGET_AMOUNT:,}")
    if fields.get("date") and parse_date(fields["date"]) is None:
        errors.append(f"Invalid date: {fields['date']}")
    if errors:
        raise ValidationError(errors)
