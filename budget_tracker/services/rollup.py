"""
Rollup Engine

Keeps Project.spent and BudgetCode.spent consistent with budget entries.
Only expense entries count; income is tracked but never netted against spend.

Decrements are floored at zero. Entries can be edited or removed in ways that
do not exactly reverse earlier increments (manual data edits, imported data),
and a negative spend figure is never shown; small inconsistencies are absorbed
instead. This is intentional lenient reconciliation.
"""
from typing import Dict, NamedTuple, Set

from budget_tracker.models.budget import BudgetCode, BudgetEntry
from budget_tracker.models.project import Project


class RollupResult(NamedTuple):
    project_ids: Set[str]
    budget_code_ids: Set[str]

    def merge(self, other: "RollupResult") -> "RollupResult":
        return RollupResult(self.project_ids | other.project_ids, self.budget_code_ids | other.budget_code_ids)

    def __bool__(self) -> bool:
        return bool(self.project_ids or self.budget_code_ids)


def expense_amount(entry: BudgetEntry) -> float:
    return entry.amount if entry.is_expense else 0.0


def _adjust(target, delta: float) -> None:
    target.spent = max(0.0, target.spent + delta)


def _apply(
    projects: Dict[str, Project],
    budget_codes: Dict[str, BudgetCode],
    entry: BudgetEntry,
    sign: int,
) -> RollupResult:
    amount = expense_amount(entry)
    touched = RollupResult(set(), set())
    if not amount:
        return touched

    project = projects.get(entry.project_id)
    if project is not None:
        _adjust(project, sign * amount)
        touched.project_ids.add(project.id)

    code = budget_codes.get(entry.budget_code_id) if entry.budget_code_id else None
    if code is not None:
        _adjust(code, sign * amount)
        touched.budget_code_ids.add(code.id)
    return touched


def add_entry(projects: Dict[str, Project], budget_codes: Dict[str, BudgetCode], entry: BudgetEntry) -> RollupResult:
    """Count a newly created entry towards its project and budget code."""
    return _apply(projects, budget_codes, entry, +1)


def remove_entry(projects: Dict[str, Project], budget_codes: Dict[str, BudgetCode], entry: BudgetEntry) -> RollupResult:
    """Take a deleted entry out of its project and budget code, floored at zero."""
    return _apply(projects, budget_codes, entry, -1)


def replace_entry(
    projects: Dict[str, Project],
    budget_codes: Dict[str, BudgetCode],
    old: BudgetEntry,
    new: BudgetEntry,
) -> RollupResult:
    """
    Reconcile an edited entry: subtract the old contribution, add the new one.

    Handles amount, type, budget code and project changes the same way.
    """
    removed = remove_entry(projects, budget_codes, old)
    return removed.merge(add_entry(projects, budget_codes, new))


def recompute_all(
    projects: Dict[str, Project],
    budget_codes: Dict[str, BudgetCode],
    entries: Dict[str, BudgetEntry],
) -> None:
    """Rebuild every spent figure from scratch (used by EntityStore.rebuild_rollups)."""
    for project in projects.values():
        project.spent = 0.0
    for code in budget_codes.values():
        code.spent = 0.0
    for entry in entries.values():
        add_entry(projects, budget_codes, entry)
