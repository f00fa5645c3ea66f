"""Budget document storage.

Reference implementation of the storage collaborator: JSON documents laid out
as ``<root>/<user>/<budget>/<collection>.json``. The engine itself never calls
this module; the orchestration layer does, and write errors propagate to it.
"""

from __future__ import annotations

import json
import logging
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, TypeVar

from ...config import DEFAULT_BUDGET_ID, USERS_DIR, ensure_data_directories
from ...models import BudgetPreferences, Category, FinancialGoal, Transaction
from ..common.file_operations import ensure_directory, safe_filename

logger = logging.getLogger(__name__)

T = TypeVar('T')

GOALS = 'goals'
CATEGORIES = 'categories'
TRANSACTIONS = 'transactions'
PREFERENCES = 'preferences'


class BudgetStore:
    """Handles per-user, per-budget document storage."""

    def __init__(self, root: Optional[Path] = None):
        """Initialize budget storage.

        Args:
            root: Optional custom storage root. Defaults to USERS_DIR from config.
        """
        if root is None:
            ensure_data_directories()
            root = USERS_DIR
        self.root = Path(root)
        ensure_directory(self.root)

    def get_path(self, user_id: str, collection: str, budget_id: str = DEFAULT_BUDGET_ID) -> Path:
        """Get the file path of a collection document.

        Raises:
            ValueError: If the user id is empty
        """
        if not user_id or not str(user_id).strip():
            raise ValueError("User id cannot be empty")
        return (
            self.root
            / safe_filename(str(user_id), default='user')
            / safe_filename(str(budget_id), default=DEFAULT_BUDGET_ID)
            / f"{collection}.json"
        )

    # ------------------------------------------------------------------ raw I/O

    def _read(self, path: Path) -> Any:
        if not path.exists():
            return None
        try:
            with path.open('r', encoding='utf-8') as handle:
                return json.load(handle)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("Could not load %s: %s", path, e)
            return None

    def _write(self, path: Path, payload: Any) -> None:
        ensure_directory(path.parent)
        try:
            with path.open('w', encoding='utf-8') as handle:
                json.dump(payload, handle, indent=2, sort_keys=True, ensure_ascii=False)
        except OSError as e:
            raise OSError(f"Failed to save {path}: {e}") from e
        logger.info("Saved %s", path)

    def _load_records(self, user_id: str, collection: str, budget_id: str) -> List[Dict[str, Any]]:
        data = self._read(self.get_path(user_id, collection, budget_id))
        if not isinstance(data, list):
            return []
        return [row for row in data if isinstance(row, dict)]

    def _save_records(self, user_id: str, collection: str, budget_id: str, records: List[Dict[str, Any]]) -> None:
        self._write(self.get_path(user_id, collection, budget_id), records)

    def _load(self, user_id: str, collection: str, budget_id: str, factory: Callable[[Dict[str, Any]], T]) -> List[T]:
        return [factory(row) for row in self._load_records(user_id, collection, budget_id)]

    def _add(self, user_id: str, collection: str, budget_id: str, record: Dict[str, Any]) -> str:
        records = self._load_records(user_id, collection, budget_id)
        record = dict(record)
        existing = {row.get('id') for row in records}
        if not record.get('id') or record['id'] in existing:
            record['id'] = uuid.uuid4().hex
        records.append(record)
        self._save_records(user_id, collection, budget_id, records)
        return record['id']

    def _update(self, user_id: str, collection: str, budget_id: str, updates: Iterable[Dict[str, Any]]) -> int:
        """Merge updates into stored records by id in a single write; returns the match count."""
        by_id = {u['id']: u for u in updates if u.get('id')}
        if not by_id:
            return 0
        records = self._load_records(user_id, collection, budget_id)
        matched = 0
        for row in records:
            change = by_id.get(row.get('id'))
            if change is not None:
                row.update(change)
                matched += 1
        if matched:
            self._save_records(user_id, collection, budget_id, records)
        return matched

    def _delete(self, user_id: str, collection: str, budget_id: str, record_id: str) -> bool:
        records = self._load_records(user_id, collection, budget_id)
        remaining = [row for row in records if row.get('id') != record_id]
        if len(remaining) == len(records):
            return False
        self._save_records(user_id, collection, budget_id, remaining)
        return True

    # -------------------------------------------------------------------- goals

    def load_goals(self, user_id: str, budget_id: str = DEFAULT_BUDGET_ID) -> List[FinancialGoal]:
        return self._load(user_id, GOALS, budget_id, FinancialGoal.from_dict)

    def add_goal(self, user_id: str, goal: FinancialGoal, budget_id: str = DEFAULT_BUDGET_ID) -> str:
        """Store a new goal and return its id."""
        return self._add(user_id, GOALS, budget_id, goal.to_dict())

    def update_goal(self, user_id: str, goal: FinancialGoal, budget_id: str = DEFAULT_BUDGET_ID) -> bool:
        return self._update(user_id, GOALS, budget_id, [goal.to_dict()]) > 0

    def delete_goal(self, user_id: str, goal_id: str, budget_id: str = DEFAULT_BUDGET_ID) -> bool:
        return self._delete(user_id, GOALS, budget_id, goal_id)

    def update_goals_progress(
        self,
        user_id: str,
        goals: Iterable[FinancialGoal],
        budget_id: str = DEFAULT_BUDGET_ID,
    ) -> int:
        """Write new current amounts for several goals as one batch.

        Only ``current_amount`` and ``last_updated`` are written; goals that no
        longer exist in storage are skipped.
        """
        stamp = datetime.now().isoformat()
        updates = [
            {
                'id': goal.id,
                'current_amount': goal.current_amount,
                'last_updated': goal.last_updated or stamp,
            }
            for goal in goals
        ]
        return self._update(user_id, GOALS, budget_id, updates)

    # --------------------------------------------------------------- categories

    def load_categories(self, user_id: str, budget_id: str = DEFAULT_BUDGET_ID) -> List[Category]:
        return self._load(user_id, CATEGORIES, budget_id, Category.from_dict)

    def save_categories(self, user_id: str, categories: Iterable[Category], budget_id: str = DEFAULT_BUDGET_ID) -> None:
        """Replace the whole category list (used after a validated edit)."""
        self._save_records(user_id, CATEGORIES, budget_id, [c.to_dict() for c in categories])

    def add_category(self, user_id: str, category: Category, budget_id: str = DEFAULT_BUDGET_ID) -> str:
        return self._add(user_id, CATEGORIES, budget_id, category.to_dict())

    def update_category(self, user_id: str, category: Category, budget_id: str = DEFAULT_BUDGET_ID) -> bool:
        return self._update(user_id, CATEGORIES, budget_id, [category.to_dict()]) > 0

    def delete_category(self, user_id: str, category_id: str, budget_id: str = DEFAULT_BUDGET_ID) -> bool:
        return self._delete(user_id, CATEGORIES, budget_id, category_id)

    # ------------------------------------------------------------- transactions

    def load_transactions(self, user_id: str, budget_id: str = DEFAULT_BUDGET_ID) -> List[Transaction]:
        return self._load(user_id, TRANSACTIONS, budget_id, Transaction.from_dict)

    def add_transaction(self, user_id: str, transaction: Transaction, budget_id: str = DEFAULT_BUDGET_ID) -> str:
        return self._add(user_id, TRANSACTIONS, budget_id, transaction.to_dict())

    def update_transaction(self, user_id: str, transaction: Transaction, budget_id: str = DEFAULT_BUDGET_ID) -> bool:
        return self._update(user_id, TRANSACTIONS, budget_id, [transaction.to_dict()]) > 0

    def delete_transaction(self, user_id: str, transaction_id: str, budget_id: str = DEFAULT_BUDGET_ID) -> bool:
        return self._delete(user_id, TRANSACTIONS, budget_id, transaction_id)

    # -------------------------------------------------------------- preferences

    def load_preferences(self, user_id: str, budget_id: str = DEFAULT_BUDGET_ID) -> BudgetPreferences:
        data = self._read(self.get_path(user_id, PREFERENCES, budget_id))
        return BudgetPreferences.from_dict(data if isinstance(data, dict) else None)

    def save_preferences(self, user_id: str, preferences: BudgetPreferences, budget_id: str = DEFAULT_BUDGET_ID) -> None:
        self._write(self.get_path(user_id, PREFERENCES, budget_id), preferences.to_dict())
