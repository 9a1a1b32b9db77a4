"""Transaction store persisted to a YAML file."""

import os
from pathlib import Path
from typing import Optional

import yaml

from spending_insights.models.category import Category
from spending_insights.models.transaction import Transaction
from spending_insights.storage.base import ConflictError
from spending_insights.storage.memory import InMemoryTransactionStore
from spending_insights.utils.logging_config import get_logger

logger = get_logger(__name__)


class YamlTransactionStore(InMemoryTransactionStore):
    """In-memory store that mirrors every write to a YAML file.

    The file holds two lists, ``categories`` and ``transactions``. It is
    read once on construction and rewritten (via a temporary file and an
    atomic rename) after each successful write. Budgets may live in the same
    file under ``budgets``; the store only reads them.
    """

    def __init__(self, path: Path, autosave: bool = True):
        """Initialize store.

        Args:
            path: YAML file location; created on first save if missing.
            autosave: Write the file after each create/add call.
        """
        super().__init__()
        self.path = path
        self.autosave = autosave
        self._budgets: list[dict[str, object]] = []
        if path.exists():
            self._load()

    def _load(self) -> None:
        with open(self.path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ValueError(f"{self.path} must contain a mapping, got {type(data).__name__}")

        for cat_data in data.get("categories") or []:
            super().add_category(Category.from_dict(cat_data))

        loaded = 0
        for txn_data in data.get("transactions") or []:
            txn = Transaction.from_dict(txn_data)
            try:
                super().create_transaction(txn)
            except ConflictError:
                # Hand-edited or merged files; the next save drops the copy
                logger.warning(f"Skipping duplicate transaction {txn.id} in {self.path}")
                continue
            loaded += 1

        self._budgets = list(data.get("budgets") or [])
        logger.info(f"Loaded {loaded} transactions from {self.path}")

    def budget_data(self) -> list[dict[str, object]]:
        """Raw budget entries kept in the file (not interpreted by the store)."""
        return list(self._budgets)

    def create_transaction(self, txn: Transaction) -> Transaction:
        created = super().create_transaction(txn)
        if self.autosave:
            self.save()
        return created

    def add_category(self, category: Category) -> Category:
        added = super().add_category(category)
        if self.autosave:
            self.save()
        return added

    def save(self, path: Optional[Path] = None) -> None:
        """Write all categories and transactions to disk.

        Args:
            path: Alternative destination (defaults to the store's path).
        """
        target = path or self.path
        with self._lock:
            data: dict[str, object] = {
                "categories": [c.to_dict() for cats in self._categories.values() for c in cats.values()],
                "transactions": [t.to_dict() for rows in self._transactions.values() for t in rows],
            }
            if self._budgets:
                data["budgets"] = self._budgets

            target.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = target.with_suffix(target.suffix + ".tmp")
            with open(tmp_path, "w", encoding="utf-8") as f:
                yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False, allow_unicode=True)
            os.replace(tmp_path, target)

        logger.debug(f"Saved transaction store to {target}")
