"""Transaction storage backends."""

from spending_insights.storage.base import ConflictError, TransactionStore
from spending_insights.storage.memory import InMemoryTransactionStore
from spending_insights.storage.yaml_store import YamlTransactionStore

__all__ = [
    "ConflictError",
    "TransactionStore",
    "InMemoryTransactionStore",
    "YamlTransactionStore",
]
