from __future__ import annotations

import logging
from typing import Any, Iterable

from pydantic import ValidationError as PydanticValidationError

from domain.errors import PersistenceError
from domain.models import Goal, Transaction
from domain.schemas import GoalRecord, TransactionRecord
from infrastructure.persistence.key_value_store import KeyValueStore

logger = logging.getLogger(__name__)

TRANSACTIONS_KEY = "transactions"
GOALS_KEY = "goals"


class LedgerRepository:
    """
    Durable copy of transactions and goals.

    Unlike configuration, unreadable ledger data is never replaced by defaults:
    failures are logged and raised as PersistenceError.
    """

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    # ---- transactions ----
    def load_transactions(self) -> list[Transaction]:
        rows = self._load_list(TRANSACTIONS_KEY)
        try:
            return [transaction_from_record(TransactionRecord.model_validate(row)) for row in rows]
        except PydanticValidationError as exc:
            logger.error("Stored transactions failed validation: %s", exc.errors(include_url=False))
            raise PersistenceError(f"Stored transactions are corrupted: {exc}") from exc

    def save_transactions(self, transactions: Iterable[Transaction]) -> None:
        rows = [transaction_to_record(txn).model_dump(mode="json") for txn in transactions]
        self._save(TRANSACTIONS_KEY, rows)

    # ---- goals ----
    def load_goals(self) -> list[Goal]:
        rows = self._load_list(GOALS_KEY)
        try:
            return [goal_from_record(GoalRecord.model_validate(row)) for row in rows]
        except PydanticValidationError as exc:
            logger.error("Stored goals failed validation: %s", exc.errors(include_url=False))
            raise PersistenceError(f"Stored goals are corrupted: {exc}") from exc

    def save_goals(self, goals: Iterable[Goal]) -> None:
        rows = [goal_to_record(goal).model_dump(mode="json") for goal in goals]
        self._save(GOALS_KEY, rows)

    def _load_list(self, key: str) -> list[Any]:
        try:
            raw = self._store.load(key)
        except PersistenceError:
            logger.exception("Failed to load %s", key)
            raise
        if raw is None:
            return []
        if not isinstance(raw, list):
            logger.error("Stored %s is a %s, expected a list", key, type(raw).__name__)
            raise PersistenceError(f"Stored {key} must be a JSON list, got {type(raw).__name__}")
        return raw

    def _save(self, key: str, rows: list[dict[str, Any]]) -> None:
        try:
            self._store.save(key, rows)
        except PersistenceError:
            logger.exception("Failed to save %s count=%d", key, len(rows))
            raise


def transaction_to_record(txn: Transaction) -> TransactionRecord:
    return TransactionRecord(
        id=txn.id,
        date=txn.date,
        type=txn.type,
        amount=txn.amount,
        account=txn.account,
        category=txn.category,
        description=txn.description,
        subcategory=txn.subcategory,
        destination_account=txn.destination_account,
        document_url=txn.document_url,
        created_at=txn.created_at,
    )


def transaction_from_record(record: TransactionRecord) -> Transaction:
    return Transaction(
        id=record.id,
        date=record.date,
        type=record.type,
        amount=record.amount,
        account=record.account,
        category=record.category,
        description=record.description,
        subcategory=record.subcategory,
        destination_account=record.destination_account,
        document_url=record.document_url,
        created_at=record.created_at,
    )


def goal_to_record(goal: Goal) -> GoalRecord:
    return GoalRecord(
        id=goal.id,
        name=goal.name,
        target_amount=goal.target_amount,
        current_amount=goal.current_amount,
        target_date=goal.target_date,
        category=goal.category,
        description=goal.description,
        created_at=goal.created_at,
    )


def goal_from_record(record: GoalRecord) -> Goal:
    return Goal(
        id=record.id,
        name=record.name,
        target_amount=record.target_amount,
        current_amount=record.current_amount,
        target_date=record.target_date,
        category=record.category,
        description=record.description,
        created_at=record.created_at,
    )
