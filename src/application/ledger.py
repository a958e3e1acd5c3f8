from __future__ import annotations

import dataclasses
import logging
from decimal import Decimal, InvalidOperation
from typing import Iterable

from domain.errors import NotFoundError, ValidationError
from domain.models import Account, BudgetCategory, Transaction, TransactionType
from domain.schemas import TransactionQuery
from application.views import LazyView

logger = logging.getLogger(__name__)


class TransactionLedger:
    """
    Insertion-ordered collection of transactions.

    Every mutation bumps ``version``; derived figures are recomputed from the
    ledger rather than patched.
    """

    def __init__(self, transactions: Iterable[Transaction] | None = None) -> None:
        self._transactions: list[Transaction] = []
        self._version = 0
        for txn in transactions or []:
            self.record(txn)

    @property
    def version(self) -> int:
        return self._version

    def __len__(self) -> int:
        return len(self._transactions)

    # ---- mutations ----
    def record(self, transaction: Transaction) -> Transaction:
        txn = self._normalize(transaction)
        if any(existing.id == txn.id for existing in self._transactions):
            raise ValidationError(f"Duplicate transaction id: {txn.id}")
        self._transactions.append(txn)
        self._version += 1
        logger.debug("Ledger recorded id=%s type=%s amount=%s", txn.id, txn.type.value, txn.amount)
        return txn

    def replace(self, transaction_id: str, transaction: Transaction) -> Transaction:
        index = self._index_of(transaction_id)
        txn = self._normalize(dataclasses.replace(transaction, id=transaction_id))
        self._transactions[index] = txn
        self._version += 1
        return txn

    def remove(self, transaction_id: str) -> Transaction:
        index = self._index_of(transaction_id)
        removed = self._transactions.pop(index)
        self._version += 1
        logger.debug("Ledger removed id=%s", transaction_id)
        return removed

    def checkpoint(self) -> tuple[Transaction, ...]:
        return tuple(self._transactions)

    def restore(self, checkpoint: tuple[Transaction, ...]) -> None:
        self._transactions = list(checkpoint)
        self._version += 1

    # ---- reads ----
    def get(self, transaction_id: str) -> Transaction:
        return self._transactions[self._index_of(transaction_id)]

    def list(self) -> LazyView[Transaction]:
        return LazyView(lambda: self._transactions)

    def query(self, query: TransactionQuery) -> list[Transaction]:
        return [txn for txn in self._transactions if self._matches(txn, query)]

    def _index_of(self, transaction_id: str) -> int:
        for index, txn in enumerate(self._transactions):
            if txn.id == transaction_id:
                return index
        raise NotFoundError(f"Transaction not found: {transaction_id}")

    # ---- validation ----
    def _normalize(self, txn: Transaction) -> Transaction:
        try:
            txn_type = TransactionType(txn.type)
        except ValueError as exc:
            raise ValidationError(f"Unknown transaction type: {txn.type!r}") from exc
        try:
            category = BudgetCategory(txn.category)
        except ValueError as exc:
            raise ValidationError(f"Unknown category: {txn.category!r}") from exc
        account = _coerce_account(txn.account)
        amount = _coerce_amount(txn.amount)

        destination = None
        if txn_type == TransactionType.TRANSFER:
            if txn.destination_account is None:
                raise ValidationError("Transfer requires a destination account")
            destination = _coerce_account(txn.destination_account)
            if destination == account:
                raise ValidationError("Transfer source and destination must differ")
            if category != BudgetCategory.NONE:
                raise ValidationError("Transfers cannot carry a budget category")
        elif txn.destination_account is not None:
            raise ValidationError("Only transfers may have a destination account")

        return dataclasses.replace(
            txn,
            type=txn_type,
            category=category,
            account=account,
            amount=amount,
            destination_account=destination,
        )

    def _matches(self, txn: Transaction, query: TransactionQuery) -> bool:
        if query.date_range is not None and not query.date_range.to_period().contains(txn.date):
            return False

        if query.accounts:
            touched = {txn.account, txn.destination_account}
            if not touched.intersection(query.accounts):
                return False

        if query.categories and txn.category not in query.categories:
            return False

        if query.txn_type is not None and txn.type != query.txn_type:
            return False

        if query.min_amount is not None and txn.amount < query.min_amount:
            return False
        if query.max_amount is not None and txn.amount > query.max_amount:
            return False

        text = (query.query or "").strip().lower()
        if text and text not in txn.description.lower() and text not in txn.subcategory.lower():
            return False

        return True


def _coerce_account(value: object) -> Account:
    try:
        return Account(value)
    except ValueError as exc:
        raise ValidationError(f"Unknown account: {value!r}") from exc


def _coerce_amount(value: object) -> Decimal:
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise ValidationError(f"Amount is not a number: {value!r}") from exc
    if not amount.is_finite():
        raise ValidationError(f"Amount must be finite: {value!r}")
    if amount < 0:
        raise ValidationError(f"Amount must be >= 0, got {amount}")
    return amount
