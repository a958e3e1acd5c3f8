from __future__ import annotations

import dataclasses
import logging
import time
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, TypeVar
from uuid import uuid4

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from application import allocator, balances, fnpf
from application.goals import GoalTracker
from application.ledger import TransactionLedger
from application.validator import ConsistencyValidator, ValidationIssue
from application.views import LazyView
from domain.errors import FinanceError, PersistenceError, ValidationError
from domain.models import (
    BUDGET_CATEGORIES,
    Account,
    BudgetCategory,
    BudgetSettings,
    FNPFConfig,
    Goal,
    Period,
    Transaction,
    TransactionType,
)
from domain.schemas import (
    BudgetSettingsInput,
    BudgetSettingsView,
    CategoryProgress,
    ContributionInput,
    DateRange,
    FNPFConfigPayload,
    FNPFProjection,
    GoalInput,
    GoalView,
    MonthSummary,
    StoreSnapshot,
    TransactionInput,
    TransactionQuery,
    TransactionView,
)
from infrastructure.persistence.key_value_store import KeyValueStore
from infrastructure.persistence.ledger_repository import LedgerRepository
from infrastructure.settings_store import (
    load_budget_settings,
    save_budget_settings,
)

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)
T = TypeVar("T")


def parse_input(model: type[M], payload: M | dict[str, Any]) -> M:
    """Validate an outer-surface payload, translating pydantic failures to ValidationError."""
    if isinstance(payload, model):
        return payload
    try:
        return model.model_validate(payload)
    except PydanticValidationError as exc:
        details = "; ".join(
            f"{'.'.join(str(part) for part in err['loc']) or '<root>'}: {err['msg']}" for err in exc.errors()
        )
        raise ValidationError(f"Invalid {model.__name__}: {details}") from exc


class FinanceStore:
    """
    Session-wide state container for the budgeting dashboard.

    Holds the ledger, goals, budget settings and FNPF config; every read
    surface is derived from those on demand. Mutations validate first, persist
    the touched keys, and only then become visible. A failed mutation leaves
    memory exactly as it was.
    """

    def __init__(
        self,
        store: KeyValueStore,
        *,
        currency: str = "FJD",
        clock: Callable[[], date] | None = None,
    ) -> None:
        self._kv = store
        self._repository = LedgerRepository(store)
        self._currency = currency
        self._today = clock or date.today
        self._validator = ConsistencyValidator()

        t0 = time.perf_counter()
        self._settings = load_budget_settings(store)
        self._projector = fnpf.ContributionProjector(store)
        try:
            self._ledger = TransactionLedger(self._repository.load_transactions())
        except ValidationError as exc:
            logger.exception("Stored transactions violate ledger rules")
            raise PersistenceError(f"Stored transactions are invalid: {exc}") from exc
        self._goals = GoalTracker(self._repository.load_goals())

        self._version = 0
        self._cache: tuple[tuple[int, int, int, Period], StoreSnapshot] | None = None
        logger.info(
            "Finance store loaded in %.3fs transactions=%d goals=%d",
            time.perf_counter() - t0,
            len(self._ledger),
            len(self._goals.list()),
        )

    # ---- plain reads ----
    @property
    def version(self) -> int:
        return self._version

    @property
    def budget_settings(self) -> BudgetSettings:
        return dataclasses.replace(self._settings)

    @property
    def fnpf_config(self) -> FNPFConfig:
        return self._projector.config()

    # Read-only views; every change goes through the mutation methods below.
    def transactions(self) -> LazyView[Transaction]:
        return self._ledger.list()

    def get_transaction(self, transaction_id: str) -> Transaction:
        return self._ledger.get(transaction_id)

    def list_goals(self) -> LazyView[Goal]:
        return self._goals.list()

    def list_active_goals(self) -> LazyView[Goal]:
        return self._goals.list_active()

    def list_completed_goals(self) -> LazyView[Goal]:
        return self._goals.list_completed()

    def get_goal(self, goal_id: str) -> Goal:
        return self._goals.get(goal_id)

    # ---- transactions ----
    def add_transaction(self, payload: TransactionInput | dict[str, Any]) -> Transaction:
        data = parse_input(TransactionInput, payload)
        txn = Transaction(
            id=uuid4().hex,
            date=data.date or self._today(),
            type=data.type,
            amount=data.amount,
            account=data.account,
            category=data.category,
            description=data.description,
            subcategory=data.subcategory,
            destination_account=data.destination_account,
            document_url=data.document_url,
            created_at=datetime.now(),
        )
        return self._mutate("add_transaction", lambda: self._ledger.record(txn), self._save_transactions)

    def add_income(self, amount: Any, account: Account | str, **fields: Any) -> Transaction:
        return self.add_transaction({**fields, "type": TransactionType.INCOME, "amount": amount, "account": account})

    def add_expense(
        self,
        amount: Any,
        category: BudgetCategory | str,
        account: Account | str,
        **fields: Any,
    ) -> Transaction:
        return self.add_transaction(
            {**fields, "type": TransactionType.EXPENSE, "amount": amount, "category": category, "account": account}
        )

    def transfer(self, amount: Any, source: Account | str, destination: Account | str, **fields: Any) -> Transaction:
        # Both sides are resolved before anything is recorded.
        src, dst = balances.validate_transfer(source, destination)
        return self.add_transaction(
            {
                **fields,
                "type": TransactionType.TRANSFER,
                "amount": amount,
                "account": src,
                "destination_account": dst,
            }
        )

    def update_transaction(self, transaction_id: str, payload: TransactionInput | dict[str, Any]) -> Transaction:
        data = parse_input(TransactionInput, payload)
        existing = self._ledger.get(transaction_id)
        replacement = dataclasses.replace(
            existing,
            date=data.date or existing.date,
            type=data.type,
            amount=data.amount,
            account=data.account,
            category=data.category,
            description=data.description,
            subcategory=data.subcategory,
            destination_account=data.destination_account,
            document_url=data.document_url,
        )
        return self._mutate(
            "update_transaction",
            lambda: self._ledger.replace(transaction_id, replacement),
            self._save_transactions,
        )

    def delete_transaction(self, transaction_id: str) -> Transaction:
        return self._mutate("delete_transaction", lambda: self._ledger.remove(transaction_id), self._save_transactions)

    def query_transactions(self, query: TransactionQuery | dict[str, Any]) -> list[Transaction]:
        return self._ledger.query(parse_input(TransactionQuery, query))

    # ---- goals ----
    def create_goal(self, payload: GoalInput | dict[str, Any]) -> Goal:
        data = parse_input(GoalInput, payload)
        return self._mutate(
            "create_goal",
            lambda: self._goals.create_goal(
                data.name,
                data.target_amount,
                target_date=data.target_date,
                category=data.category,
                description=data.description,
            ),
            self._save_goals,
        )

    def contribute_to_goal(self, goal_id: str, amount: Any) -> Goal:
        data = parse_input(ContributionInput, {"amount": amount})
        return self._mutate("contribute_to_goal", lambda: self._goals.contribute(goal_id, data.amount), self._save_goals)

    def delete_goal(self, goal_id: str) -> Goal:
        return self._mutate("delete_goal", lambda: self._goals.remove(goal_id), self._save_goals)

    # ---- settings ----
    def update_budget_settings(self, payload: BudgetSettingsInput | dict[str, Any]) -> BudgetSettings:
        data = parse_input(BudgetSettingsInput, payload)
        if self._settings.is_locked:
            raise ValidationError("Budget settings are locked; unlock them before editing")

        def apply() -> BudgetSettings:
            self._settings = BudgetSettings(
                needs_percentage=data.needs_percentage,
                wants_percentage=data.wants_percentage,
                responsibilities_percentage=data.responsibilities_percentage,
                monthly_salary=data.monthly_salary,
                is_locked=False,
            )
            return self.budget_settings

        return self._mutate("update_budget_settings", apply, self._save_settings)

    def lock_budget_settings(self) -> BudgetSettings:
        return self._set_lock(True)

    def unlock_budget_settings(self) -> BudgetSettings:
        return self._set_lock(False)

    def _set_lock(self, locked: bool) -> BudgetSettings:
        def apply() -> BudgetSettings:
            self._settings = dataclasses.replace(self._settings, is_locked=locked)
            return self.budget_settings

        return self._mutate("lock_budget_settings" if locked else "unlock_budget_settings", apply, self._save_settings)

    def update_fnpf_config(self, payload: FNPFConfigPayload | dict[str, Any]) -> FNPFConfig:
        data = parse_input(FNPFConfigPayload, payload)

        def apply() -> FNPFConfig:
            self._projector.set_config(
                FNPFConfig(
                    employee_percentage=Decimal(str(data.employee_percentage)),
                    personal_contribution_percentage=Decimal(str(data.personal_contribution_percentage)),
                )
            )
            return self._projector.config()

        return self._mutate("update_fnpf_config", apply, self._projector.save)

    # ---- derived reads ----
    def current_period(self) -> Period:
        return allocator.current_month(self._today())

    def income_basis(self, period: Period | None = None) -> Decimal:
        period = period or self.current_period()
        return allocator.income_basis(self._ledger.list(), self._settings, period)

    def category_spent(self, category: BudgetCategory, period: Period | None = None) -> Decimal:
        return allocator.category_spent(self._ledger.list(), category, period or self.current_period())

    def category_budget(self, category: BudgetCategory, period: Period | None = None) -> Decimal:
        return allocator.category_budget(self.income_basis(period), self._settings, category)

    def utilization(self, category: BudgetCategory, period: Period | None = None) -> Decimal:
        return allocator.utilization(self.category_spent(category, period), self.category_budget(category, period))

    def progress(self, category: BudgetCategory, period: Period | None = None) -> CategoryProgress:
        return allocator.category_progress(
            self._ledger.list(), self._settings, category, period or self.current_period()
        )

    def balance(self, account: Account | str) -> Decimal:
        return balances.balance(self._ledger.list(), account)

    def fnpf_projection(self, salary: Decimal | str | None = None) -> FNPFProjection:
        """Project against ``salary``, or this month's income basis when omitted."""
        if salary is None:
            basis = self.income_basis()
        else:
            try:
                basis = Decimal(str(salary))
            except InvalidOperation as exc:
                raise ValidationError(f"Salary is not a number: {salary!r}") from exc
            if not basis.is_finite() or basis < 0:
                raise ValidationError(f"Salary must be >= 0, got {salary}")
        return self._projector.project(basis)

    def monthly_history(self, months: int = 6) -> list[MonthSummary]:
        return allocator.monthly_history(self._ledger.list(), self._settings, months=months, today=self._today())

    def consistency_issues(self, period: Period | None = None) -> list[ValidationIssue]:
        return self._validator.validate(self.snapshot(period))

    def snapshot(self, period: Period | None = None) -> StoreSnapshot:
        period = period or self.current_period()
        key = (self._version, self._ledger.version, self._goals.version, period)
        if self._cache is not None and self._cache[0] == key:
            return self._cache[1]

        t = time.perf_counter()
        rows = self._ledger.checkpoint()
        basis = allocator.income_basis(rows, self._settings, period)
        spent = {category: allocator.category_spent(rows, category, period) for category in BUDGET_CATEGORIES}
        budgets = {
            category: allocator.category_budget(basis, self._settings, category) for category in BUDGET_CATEGORIES
        }
        total = allocator.total_spent(rows, period)
        totals = balances.balances(rows)
        savings = allocator.actual_savings(
            basis, self._settings, spent[BudgetCategory.NEEDS], spent[BudgetCategory.WANTS]
        )

        snapshot = StoreSnapshot(
            version=self._version,
            period=DateRange(start=period.start, end=period.end),
            currency=self._currency,
            budget_settings=settings_view(self._settings),
            transactions=[transaction_view(txn) for txn in rows],
            goals=[goal_view(goal) for goal in self._goals.list()],
            income_basis=basis,
            needs_budget=budgets[BudgetCategory.NEEDS],
            wants_budget=budgets[BudgetCategory.WANTS],
            responsibilities_budget=budgets[BudgetCategory.RESPONSIBILITIES],
            needs_spent=spent[BudgetCategory.NEEDS],
            wants_spent=spent[BudgetCategory.WANTS],
            responsibilities_spent=spent[BudgetCategory.RESPONSIBILITIES],
            total_spent=total,
            remaining_salary=allocator.remaining_salary(basis, total),
            actual_savings=savings,
            savings_rate=allocator.savings_rate(basis, savings),
            want_wallet_balance=balances.want_wallet_balance(totals),
            bank_balance=balances.bank_balance(totals),
            account_balances={account.value: amount for account, amount in totals.items()},
            progress=[
                allocator.category_progress(rows, self._settings, category, period) for category in BUDGET_CATEGORIES
            ],
            fnpf=self._projector.project(basis),
        )
        self._cache = (key, snapshot)
        logger.debug("Snapshot built in %.3fs version=%d period=%s", time.perf_counter() - t, self._version, period)
        return snapshot

    # ---- internals ----
    def _mutate(self, action: str, apply: Callable[[], T], persist: Callable[[], None]) -> T:
        ledger_checkpoint = self._ledger.checkpoint()
        goals_checkpoint = self._goals.checkpoint()
        settings, fnpf_config = self._settings, self._projector.config()

        t = time.perf_counter()
        try:
            result = apply()
            persist()
        except FinanceError as exc:
            self._ledger.restore(ledger_checkpoint)
            self._goals.restore(goals_checkpoint)
            self._settings = settings
            self._projector.set_config(fnpf_config)
            logger.warning("Store %s rejected (%s): %s", action, exc.__class__.__name__, exc)
            raise

        self._version += 1
        logger.info("Store %s complete in %.3fs version=%d", action, time.perf_counter() - t, self._version)
        return result

    def _save_transactions(self) -> None:
        self._repository.save_transactions(self._ledger.list())

    def _save_goals(self) -> None:
        self._repository.save_goals(self._goals.list())

    def _save_settings(self) -> None:
        save_budget_settings(self._kv, self._settings)


def settings_view(settings: BudgetSettings) -> BudgetSettingsView:
    return BudgetSettingsView(
        needs_percentage=settings.needs_percentage,
        wants_percentage=settings.wants_percentage,
        responsibilities_percentage=settings.responsibilities_percentage,
        monthly_salary=settings.monthly_salary,
        is_locked=settings.is_locked,
    )


def transaction_view(txn: Transaction) -> TransactionView:
    return TransactionView(
        id=txn.id,
        date=txn.date,
        type=txn.type,
        category=txn.category,
        account=txn.account,
        destination_account=txn.destination_account,
        amount=txn.amount,
        description=txn.description,
        subcategory=txn.subcategory,
        document_url=txn.document_url,
        created_at=txn.created_at,
    )


def goal_view(goal: Goal) -> GoalView:
    return GoalView(
        id=goal.id,
        name=goal.name,
        target_amount=goal.target_amount,
        current_amount=goal.current_amount,
        remaining_amount=goal.remaining_amount,
        progress_percentage=goal.progress_percentage,
        is_completed=goal.is_completed,
        target_date=goal.target_date,
        category=goal.category,
        description=goal.description,
    )
