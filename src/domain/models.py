from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum


class TransactionType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"
    TRANSFER = "transfer"


class BudgetCategory(str, Enum):
    NEEDS = "needs"
    WANTS = "wants"
    RESPONSIBILITIES = "responsibilities"
    NONE = "none"


BUDGET_CATEGORIES: tuple[BudgetCategory, ...] = (
    BudgetCategory.NEEDS,
    BudgetCategory.WANTS,
    BudgetCategory.RESPONSIBILITIES,
)


class Account(str, Enum):
    ANZ = "anz"
    BARODA = "baroda"
    BSP = "bsp"
    BRED = "bred"
    HFC = "hfc"
    WESTPAC = "westpac"
    MPAISA = "mpaisa"
    CASH = "cash"
    OTHER = "other"
    WANT_WALLET = "want_wallet"


BANK_ACCOUNTS: frozenset[Account] = frozenset(
    {
        Account.ANZ,
        Account.BARODA,
        Account.BSP,
        Account.BRED,
        Account.HFC,
        Account.WESTPAC,
        Account.OTHER,
    }
)


@dataclass(frozen=True)
class Transaction:
    id: str
    date: date
    type: TransactionType
    amount: Decimal
    account: Account
    category: BudgetCategory = BudgetCategory.NONE
    description: str = ""
    subcategory: str = ""
    destination_account: Account | None = None
    document_url: str | None = None
    created_at: datetime | None = None

    @property
    def counts_toward_budget(self) -> bool:
        return self.type == TransactionType.EXPENSE and self.category in BUDGET_CATEGORIES


@dataclass
class BudgetSettings:
    needs_percentage: Decimal = Decimal("50")
    wants_percentage: Decimal = Decimal("30")
    responsibilities_percentage: Decimal = Decimal("20")
    # When set, takes precedence over summed income transactions.
    monthly_salary: Decimal | None = None
    is_locked: bool = False

    def percentage_for(self, category: BudgetCategory) -> Decimal:
        if category == BudgetCategory.NEEDS:
            return self.needs_percentage
        if category == BudgetCategory.WANTS:
            return self.wants_percentage
        if category == BudgetCategory.RESPONSIBILITIES:
            return self.responsibilities_percentage
        return Decimal("0")

    @property
    def total_percentage(self) -> Decimal:
        return self.needs_percentage + self.wants_percentage + self.responsibilities_percentage


@dataclass
class Goal:
    id: str
    name: str
    target_amount: Decimal
    current_amount: Decimal = Decimal("0")
    target_date: date | None = None
    category: str = ""
    description: str = ""
    created_at: datetime | None = None

    @property
    def is_completed(self) -> bool:
        return self.current_amount >= self.target_amount

    @property
    def remaining_amount(self) -> Decimal:
        return max(self.target_amount - self.current_amount, Decimal("0"))

    @property
    def progress_percentage(self) -> Decimal:
        return self.current_amount / self.target_amount * 100


DEFAULT_EMPLOYEE_PERCENTAGE = Decimal("8.5")
DEFAULT_PERSONAL_PERCENTAGE = Decimal("0")


@dataclass(frozen=True)
class FNPFConfig:
    employee_percentage: Decimal = DEFAULT_EMPLOYEE_PERCENTAGE
    personal_contribution_percentage: Decimal = DEFAULT_PERSONAL_PERCENTAGE


@dataclass(frozen=True)
class Period:
    """Inclusive calendar date range used to scope monthly figures."""

    start: date
    end: date

    def contains(self, value: date) -> bool:
        return self.start <= value <= self.end

