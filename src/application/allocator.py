from __future__ import annotations

from calendar import month_name, monthrange
from datetime import date
from decimal import Decimal
from typing import Iterable

from domain.models import BUDGET_CATEGORIES, BudgetCategory, BudgetSettings, Period, Transaction, TransactionType
from domain.schemas import CategoryProgress, MonthSummary

ZERO = Decimal("0")
HUNDRED = Decimal("100")

CAUTION_THRESHOLD = Decimal("75")
ALMOST_EXHAUSTED_THRESHOLD = Decimal("90")
EXCEEDED_THRESHOLD = Decimal("100")


def month_period(year: int, month_number: int) -> Period:
    start = date(year, month_number, 1)
    end = date(year, month_number, monthrange(year, month_number)[1])
    return Period(start=start, end=end)


def current_month(today: date | None = None) -> Period:
    """Calendar month containing ``today`` (local date)."""
    today = today or date.today()
    return month_period(today.year, today.month)


def _in_period(txn: Transaction, period: Period | None) -> bool:
    return period is None or period.contains(txn.date)


def category_spent(transactions: Iterable[Transaction], category: BudgetCategory, period: Period | None) -> Decimal:
    if category not in BUDGET_CATEGORIES:
        return ZERO
    return sum(
        (txn.amount for txn in transactions
         if txn.counts_toward_budget and txn.category == category and _in_period(txn, period)),
        ZERO,
    )


def total_spent(transactions: Iterable[Transaction], period: Period | None) -> Decimal:
    # Transfers and untagged expenses never count toward the budget.
    return sum(
        (txn.amount for txn in transactions if txn.counts_toward_budget and _in_period(txn, period)),
        ZERO,
    )


def period_income(transactions: Iterable[Transaction], period: Period | None) -> Decimal:
    return sum(
        (txn.amount for txn in transactions if txn.type == TransactionType.INCOME and _in_period(txn, period)),
        ZERO,
    )


def income_basis(transactions: Iterable[Transaction], settings: BudgetSettings, period: Period | None) -> Decimal:
    """
    Salary figure every budget ceiling is derived from.

    A configured fixed monthly salary is authoritative. Only when none is
    configured does the basis fall back to income transactions in the period.
    """
    if settings.monthly_salary is not None and settings.monthly_salary > 0:
        return settings.monthly_salary
    return period_income(transactions, period)


def category_budget(basis: Decimal, settings: BudgetSettings, category: BudgetCategory) -> Decimal:
    return basis * settings.percentage_for(category) / HUNDRED


def utilization(spent: Decimal, budget: Decimal) -> Decimal:
    """Spent as a percentage of budget; unbounded above 100, zero for an empty budget."""
    if budget == 0:
        return ZERO
    return spent / budget * HUNDRED


def remaining_salary(basis: Decimal, spent: Decimal) -> Decimal:
    return basis - spent


def actual_savings(basis: Decimal, settings: BudgetSettings, needs_spent: Decimal, wants_spent: Decimal) -> Decimal:
    """Responsibilities share of the basis plus whatever is left (or overspent) of Needs and Wants."""
    savings_allocated = category_budget(basis, settings, BudgetCategory.RESPONSIBILITIES)
    needs_remaining = category_budget(basis, settings, BudgetCategory.NEEDS) - needs_spent
    wants_remaining = category_budget(basis, settings, BudgetCategory.WANTS) - wants_spent
    return savings_allocated + needs_remaining + wants_remaining


def savings_rate(income: Decimal, savings: Decimal) -> Decimal:
    if income == 0:
        return ZERO
    return savings / income * HUNDRED


def budget_status(budget: Decimal, ratio: Decimal) -> str:
    if budget == 0:
        return "no-budget"
    if ratio > EXCEEDED_THRESHOLD:
        return "over-budget"
    if ratio > ALMOST_EXHAUSTED_THRESHOLD:
        return "warning"
    if ratio > CAUTION_THRESHOLD:
        return "caution"
    return "good"


def category_progress(
    transactions: Iterable[Transaction],
    settings: BudgetSettings,
    category: BudgetCategory,
    period: Period | None,
) -> CategoryProgress:
    rows = tuple(transactions)
    basis = income_basis(rows, settings, period)
    budget = category_budget(basis, settings, category)
    spent = category_spent(rows, category, period)
    ratio = utilization(spent, budget)
    return CategoryProgress(
        category=category,
        percentage=settings.percentage_for(category),
        budget=budget,
        spent=spent,
        utilization=ratio,
        display_percentage=min(ratio, HUNDRED),
        remaining=budget - spent,
        overspend=max(spent - budget, ZERO),
        status=budget_status(budget, ratio),
        almost_exhausted=budget > 0 and ratio > ALMOST_EXHAUSTED_THRESHOLD,
        exceeded=budget > 0 and ratio > EXCEEDED_THRESHOLD,
    )


def monthly_history(
    transactions: Iterable[Transaction],
    settings: BudgetSettings,
    months: int = 6,
    today: date | None = None,
) -> list[MonthSummary]:
    """Most recent month first, ``months`` entries ending with the current month."""
    rows = tuple(transactions)
    today = today or date.today()
    year, month = today.year, today.month
    history: list[MonthSummary] = []
    for _ in range(max(months, 0)):
        period = month_period(year, month)
        basis = income_basis(rows, settings, period)
        spent = total_spent(rows, period)
        history.append(
            MonthSummary(
                year=year,
                month_number=month,
                month_name=month_name[month],
                income_basis=basis,
                total_spent=spent,
                remaining_salary=remaining_salary(basis, spent),
            )
        )
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    return history
