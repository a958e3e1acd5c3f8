from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from domain.schemas import PERCENTAGE_TOLERANCE, StoreSnapshot


@dataclass(frozen=True)
class ValidationIssue:
    code: str
    message: str
    path: str = ""
    severity: str = "error"  # "error" | "warn"


class ConsistencyValidator:
    """
    Deterministic reconciliation checks over a StoreSnapshot.

    Checks:
      - total spent equals the sum of the three category sums
      - budget ceilings add back up to the income basis
      - each goal's completion flag matches its amounts
      - budget percentages total 100
      - actual savings and savings rate follow from budgets and spend
    """

    MONEY_TOLERANCE = Decimal("0.01")

    def validate(self, snapshot: StoreSnapshot) -> list[ValidationIssue]:
        issues: list[ValidationIssue] = []

        # --- 1) Spend reconciliation ---
        category_total = snapshot.needs_spent + snapshot.wants_spent + snapshot.responsibilities_spent
        if abs(snapshot.total_spent - category_total) > self.MONEY_TOLERANCE:
            issues.append(ValidationIssue(
                code="SPENT_MISMATCH",
                message=f"totalSpent {snapshot.total_spent} != category sum {category_total}",
                path="total_spent",
            ))

        if abs(snapshot.remaining_salary - (snapshot.income_basis - snapshot.total_spent)) > self.MONEY_TOLERANCE:
            issues.append(ValidationIssue(
                code="REMAINING_MISMATCH",
                message="remainingSalary does not equal income basis minus total spent",
                path="remaining_salary",
            ))

        # --- 2) Budget reconciliation ---
        settings = snapshot.budget_settings
        percentage_total = settings.needs_percentage + settings.wants_percentage + settings.responsibilities_percentage
        if abs(percentage_total - 100) > PERCENTAGE_TOLERANCE:
            issues.append(ValidationIssue(
                code="PERCENTAGE_TOTAL",
                message=f"Budget percentages total {percentage_total}, expected 100",
                path="budget_settings",
                severity="warn",
            ))
        else:
            budget_total = snapshot.needs_budget + snapshot.wants_budget + snapshot.responsibilities_budget
            expected = snapshot.income_basis * percentage_total / 100
            if abs(budget_total - expected) > self.MONEY_TOLERANCE:
                issues.append(ValidationIssue(
                    code="BUDGET_MISMATCH",
                    message=f"Budgets total {budget_total}, expected {expected}",
                    path="needs_budget",
                ))

        # --- 3) Savings ---
        expected_savings = (
            snapshot.responsibilities_budget
            + (snapshot.needs_budget - snapshot.needs_spent)
            + (snapshot.wants_budget - snapshot.wants_spent)
        )
        if abs(snapshot.actual_savings - expected_savings) > self.MONEY_TOLERANCE:
            issues.append(ValidationIssue(
                code="SAVINGS_MISMATCH",
                message=f"actualSavings {snapshot.actual_savings} != {expected_savings}",
                path="actual_savings",
            ))

        expected_rate = (
            snapshot.actual_savings / snapshot.income_basis * 100 if snapshot.income_basis else Decimal("0")
        )
        if abs(snapshot.savings_rate - expected_rate) > self.MONEY_TOLERANCE:
            issues.append(ValidationIssue(
                code="SAVINGS_RATE_MISMATCH",
                message=f"savingsRate {snapshot.savings_rate} != {expected_rate}",
                path="savings_rate",
            ))

        # --- 4) Goals ---
        for i, goal in enumerate(snapshot.goals):
            if goal.is_completed != (goal.current_amount >= goal.target_amount):
                issues.append(ValidationIssue(
                    code="GOAL_COMPLETION_FLAG",
                    message=f"Goal {goal.id} completion flag disagrees with its amounts",
                    path=f"goals[{i}].is_completed",
                ))

        return issues
