from __future__ import annotations

import unittest
from datetime import date
from decimal import Decimal

from application import allocator
from domain.models import Account, BudgetCategory, BudgetSettings, Transaction, TransactionType

OCTOBER = allocator.month_period(2026, 10)


def _expense(id: str, amount: str, category: BudgetCategory, on: date = date(2026, 10, 10)) -> Transaction:
    return Transaction(
        id=id,
        date=on,
        type=TransactionType.EXPENSE,
        amount=Decimal(amount),
        account=Account.ANZ,
        category=category,
    )


def _income(id: str, amount: str, on: date = date(2026, 10, 1)) -> Transaction:
    return Transaction(id=id, date=on, type=TransactionType.INCOME, amount=Decimal(amount), account=Account.ANZ)


class PeriodTests(unittest.TestCase):
    def test_month_period_bounds(self) -> None:
        period = allocator.month_period(2028, 2)
        self.assertEqual(period.start, date(2028, 2, 1))
        self.assertEqual(period.end, date(2028, 2, 29))

    def test_current_month_uses_today(self) -> None:
        self.assertEqual(allocator.current_month(date(2026, 10, 19)), OCTOBER)


class SpendTests(unittest.TestCase):
    def setUp(self) -> None:
        self.rows = [
            _expense("n1", "100", BudgetCategory.NEEDS),
            _expense("n2", "50.25", BudgetCategory.NEEDS),
            _expense("w1", "40", BudgetCategory.WANTS),
            _expense("r1", "300", BudgetCategory.RESPONSIBILITIES),
            # Same month, previous year and previous month: excluded.
            _expense("old1", "999", BudgetCategory.NEEDS, on=date(2025, 10, 10)),
            _expense("old2", "999", BudgetCategory.WANTS, on=date(2026, 9, 30)),
            # Untagged expense and a transfer never count.
            _expense("x1", "75", BudgetCategory.NONE),
            Transaction(
                id="tr1",
                date=date(2026, 10, 11),
                type=TransactionType.TRANSFER,
                amount=Decimal("500"),
                account=Account.ANZ,
                destination_account=Account.WANT_WALLET,
            ),
            _income("i1", "2000"),
        ]

    def test_category_spent_is_scoped_to_period(self) -> None:
        self.assertEqual(allocator.category_spent(self.rows, BudgetCategory.NEEDS, OCTOBER), Decimal("150.25"))
        self.assertEqual(allocator.category_spent(self.rows, BudgetCategory.WANTS, OCTOBER), Decimal("40"))
        self.assertEqual(allocator.category_spent(self.rows, BudgetCategory.RESPONSIBILITIES, OCTOBER), Decimal("300"))
        self.assertEqual(allocator.category_spent(self.rows, BudgetCategory.NONE, OCTOBER), Decimal("0"))

    def test_total_spent_reconciles_with_category_sums(self) -> None:
        parts = sum(allocator.category_spent(self.rows, c, OCTOBER) for c in
                    (BudgetCategory.NEEDS, BudgetCategory.WANTS, BudgetCategory.RESPONSIBILITIES))
        self.assertEqual(allocator.total_spent(self.rows, OCTOBER), parts)
        self.assertEqual(parts, Decimal("490.25"))

    def test_income_basis_prefers_fixed_salary(self) -> None:
        self.assertEqual(allocator.income_basis(self.rows, BudgetSettings(), OCTOBER), Decimal("2000"))
        fixed = BudgetSettings(monthly_salary=Decimal("2500"))
        self.assertEqual(allocator.income_basis(self.rows, fixed, OCTOBER), Decimal("2500"))

    def test_remaining_salary_can_go_negative(self) -> None:
        self.assertEqual(allocator.remaining_salary(Decimal("100"), Decimal("150")), Decimal("-50"))


class UtilizationTests(unittest.TestCase):
    def test_zero_budget_has_zero_utilization(self) -> None:
        self.assertEqual(allocator.utilization(Decimal("50"), Decimal("0")), Decimal("0"))

        progress = allocator.category_progress(
            [_expense("n1", "50", BudgetCategory.NEEDS)], BudgetSettings(), BudgetCategory.NEEDS, OCTOBER
        )
        self.assertEqual(progress.budget, Decimal("0"))
        self.assertEqual(progress.utilization, Decimal("0"))
        self.assertEqual(progress.status, "no-budget")
        self.assertFalse(progress.exceeded)

    def test_needs_almost_exhausted(self) -> None:
        settings = BudgetSettings(
            needs_percentage=Decimal("50"),
            wants_percentage=Decimal("25"),
            responsibilities_percentage=Decimal("25"),
            monthly_salary=Decimal("2000"),
        )
        progress = allocator.category_progress(
            [_expense("n1", "950", BudgetCategory.NEEDS)], settings, BudgetCategory.NEEDS, OCTOBER
        )

        self.assertEqual(progress.budget, Decimal("1000"))
        self.assertEqual(progress.utilization, Decimal("95"))
        self.assertEqual(progress.status, "warning")
        self.assertTrue(progress.almost_exhausted)
        self.assertFalse(progress.exceeded)
        self.assertEqual(progress.remaining, Decimal("50"))

    def test_wants_exceeded_clamps_display_only(self) -> None:
        settings = BudgetSettings(
            needs_percentage=Decimal("50"),
            wants_percentage=Decimal("25"),
            responsibilities_percentage=Decimal("25"),
            monthly_salary=Decimal("2000"),
        )
        progress = allocator.category_progress(
            [_expense("w1", "600", BudgetCategory.WANTS)], settings, BudgetCategory.WANTS, OCTOBER
        )

        self.assertEqual(progress.budget, Decimal("500"))
        self.assertEqual(progress.utilization, Decimal("120"))
        self.assertEqual(progress.display_percentage, Decimal("100"))
        self.assertEqual(progress.status, "over-budget")
        self.assertTrue(progress.exceeded)
        self.assertEqual(progress.overspend, Decimal("100"))
        self.assertEqual(progress.remaining, Decimal("-100"))

    def test_status_thresholds(self) -> None:
        budget = Decimal("100")
        self.assertEqual(allocator.budget_status(budget, Decimal("75")), "good")
        self.assertEqual(allocator.budget_status(budget, Decimal("80")), "caution")
        self.assertEqual(allocator.budget_status(budget, Decimal("90")), "caution")
        self.assertEqual(allocator.budget_status(budget, Decimal("90.5")), "warning")
        self.assertEqual(allocator.budget_status(budget, Decimal("100")), "warning")
        self.assertEqual(allocator.budget_status(budget, Decimal("100.01")), "over-budget")


class MonthlyHistoryTests(unittest.TestCase):
    def test_history_walks_back_across_year_boundary(self) -> None:
        rows = [
            _income("i1", "1000", on=date(2026, 2, 1)),
            _expense("e1", "400", BudgetCategory.NEEDS, on=date(2026, 2, 3)),
            _income("i2", "900", on=date(2025, 12, 1)),
            _expense("e2", "1000", BudgetCategory.WANTS, on=date(2025, 12, 20)),
        ]

        history = allocator.monthly_history(rows, BudgetSettings(), months=3, today=date(2026, 2, 15))

        self.assertEqual([(h.year, h.month_number) for h in history], [(2026, 2), (2026, 1), (2025, 12)])
        self.assertEqual(history[0].remaining_salary, Decimal("600"))
        self.assertEqual(history[1].remaining_salary, Decimal("0"))
        self.assertEqual(history[2].remaining_salary, Decimal("-100"))
        self.assertEqual(history[2].month_name, "December")


class SavingsTests(unittest.TestCase):
    def test_actual_savings_adds_unspent_needs_and_wants(self) -> None:
        settings = BudgetSettings()
        # 2000 basis: needs 1000, wants 600, responsibilities 400.
        savings = allocator.actual_savings(Decimal("2000"), settings, Decimal("300"), Decimal("40"))
        self.assertEqual(savings, Decimal("1660"))
        self.assertEqual(allocator.savings_rate(Decimal("2000"), savings), Decimal("83"))

    def test_overspending_reduces_savings(self) -> None:
        savings = allocator.actual_savings(Decimal("1000"), BudgetSettings(), Decimal("500"), Decimal("700"))
        self.assertEqual(savings, Decimal("-200"))
        self.assertEqual(allocator.savings_rate(Decimal("1000"), savings), Decimal("-20"))

    def test_savings_rate_without_income_is_zero(self) -> None:
        self.assertEqual(allocator.actual_savings(Decimal("0"), BudgetSettings(), Decimal("0"), Decimal("0")), Decimal("0"))
        self.assertEqual(allocator.savings_rate(Decimal("0"), Decimal("-50")), Decimal("0"))


if __name__ == "__main__":
    unittest.main()
