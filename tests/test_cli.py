from __future__ import annotations

import io
import json
import unittest
from contextlib import redirect_stderr, redirect_stdout
from datetime import date
from unittest.mock import patch

from application.store import FinanceStore
from infrastructure.persistence.key_value_store import InMemoryKeyValueStore
from interface import cli


class CliTests(unittest.TestCase):
    def setUp(self) -> None:
        self.store = FinanceStore(InMemoryKeyValueStore(), clock=lambda: date(2026, 10, 19))

    def test_add_and_summarise(self) -> None:
        cli.run(self.store, ["add-income", "1500", "--date", "2026-10-01", "--description", "Pay"])
        expense = cli.run(self.store, ["add-expense", "45", "needs", "--account", "cash", "--date", "2026-10-05"])
        self.assertEqual(expense["amount"], 45.0)
        self.assertEqual(expense["account"], "cash")

        summary = cli.run(self.store, ["summary"])
        self.assertEqual(summary["needsSpent"], 45.0)
        self.assertEqual(summary["incomeBasis"], 1500.0)

    def test_transfer_and_delete(self) -> None:
        txn = cli.run(self.store, ["transfer", "50", "anz", "want_wallet", "--date", "2026-10-03"])
        self.assertEqual(txn["destinationAccount"], "want_wallet")
        self.assertEqual(cli.run(self.store, ["delete", txn["id"]]), {"deleted": txn["id"]})
        self.assertEqual(len(self.store.transactions()), 0)

    def test_goal_commands(self) -> None:
        goal = cli.run(self.store, ["goal-add", "New tyres", "400"])
        updated = cli.run(self.store, ["goal-contribute", goal["id"], "150"])
        self.assertEqual(updated["currentAmount"], 150.0)
        self.assertEqual(updated["remainingAmount"], 250.0)

    def test_fnpf_projection(self) -> None:
        projection = cli.run(self.store, ["fnpf", "--salary", "2500"])
        self.assertEqual(projection["monthlyTotal"], 425.0)

    def test_unknown_account_is_rejected_by_parser(self) -> None:
        with redirect_stderr(io.StringIO()), self.assertRaises(SystemExit):
            cli.run(self.store, ["add-income", "10", "--account", "piggy-bank"])

    def test_main_prints_json(self) -> None:
        out = io.StringIO()
        with patch.object(cli, "build_store", return_value=self.store), redirect_stdout(out):
            code = cli.main(["fnpf", "--salary", "1000"])
        self.assertEqual(code, 0)
        self.assertEqual(json.loads(out.getvalue())["employeeContribution"], 85.0)

    def test_main_reports_errors(self) -> None:
        err = io.StringIO()
        with patch.object(cli, "build_store", return_value=self.store), redirect_stderr(err):
            code = cli.main(["goal-contribute", "missing", "10"])
        self.assertEqual(code, 1)
        self.assertEqual(json.loads(err.getvalue())["error"], "GoalNotFoundError")


if __name__ == "__main__":
    unittest.main()
