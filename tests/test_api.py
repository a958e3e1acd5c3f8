from __future__ import annotations

import unittest
from datetime import date

from fastapi.testclient import TestClient

from application.store import FinanceStore
from infrastructure.persistence.key_value_store import InMemoryKeyValueStore
from interface.api import create_app


class ApiTests(unittest.TestCase):
    def setUp(self) -> None:
        self.store = FinanceStore(InMemoryKeyValueStore(), clock=lambda: date(2026, 10, 19))
        self.client = TestClient(create_app(self.store))

    def _post_txn(self, **payload):
        return self.client.post("/transactions", json=payload)

    def test_health(self) -> None:
        self.assertEqual(self.client.get("/health").json(), {"status": "ok"})

    def test_transactions_flow_into_snapshot(self) -> None:
        r = self._post_txn(type="income", amount=2000, account="anz", date="2026-10-01")
        self.assertEqual(r.status_code, 201)
        r = self._post_txn(type="expense", amount=45.5, account="anz", category="needs", date="2026-10-05")
        self.assertEqual(r.status_code, 201)
        body = r.json()
        self.assertEqual(body["amount"], 45.5)
        self.assertIn("destinationAccount", body)

        snap = self.client.get("/snapshot").json()
        self.assertEqual(snap["incomeBasis"], 2000.0)
        self.assertEqual(snap["needsBudget"], 1000.0)
        self.assertEqual(snap["needsSpent"], 45.5)
        self.assertEqual(snap["remainingSalary"], 1954.5)
        self.assertEqual(snap["bankBalance"], 1954.5)

        self.assertEqual(self.client.get("/consistency").json(), {"ok": True, "issues": []})

    def test_transaction_validation_errors(self) -> None:
        r = self._post_txn(type="expense", amount=-1, account="anz", category="needs")
        self.assertEqual(r.status_code, 422)
        r = self._post_txn(type="transfer", amount=10, account="anz")
        self.assertEqual(r.status_code, 422)
        self.assertEqual(len(self.client.get("/transactions").json()), 0)

    def test_update_delete_and_filter(self) -> None:
        created = self._post_txn(type="expense", amount=20, account="cash", category="wants", date="2026-10-05").json()
        self._post_txn(type="transfer", amount=100, account="anz", destinationAccount="want_wallet", date="2026-10-06")

        r = self.client.put(
            f"/transactions/{created['id']}",
            json={"type": "expense", "amount": 25, "account": "cash", "category": "wants", "date": "2026-10-05"},
        )
        self.assertEqual(r.json()["amount"], 25.0)

        wallet = self.client.get("/transactions", params={"account": "want_wallet"}).json()
        self.assertEqual([row["type"] for row in wallet], ["transfer"])
        ranged = self.client.get("/transactions", params={"start": "2026-10-05", "end": "2026-10-05"}).json()
        self.assertEqual([row["id"] for row in ranged], [created["id"]])

        self.assertEqual(self.client.delete(f"/transactions/{created['id']}").json(), {"deleted": created["id"]})
        self.assertEqual(self.client.delete(f"/transactions/{created['id']}").status_code, 404)

    def test_goals(self) -> None:
        goal = self.client.post("/goals", json={"name": "Emergency fund", "targetAmount": 500}).json()
        self.assertFalse(goal["isCompleted"])

        r = self.client.post(f"/goals/{goal['id']}/contributions", json={"amount": 500})
        self.assertTrue(r.json()["isCompleted"])
        self.assertEqual(len(self.client.get("/goals", params={"status": "completed"}).json()), 1)
        self.assertEqual(self.client.get("/goals", params={"status": "active"}).json(), [])

        self.assertEqual(self.client.post("/goals/missing/contributions", json={"amount": 5}).status_code, 404)
        self.assertEqual(self.client.post(f"/goals/{goal['id']}/contributions", json={"amount": 0}).status_code, 422)
        self.assertEqual(self.client.get("/goals", params={"status": "bogus"}).status_code, 422)

    def test_budget_settings(self) -> None:
        self.assertEqual(self.client.get("/settings/budget").json()["needsPercentage"], 50.0)

        bad = {"needsPercentage": 70, "wantsPercentage": 30, "responsibilitiesPercentage": 20}
        self.assertEqual(self.client.put("/settings/budget", json=bad).status_code, 422)

        self.assertTrue(self.client.post("/settings/budget/lock").json()["isLocked"])
        good = {"needsPercentage": 60, "wantsPercentage": 20, "responsibilitiesPercentage": 20}
        self.assertEqual(self.client.put("/settings/budget", json=good).status_code, 422)

        self.client.post("/settings/budget/unlock")
        self.assertEqual(self.client.put("/settings/budget", json=good).json()["needsPercentage"], 60.0)

    def test_fnpf(self) -> None:
        self.assertEqual(
            self.client.get("/settings/fnpf").json(),
            {"employeePercentage": 8.5, "personalContributionPercentage": 0.0},
        )
        projection = self.client.get("/fnpf/projection", params={"salary": 2500}).json()
        self.assertEqual(projection["employeeContribution"], 212.5)
        self.assertEqual(projection["employerContribution"], 212.5)
        self.assertEqual(projection["totalContribution"], 425.0)
        self.assertEqual(projection["annualProjection"], 5100.0)

        r = self.client.put("/settings/fnpf", json={"employeePercentage": 10, "personalContributionPercentage": 2})
        self.assertEqual(r.status_code, 200)
        self.assertEqual(self.client.get("/fnpf/projection", params={"salary": 1000}).json()["personalContribution"], 20.0)
        self.assertEqual(self.client.put("/settings/fnpf", json={"employeePercentage": 101}).status_code, 422)

    def test_history_and_period_params(self) -> None:
        history = self.client.get("/history", params={"months": 2}).json()
        self.assertEqual([(m["year"], m["monthNumber"]) for m in history], [(2026, 10), (2026, 9)])
        self.assertEqual(self.client.get("/snapshot", params={"year": 2026}).status_code, 422)
        self.assertEqual(self.client.get("/snapshot", params={"year": 0, "month": 1}).status_code, 422)
        self.assertEqual(self.client.get("/snapshot", params={"year": 10000, "month": 1}).status_code, 422)
        self.assertEqual(self.client.get("/snapshot", params={"year": 2026, "month": 2}).json()["period"]["end"], "2026-02-28")


if __name__ == "__main__":
    unittest.main()
