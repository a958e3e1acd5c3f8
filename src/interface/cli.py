from __future__ import annotations

import argparse
import json
import sys
from datetime import date
from typing import Sequence

from application.store import FinanceStore, goal_view, transaction_view
from domain.errors import FinanceError
from domain.models import Account, BudgetCategory
from infrastructure.config import load_app_config
from infrastructure.persistence.key_value_store import JsonFileKeyValueStore


def build_store() -> FinanceStore:
    config = load_app_config()
    return FinanceStore(JsonFileKeyValueStore(config.data_dir), currency=config.currency)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="finance", description="Needs / Wants / Responsibilities budget tracker")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("summary", help="Print this month's snapshot")

    accounts = [account.value for account in Account]
    categories = [category.value for category in BudgetCategory]

    income = sub.add_parser("add-income", help="Record income")
    income.add_argument("amount")
    income.add_argument("--account", choices=accounts, default=Account.ANZ.value)
    income.add_argument("--date", type=date.fromisoformat)
    income.add_argument("--description", default="")

    expense = sub.add_parser("add-expense", help="Record an expense")
    expense.add_argument("amount")
    expense.add_argument("category", choices=categories)
    expense.add_argument("--account", choices=accounts, default=Account.ANZ.value)
    expense.add_argument("--date", type=date.fromisoformat)
    expense.add_argument("--description", default="")
    expense.add_argument("--document-url")

    transfer = sub.add_parser("transfer", help="Move money between accounts")
    transfer.add_argument("amount")
    transfer.add_argument("source", choices=accounts)
    transfer.add_argument("destination", choices=accounts)
    transfer.add_argument("--date", type=date.fromisoformat)
    transfer.add_argument("--description", default="")

    delete = sub.add_parser("delete", help="Delete a transaction")
    delete.add_argument("transaction_id")

    goal_add = sub.add_parser("goal-add", help="Create a savings goal")
    goal_add.add_argument("name")
    goal_add.add_argument("target_amount")

    goal_contribute = sub.add_parser("goal-contribute", help="Add money to a goal")
    goal_contribute.add_argument("goal_id")
    goal_contribute.add_argument("amount")

    fnpf = sub.add_parser("fnpf", help="Project FNPF contributions")
    fnpf.add_argument("--salary", help="Monthly gross salary (defaults to this month's income basis)")

    return parser


def _optional(**fields: object) -> dict[str, object]:
    return {key: value for key, value in fields.items() if value is not None}


def run(store: FinanceStore, argv: Sequence[str] | None = None) -> dict:
    args = _build_parser().parse_args(argv)

    if args.command == "summary":
        return store.snapshot().model_dump(mode="json", by_alias=True)
    if args.command == "add-income":
        txn = store.add_income(args.amount, args.account, **_optional(date=args.date, description=args.description))
        return transaction_view(txn).model_dump(mode="json", by_alias=True)
    if args.command == "add-expense":
        txn = store.add_expense(
            args.amount,
            args.category,
            args.account,
            **_optional(date=args.date, description=args.description, document_url=args.document_url),
        )
        return transaction_view(txn).model_dump(mode="json", by_alias=True)
    if args.command == "transfer":
        txn = store.transfer(
            args.amount, args.source, args.destination, **_optional(date=args.date, description=args.description)
        )
        return transaction_view(txn).model_dump(mode="json", by_alias=True)
    if args.command == "delete":
        return {"deleted": store.delete_transaction(args.transaction_id).id}
    if args.command == "goal-add":
        goal = store.create_goal({"name": args.name, "target_amount": args.target_amount})
        return goal_view(goal).model_dump(mode="json", by_alias=True)
    if args.command == "goal-contribute":
        goal = store.contribute_to_goal(args.goal_id, args.amount)
        return goal_view(goal).model_dump(mode="json", by_alias=True)
    # fnpf
    return store.fnpf_projection(args.salary).model_dump(mode="json", by_alias=True)


def main(argv: Sequence[str] | None = None) -> int:
    try:
        result = run(build_store(), argv)
    except FinanceError as exc:
        print(json.dumps({"error": exc.__class__.__name__, "detail": str(exc)}), file=sys.stderr)
        return 1
    print(json.dumps(result, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
