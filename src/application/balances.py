from __future__ import annotations

from decimal import Decimal
from typing import Iterable

from domain.errors import NotFoundError, ValidationError
from domain.models import BANK_ACCOUNTS, Account, Transaction, TransactionType

ZERO = Decimal("0")


def legs(txn: Transaction) -> list[tuple[Account, Decimal]]:
    """Signed balance effects of one transaction. A transfer yields both legs or raises."""
    if txn.type == TransactionType.INCOME:
        return [(txn.account, txn.amount)]
    if txn.type == TransactionType.EXPENSE:
        return [(txn.account, -txn.amount)]
    if txn.destination_account is None:
        raise ValidationError(f"Transfer {txn.id} has no destination account")
    return [(txn.account, -txn.amount), (txn.destination_account, txn.amount)]


def validate_transfer(source: object, destination: object) -> tuple[Account, Account]:
    """Resolve both sides of a transfer up front so nothing is applied on failure."""
    try:
        src = Account(source)
        dst = Account(destination)
    except ValueError as exc:
        raise ValidationError(f"Unknown account in transfer {source!r} -> {destination!r}") from exc
    if src == dst:
        raise ValidationError("Transfer source and destination must differ")
    return src, dst


def balances(transactions: Iterable[Transaction]) -> dict[Account, Decimal]:
    totals = {account: ZERO for account in Account}
    for txn in transactions:
        for account, delta in legs(txn):
            totals[account] += delta
    return totals


def balance(transactions: Iterable[Transaction], account: Account | str) -> Decimal:
    try:
        key = Account(account)
    except ValueError as exc:
        raise NotFoundError(f"Unknown account: {account!r}") from exc
    return balances(transactions)[key]


def bank_balance(totals: dict[Account, Decimal]) -> Decimal:
    return sum((totals[account] for account in BANK_ACCOUNTS), ZERO)


def want_wallet_balance(totals: dict[Account, Decimal]) -> Decimal:
    return totals[Account.WANT_WALLET]
