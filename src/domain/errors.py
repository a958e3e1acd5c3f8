from __future__ import annotations


class FinanceError(Exception):
    """Base class for errors raised by the finance store."""


class ValidationError(FinanceError, ValueError):
    pass


class NotFoundError(FinanceError, LookupError):
    pass


class PersistenceError(FinanceError, RuntimeError):
    pass
