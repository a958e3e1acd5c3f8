from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, List, Optional

from fastapi import FastAPI, Query, Request
from fastapi.responses import JSONResponse

from application.allocator import month_period
from application.store import FinanceStore, goal_view, settings_view, transaction_view
from domain.errors import NotFoundError, PersistenceError, ValidationError
from domain.models import Account, BudgetCategory, Period, TransactionType
from domain.schemas import (
    BudgetSettingsInput,
    ContributionInput,
    FNPFConfigPayload,
    GoalInput,
    TransactionInput,
)
from interface.cli import build_store

logger = logging.getLogger(__name__)


def _dump(model: Any) -> Any:
    return model.model_dump(mode="json", by_alias=True)


def _period(year: int | None, month: int | None) -> Period | None:
    if year is None and month is None:
        return None
    if year is None or month is None or not 1 <= month <= 12:
        raise ValidationError("year and month (1-12) must be given together")
    try:
        return month_period(year, month)
    except ValueError as exc:
        raise ValidationError(f"No such month: {year}-{month}") from exc


def create_app(store: FinanceStore | None = None) -> FastAPI:
    store = store or build_store()
    app = FastAPI(title="Finance Tracker API")

    @app.exception_handler(ValidationError)
    async def _validation_error(request: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(status_code=422, content={"error": "validation_error", "detail": str(exc)})

    @app.exception_handler(NotFoundError)
    async def _not_found(request: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"error": "not_found", "detail": str(exc)})

    @app.exception_handler(PersistenceError)
    async def _persistence_error(request: Request, exc: PersistenceError) -> JSONResponse:
        logger.error("Persistence failure on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=503, content={"error": "persistence_error", "detail": str(exc)})

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/snapshot")
    def snapshot(year: Optional[int] = None, month: Optional[int] = None) -> dict:
        return _dump(store.snapshot(_period(year, month)))

    @app.get("/consistency")
    def consistency() -> dict:
        issues = store.consistency_issues()
        return {"ok": not issues, "issues": [issue.__dict__ for issue in issues]}

    # ---- transactions ----
    @app.get("/transactions")
    def list_transactions(
        start: Optional[str] = None,
        end: Optional[str] = None,
        account: List[Account] = Query(default=[]),
        category: List[BudgetCategory] = Query(default=[]),
        txn_type: Optional[TransactionType] = Query(default=None, alias="type"),
        min_amount: Optional[Decimal] = None,
        max_amount: Optional[Decimal] = None,
        q: Optional[str] = None,
    ) -> list[dict]:
        query: dict[str, Any] = {
            "accounts": account,
            "categories": category,
            "txn_type": txn_type,
            "min_amount": min_amount,
            "max_amount": max_amount,
            "query": q,
        }
        if start or end:
            query["date_range"] = {"start": start or end, "end": end or start}
        return [_dump(transaction_view(txn)) for txn in store.query_transactions(query)]

    @app.post("/transactions", status_code=201)
    def add_transaction(payload: TransactionInput) -> dict:
        return _dump(transaction_view(store.add_transaction(payload)))

    @app.put("/transactions/{transaction_id}")
    def update_transaction(transaction_id: str, payload: TransactionInput) -> dict:
        return _dump(transaction_view(store.update_transaction(transaction_id, payload)))

    @app.delete("/transactions/{transaction_id}")
    def delete_transaction(transaction_id: str) -> dict:
        removed = store.delete_transaction(transaction_id)
        return {"deleted": removed.id}

    # ---- goals ----
    @app.get("/goals")
    def list_goals(status: Optional[str] = Query(default=None, pattern="^(active|completed)$")) -> list[dict]:
        if status == "active":
            goals = store.list_active_goals()
        elif status == "completed":
            goals = store.list_completed_goals()
        else:
            goals = store.list_goals()
        return [_dump(goal_view(goal)) for goal in goals]

    @app.post("/goals", status_code=201)
    def create_goal(payload: GoalInput) -> dict:
        return _dump(goal_view(store.create_goal(payload)))

    @app.post("/goals/{goal_id}/contributions")
    def contribute(goal_id: str, payload: ContributionInput) -> dict:
        return _dump(goal_view(store.contribute_to_goal(goal_id, payload.amount)))

    @app.delete("/goals/{goal_id}")
    def delete_goal(goal_id: str) -> dict:
        removed = store.delete_goal(goal_id)
        return {"deleted": removed.id}

    # ---- settings ----
    @app.get("/settings/budget")
    def get_budget_settings() -> dict:
        return _dump(settings_view(store.budget_settings))

    @app.put("/settings/budget")
    def put_budget_settings(payload: BudgetSettingsInput) -> dict:
        return _dump(settings_view(store.update_budget_settings(payload)))

    @app.post("/settings/budget/lock")
    def lock_budget_settings() -> dict:
        return _dump(settings_view(store.lock_budget_settings()))

    @app.post("/settings/budget/unlock")
    def unlock_budget_settings() -> dict:
        return _dump(settings_view(store.unlock_budget_settings()))

    @app.get("/settings/fnpf")
    def get_fnpf_config() -> dict:
        config = store.fnpf_config
        return _dump(
            FNPFConfigPayload(
                employee_percentage=float(config.employee_percentage),
                personal_contribution_percentage=float(config.personal_contribution_percentage),
            )
        )

    @app.put("/settings/fnpf")
    def put_fnpf_config(payload: FNPFConfigPayload) -> dict:
        store.update_fnpf_config(payload)
        return _dump(payload)

    @app.get("/fnpf/projection")
    def fnpf_projection(salary: Optional[Decimal] = Query(default=None, ge=0)) -> dict:
        return _dump(store.fnpf_projection(salary))

    @app.get("/history")
    def history(months: int = Query(default=6, ge=1, le=60)) -> list[dict]:
        return [_dump(summary) for summary in store.monthly_history(months)]

    return app


app = create_app()
