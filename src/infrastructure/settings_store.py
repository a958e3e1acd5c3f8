from __future__ import annotations

import logging
from decimal import Decimal

from pydantic import ValidationError as PydanticValidationError

from domain.errors import PersistenceError
from domain.models import BudgetSettings, FNPFConfig
from domain.schemas import BudgetSettingsRecord, FNPFConfigPayload
from infrastructure.persistence.key_value_store import KeyValueStore

logger = logging.getLogger(__name__)

FNPF_CONFIG_KEY = "fnpf-config"
BUDGET_SETTINGS_KEY = "budget-settings"


def _to_decimal(value: float) -> Decimal:
    return Decimal(str(value))


def load_fnpf_config(store: KeyValueStore) -> FNPFConfig:
    """Return the persisted FNPF config, or the 8.5% / 0% default. Never raises."""
    try:
        raw = store.load(FNPF_CONFIG_KEY)
    except PersistenceError as exc:
        logger.warning("FNPF config unreadable, using defaults: %s", exc)
        return FNPFConfig()

    if raw is None:
        return FNPFConfig()

    try:
        payload = FNPFConfigPayload.model_validate(raw)
    except PydanticValidationError as exc:
        logger.warning("FNPF config malformed, using defaults: %s", exc.errors(include_url=False))
        return FNPFConfig()

    return FNPFConfig(
        employee_percentage=_to_decimal(payload.employee_percentage),
        personal_contribution_percentage=_to_decimal(payload.personal_contribution_percentage),
    )


def save_fnpf_config(store: KeyValueStore, config: FNPFConfig) -> None:
    payload = FNPFConfigPayload(
        employee_percentage=float(config.employee_percentage),
        personal_contribution_percentage=float(config.personal_contribution_percentage),
    )
    store.save(FNPF_CONFIG_KEY, payload.model_dump(by_alias=True))


def load_budget_settings(store: KeyValueStore) -> BudgetSettings:
    try:
        raw = store.load(BUDGET_SETTINGS_KEY)
    except PersistenceError as exc:
        logger.warning("Budget settings unreadable, using defaults: %s", exc)
        return BudgetSettings()

    if raw is None:
        return BudgetSettings()

    try:
        record = BudgetSettingsRecord.model_validate(raw)
    except PydanticValidationError as exc:
        logger.warning("Budget settings malformed, using defaults: %s", exc.errors(include_url=False))
        return BudgetSettings()

    return BudgetSettings(
        needs_percentage=record.needs_percentage,
        wants_percentage=record.wants_percentage,
        responsibilities_percentage=record.responsibilities_percentage,
        monthly_salary=record.monthly_salary,
        is_locked=record.is_locked,
    )


def save_budget_settings(store: KeyValueStore, settings: BudgetSettings) -> None:
    record = BudgetSettingsRecord(
        needs_percentage=settings.needs_percentage,
        wants_percentage=settings.wants_percentage,
        responsibilities_percentage=settings.responsibilities_percentage,
        monthly_salary=settings.monthly_salary,
        is_locked=settings.is_locked,
    )
    store.save(BUDGET_SETTINGS_KEY, record.model_dump(mode="json"))
