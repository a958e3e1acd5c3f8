from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from domain.models import FNPFConfig
from domain.schemas import FNPFProjection
from infrastructure.persistence.key_value_store import KeyValueStore
from infrastructure.settings_store import load_fnpf_config, save_fnpf_config

# Statutory employer rate; independent of the employee's configured percentage.
EMPLOYER_RATE_PERCENTAGE = Decimal("8.5")
MONTHS_PER_YEAR = 12

_HUNDRED = Decimal("100")
_CENT = Decimal("0.01")


def _money(value: Decimal) -> Decimal:
    return value.quantize(_CENT, rounding=ROUND_HALF_UP)


def employee_contribution(salary: Decimal, config: FNPFConfig) -> Decimal:
    return salary * config.employee_percentage / _HUNDRED


def employer_contribution(salary: Decimal) -> Decimal:
    return salary * EMPLOYER_RATE_PERCENTAGE / _HUNDRED


def personal_contribution(salary: Decimal, config: FNPFConfig) -> Decimal:
    return salary * config.personal_contribution_percentage / _HUNDRED


def project_monthly(salary: Decimal, config: FNPFConfig) -> Decimal:
    return employee_contribution(salary, config) + employer_contribution(salary)


def project_annual(salary: Decimal, config: FNPFConfig) -> Decimal:
    return project_monthly(salary, config) * MONTHS_PER_YEAR


def project(salary: Decimal, config: FNPFConfig) -> FNPFProjection:
    """Full monthly breakdown, money figures rounded to cents."""
    employee = employee_contribution(salary, config)
    employer = employer_contribution(salary)
    personal = personal_contribution(salary, config)
    deductions = employee + personal
    return FNPFProjection(
        gross_salary=_money(salary),
        employee_percentage=config.employee_percentage,
        employer_percentage=EMPLOYER_RATE_PERCENTAGE,
        personal_contribution_percentage=config.personal_contribution_percentage,
        employee_contribution=_money(employee),
        employer_contribution=_money(employer),
        personal_contribution=_money(personal),
        total_deductions=_money(deductions),
        net_salary=_money(salary - deductions),
        monthly_total=_money(employee + employer),
        total_contribution=_money(employee + employer + personal),
        annual_projection=_money(project_annual(salary, config)),
    )


class ContributionProjector:
    """
    Owns the persisted FNPF config and projects against it.

    The config is read once through ``load_fnpf_config`` (defaults on any
    failure) and written back only by ``save``.
    """

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store
        self._config = load_fnpf_config(store)

    def config(self) -> FNPFConfig:
        return self._config

    def set_config(self, config: FNPFConfig) -> None:
        self._config = config

    def save(self) -> None:
        save_fnpf_config(self._store, self._config)

    def project_monthly(self, salary: Decimal) -> Decimal:
        return project_monthly(salary, self._config)

    def project_annual(self, salary: Decimal) -> Decimal:
        return project_annual(salary, self._config)

    def project(self, salary: Decimal) -> FNPFProjection:
        return project(salary, self._config)
