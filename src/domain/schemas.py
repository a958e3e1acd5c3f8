from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer, field_validator, model_validator
from pydantic.alias_generators import to_camel

from domain.models import Account, BudgetCategory, Period, TransactionType

# Money goes over the wire as a JSON number; persisted records keep Decimal strings.
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]

PERCENTAGE_TOLERANCE = Decimal("0.1")

# Field named "date" below would shadow the type inside the class body.
CalendarDate = date


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DateRange(BaseModel):
    start: date = Field(description="Start date in YYYY-MM-DD format, e.g. 2026-01-31.")
    end: date = Field(description="End date in YYYY-MM-DD format, e.g. 2026-01-31.")

    @field_validator("start", "end", mode="before")
    @classmethod
    def coerce_date(cls, value: Any) -> Any:
        if isinstance(value, date):
            return value
        if not isinstance(value, str):
            return value

        text = value.strip()
        if not text:
            return value

        # Canonical format first.
        for fmt in ("%Y-%m-%d", "%Y/%m/%d", "%d/%m/%Y", "%d-%m-%Y"):
            try:
                return datetime.strptime(text, fmt).date()
            except ValueError:
                continue
        return value

    @model_validator(mode="after")
    def validate_order(self) -> "DateRange":
        if self.start > self.end:
            raise ValueError("date_range.start must be <= date_range.end")
        return self

    def to_period(self) -> Period:
        return Period(start=self.start, end=self.end)


class TransactionQuery(BaseModel):
    """
    Ledger filter.

    Optional:
      - date_range (YYYY-MM-DD dates)
      - accounts/categories
      - txn_type
      - min/max amount, query (matches description or subcategory)
    """

    date_range: Optional[DateRange] = None
    accounts: List[Account] = Field(default_factory=list)
    categories: List[BudgetCategory] = Field(default_factory=list)
    txn_type: Optional[TransactionType] = None
    min_amount: Optional[Decimal] = None
    max_amount: Optional[Decimal] = None
    query: Optional[str] = None

    @model_validator(mode="after")
    def validate_amounts(self) -> "TransactionQuery":
        if self.min_amount is not None and self.max_amount is not None and self.min_amount > self.max_amount:
            raise ValueError("min_amount must be <= max_amount")
        return self


class TransactionInput(CamelModel):
    # Left empty, the store dates the entry from its own clock.
    date: Optional[CalendarDate] = None
    type: TransactionType
    amount: Decimal = Field(ge=0)
    account: Account
    category: BudgetCategory = BudgetCategory.NONE
    description: str = ""
    subcategory: str = ""
    destination_account: Optional[Account] = None
    document_url: Optional[str] = None

    @model_validator(mode="after")
    def validate_routing(self) -> "TransactionInput":
        if self.type == TransactionType.TRANSFER:
            if self.destination_account is None:
                raise ValueError("transfer requires a destination_account")
            if self.destination_account == self.account:
                raise ValueError("transfer source and destination must differ")
            if self.category != BudgetCategory.NONE:
                raise ValueError("transfers cannot carry a budget category")
        elif self.destination_account is not None:
            raise ValueError("destination_account is only valid for transfers")
        return self


class TransactionRecord(TransactionInput):
    date: CalendarDate = Field(default_factory=date.today)
    id: str
    created_at: Optional[datetime] = None


class GoalInput(CamelModel):
    name: str = Field(min_length=1)
    target_amount: Decimal = Field(gt=0)
    target_date: Optional[date] = None
    category: str = ""
    description: str = ""

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        text = value.strip()
        if not text:
            raise ValueError("goal name must not be blank")
        return text


class GoalRecord(GoalInput):
    id: str
    current_amount: Decimal = Field(default=Decimal("0"), ge=0)
    created_at: Optional[datetime] = None


class ContributionInput(CamelModel):
    amount: Decimal = Field(gt=0)


class BudgetSettingsInput(CamelModel):
    needs_percentage: Decimal = Field(default=Decimal("50"), ge=0, le=100)
    wants_percentage: Decimal = Field(default=Decimal("30"), ge=0, le=100)
    responsibilities_percentage: Decimal = Field(default=Decimal("20"), ge=0, le=100)
    monthly_salary: Optional[Decimal] = Field(default=None, ge=0)

    @model_validator(mode="after")
    def validate_total(self) -> "BudgetSettingsInput":
        total = self.needs_percentage + self.wants_percentage + self.responsibilities_percentage
        if abs(total - 100) > PERCENTAGE_TOLERANCE:
            raise ValueError(f"budget percentages must total 100, got {total}")
        return self


class BudgetSettingsRecord(BudgetSettingsInput):
    is_locked: bool = False


class FNPFConfigPayload(CamelModel):
    """Shape of the persisted ``fnpf-config`` value."""

    employee_percentage: float = Field(ge=0, le=100)
    personal_contribution_percentage: float = Field(default=0, ge=0, le=100)


# ---- read surface ----


class BudgetSettingsView(CamelModel):
    needs_percentage: Money
    wants_percentage: Money
    responsibilities_percentage: Money
    monthly_salary: Optional[Money] = None
    is_locked: bool = False


class TransactionView(CamelModel):
    id: str
    date: CalendarDate
    type: TransactionType
    category: BudgetCategory
    account: Account
    destination_account: Optional[Account] = None
    amount: Money
    description: str = ""
    subcategory: str = ""
    document_url: Optional[str] = None
    created_at: Optional[datetime] = None


class GoalView(CamelModel):
    id: str
    name: str
    target_amount: Money
    current_amount: Money
    remaining_amount: Money
    progress_percentage: Money
    is_completed: bool
    target_date: Optional[date] = None
    category: str = ""
    description: str = ""


class CategoryProgress(CamelModel):
    category: BudgetCategory
    percentage: Money
    budget: Money
    spent: Money
    utilization: Money
    display_percentage: Money
    remaining: Money
    overspend: Money
    status: Literal["no-budget", "good", "caution", "warning", "over-budget"]
    almost_exhausted: bool
    exceeded: bool


class FNPFProjection(CamelModel):
    gross_salary: Money
    employee_percentage: Money
    employer_percentage: Money
    personal_contribution_percentage: Money
    employee_contribution: Money
    employer_contribution: Money
    personal_contribution: Money
    total_deductions: Money
    net_salary: Money
    monthly_total: Money
    total_contribution: Money
    annual_projection: Money


class MonthSummary(CamelModel):
    year: int
    month_number: int
    month_name: str
    income_basis: Money
    total_spent: Money
    remaining_salary: Money


class StoreSnapshot(CamelModel):
    version: int
    period: DateRange
    currency: str = "FJD"
    budget_settings: BudgetSettingsView
    transactions: List[TransactionView] = Field(default_factory=list)
    goals: List[GoalView] = Field(default_factory=list)
    income_basis: Money
    needs_budget: Money
    wants_budget: Money
    responsibilities_budget: Money
    needs_spent: Money
    wants_spent: Money
    responsibilities_spent: Money
    total_spent: Money
    remaining_salary: Money
    actual_savings: Money
    savings_rate: Money
    want_wallet_balance: Money
    bank_balance: Money
    account_balances: Dict[str, Money] = Field(default_factory=dict)
    progress: List[CategoryProgress] = Field(default_factory=list)
    fnpf: FNPFProjection
