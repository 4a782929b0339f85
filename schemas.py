import datetime as dt
from datetime import date, datetime
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from models import (
    AssignmentType,
    BudgetView,
    CarryoverMode,
    Frequency,
    IncomeSourceType,
    Methodology,
    PeriodType,
    RecurrenceType,
    RowType,
    SplitType,
)
from periods import parse_date_or_instant

DateLike = Optional[Union[datetime, date, str]]


class IncomeSourceIn(BaseModel):
    amount_cents: int
    frequency: Frequency = Frequency.monthly
    source_type: IncomeSourceType = IncomeSourceType.recurring_salary
    user_id: str
    is_received: bool = False
    received_date: DateLike = None
    is_manual_partner_income: bool = False


class AssignmentIn(BaseModel):
    category_name: str = ""
    subcategory_name: Optional[str] = None
    assigned_cents: int
    assignment_type: AssignmentType = AssignmentType.category
    goal_id: Optional[str] = None
    asset_id: Optional[str] = None


class ExpenseDefinitionIn(BaseModel):
    id: str
    category_name: str = ""
    expected_amount_cents: int
    recurrence_type: RecurrenceType
    inferred_subcategory: Optional[str] = None
    next_due_date: DateLike = None


class SplitSettingIn(BaseModel):
    category_name: Optional[str] = None
    expense_definition_id: Optional[str] = None
    split_type: SplitType
    owner_percentage: Optional[float] = Field(default=None, ge=0, le=100)


class TransactionIn(BaseModel):
    id: str
    amount_cents: int
    category_id: Optional[str] = None
    created_at: DateLike = None
    is_income: bool = False
    split_override_percentage: Optional[float] = Field(default=None, ge=0, le=100)
    matched_expense_id: Optional[str] = None


class CategoryMappingIn(BaseModel):
    external_category_id: str
    parent_name: str
    child_name: str


class GoalIn(BaseModel):
    id: str
    name: str
    icon: Optional[str] = None
    target_cents: int = 0
    current_amount_cents: int = 0


class AssetIn(BaseModel):
    id: str
    name: str
    asset_type: str = "other"
    current_value_cents: int = 0


class LayoutSectionIn(BaseModel):
    name: str = ""
    percentage: float = Field(default=0, allow_inf_nan=False)
    item_ids: list[str] = Field(default_factory=list)


class LayoutConfig(BaseModel):
    sections: list[LayoutSectionIn] = Field(default_factory=list)
    hidden_item_ids: list[str] = Field(default_factory=list)


class BudgetSummaryIn(BaseModel):
    """One immutable snapshot of everything a summary is computed from."""

    model_config = ConfigDict(extra="forbid")

    date: Union[dt.datetime, dt.date]
    timezone: Optional[str] = None
    period_type: PeriodType = PeriodType.monthly
    budget_view: BudgetView = BudgetView.shared
    carryover_mode: CarryoverMode = CarryoverMode.none
    methodology: Methodology = Methodology.zero_based
    total_budget: Optional[int] = None
    user_id: str
    owner_user_id: Optional[str] = None
    income_sources: list[IncomeSourceIn] = Field(default_factory=list)
    assignments: list[AssignmentIn] = Field(default_factory=list)
    transactions: list[TransactionIn] = Field(default_factory=list)
    expense_definitions: list[ExpenseDefinitionIn] = Field(default_factory=list)
    split_settings: list[SplitSettingIn] = Field(default_factory=list)
    category_mappings: list[CategoryMappingIn] = Field(default_factory=list)
    goals: list[GoalIn] = Field(default_factory=list)
    assets: list[AssetIn] = Field(default_factory=list)
    goal_contributions: dict[str, int] = Field(default_factory=dict)
    asset_contributions: dict[str, int] = Field(default_factory=dict)
    # Raw stored layout blob; normalized by inputs.normalize_layout_config.
    layout_config: Optional[dict[str, Any]] = None

    @field_validator("date", mode="before")
    @classmethod
    def parse_date(cls, v: Any) -> Any:
        if isinstance(v, str):
            try:
                return parse_date_or_instant(v)
            except ValueError as exc:
                raise ValueError("date must be an ISO date or datetime") from exc
        return v

    @property
    def effective_owner_user_id(self) -> str:
        return self.owner_user_id or self.user_id


class BudgetRowOut(BaseModel):
    id: str
    type: RowType
    name: str
    parent_category: Optional[str] = None
    budgeted: int
    spent: int
    available: int
    is_expense_default: bool = False


class MethodologySectionOut(BaseModel):
    name: str
    percentage: float
    target: int
    budgeted: int
    spent: int


class BudgetSummaryOut(BaseModel):
    income: int
    budgeted: int
    spent: int
    carryover: int
    tbb: int
    rows: list[BudgetRowOut]
    methodology_sections: Optional[list[MethodologySectionOut]] = None


class PeriodOut(BaseModel):
    period_type: PeriodType
    timezone: str
    label: str
    start: datetime
    end: datetime
    month_key: str
    next_period_start: datetime
    previous_period_start: datetime


class BudgetSummaryResponse(BudgetSummaryOut):
    period_label: str
    period_start: datetime
    period_end: datetime
    month_key: str
    next_period_start: datetime
    previous_period_start: datetime
