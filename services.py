from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Iterable, Optional, Union

from frequency import convert_to_target_period
from inputs import (
    layout_item_row_id,
    layout_subcategory_keys,
    normalize_layout_config,
)
from models import (
    KEY_SEPARATOR,
    AssignmentType,
    BudgetView,
    CarryoverMode,
    IncomeSourceType,
    Methodology,
    PeriodType,
    RecurrenceType,
    RowType,
    asset_key,
    goal_key,
    subcategory_key,
)
from periods import (
    PeriodRange,
    as_utc,
    get_budget_period_range,
    get_month_key_for_period,
    get_next_period_date,
    get_previous_period_date,
    midnight_in_timezone,
    resolve_timezone,
)
from recurrence import count_occurrences_in_period, parse_anchor
from schemas import (
    AssignmentIn,
    BudgetRowOut,
    BudgetSummaryIn,
    BudgetSummaryOut,
    BudgetSummaryResponse,
    CategoryMappingIn,
    ExpenseDefinitionIn,
    IncomeSourceIn,
    LayoutConfig,
    MethodologySectionOut,
    SplitSettingIn,
    TransactionIn,
)
from splits import SplitLookup, apply_percentage, resolve_split_percentage

logger = logging.getLogger(__name__)


def calculate_income(
    sources: Iterable[IncomeSourceIn],
    target_period: PeriodType,
    budget_view: BudgetView,
    user_id: str,
    period_range: PeriodRange,
) -> int:
    """Expected income for one budget period.

    Recurring salary is converted to the period's frequency. One-off income
    counts in full, and only once it has been received inside the period.
    The individual view keeps only the viewer's own, non-manual-partner income.
    """
    tz = period_range.start.tzinfo or timezone.utc
    total = 0
    for source in sources:
        if budget_view == BudgetView.individual:
            if source.user_id != user_id or source.is_manual_partner_income:
                continue

        if source.source_type == IncomeSourceType.one_off:
            if not source.is_received:
                continue
            received = parse_anchor(source.received_date, tz)
            if received is None or not period_range.contains(received):
                continue
            total += source.amount_cents
        else:
            total += convert_to_target_period(
                source.amount_cents, source.frequency, target_period
            )
    return total


def expense_default_amounts(
    expenses: Iterable[ExpenseDefinitionIn],
    splits: SplitLookup,
    target_period: PeriodType,
    budget_view: BudgetView,
    user_id: str,
    owner_user_id: str,
    period_range: PeriodRange,
    manually_assigned: set[str],
) -> dict[str, int]:
    """Per-key budget derived from expense definitions.

    Keys holding a positive manual assignment are left out. Several
    definitions resolving to the same key are summed.
    """
    defaults: dict[str, int] = {}
    for expense in expenses:
        if not expense.inferred_subcategory:
            continue
        key = subcategory_key(expense.category_name, expense.inferred_subcategory)
        if key in manually_assigned:
            continue

        if expense.next_due_date:
            occurrences = count_occurrences_in_period(
                expense.next_due_date,
                expense.recurrence_type,
                period_range.start,
                period_range.end,
            )
            amount = expense.expected_amount_cents * occurrences
        elif expense.recurrence_type == RecurrenceType.one_time:
            amount = 0
        else:
            amount = convert_to_target_period(
                expense.expected_amount_cents,
                expense.recurrence_type.value,
                target_period,
            )

        if budget_view == BudgetView.individual:
            setting = splits.find(expense.id, expense.category_name)
            if setting is not None:
                pct = resolve_split_percentage(setting, user_id, owner_user_id)
                amount = apply_percentage(amount, pct)

        defaults[key] = defaults.get(key, 0) + amount
    return defaults


def _manually_assigned_keys(assignments: Iterable[AssignmentIn]) -> set[str]:
    # Seeded $0 rows are placeholders and never count as a manual choice.
    return {
        subcategory_key(a.category_name, a.subcategory_name)
        for a in assignments
        if a.assigned_cents > 0 and a.subcategory_name
    }


def _assigned_total(assignments: Iterable[AssignmentIn]) -> int:
    # Zero or negative category amounts are placeholders, not budget.
    total = 0
    for a in assignments:
        if a.assignment_type != AssignmentType.category:
            total += a.assigned_cents
        elif a.assigned_cents > 0:
            total += a.assigned_cents
    return total


def calculate_budgeted(
    assignments: Iterable[AssignmentIn],
    expenses: Iterable[ExpenseDefinitionIn],
    split_settings: Iterable[SplitSettingIn],
    target_period: PeriodType,
    budget_view: BudgetView,
    user_id: str,
    owner_user_id: str,
    period_range: PeriodRange,
) -> int:
    assignments = list(assignments)
    defaults = expense_default_amounts(
        expenses,
        SplitLookup(split_settings),
        target_period,
        budget_view,
        user_id,
        owner_user_id,
        period_range,
        _manually_assigned_keys(assignments),
    )
    return _assigned_total(assignments) + sum(defaults.values())


def calculate_spent(
    transactions: Iterable[TransactionIn],
    category_mappings: Iterable[CategoryMappingIn],
    split_settings: Iterable[SplitSettingIn],
    budget_view: BudgetView,
    user_id: str,
    owner_user_id: str,
) -> dict[str, int]:
    """Absolute spend per ``Parent::Child`` key.

    Only outgoing transactions count. Transactions whose category has no
    mapping are skipped entirely. In the individual view a transaction's own
    override wins over the matched expense's split, which wins over the
    category split.
    """
    lookup = {m.external_category_id: m for m in category_mappings}
    splits = SplitLookup(split_settings)
    spent: dict[str, int] = {}
    unmapped = 0

    for txn in transactions:
        if txn.is_income or txn.amount_cents >= 0:
            continue
        mapping = lookup.get(txn.category_id) if txn.category_id else None
        if mapping is None:
            unmapped += 1
            continue

        amount = abs(txn.amount_cents)
        if budget_view == BudgetView.individual:
            if txn.split_override_percentage is not None:
                amount = apply_percentage(amount, txn.split_override_percentage)
            else:
                setting = splits.find(txn.matched_expense_id, mapping.parent_name)
                if setting is not None:
                    pct = resolve_split_percentage(setting, user_id, owner_user_id)
                    amount = apply_percentage(amount, pct)

        key = subcategory_key(mapping.parent_name, mapping.child_name)
        spent[key] = spent.get(key, 0) + amount

    if unmapped:
        logger.debug(f"spent_skipped_unmapped: count={unmapped}")
    return spent


@dataclass(frozen=True)
class CarryoverInput:
    mode: CarryoverMode
    prev_income: int = 0
    prev_carryover: int = 0
    prev_budgeted: int = 0
    prev_spent: int = 0


def calculate_carryover(data: CarryoverInput) -> int:
    """Every period starts fresh under the only supported mode."""
    return 0


def _split_key(key: str) -> tuple[str, str]:
    parent, _, child = key.partition(KEY_SEPARATOR)
    return parent, child


def _subcategory_row(
    key: str, budgeted: int, spent: int, is_expense_default: bool = False
) -> BudgetRowOut:
    parent, child = _split_key(key)
    return BudgetRowOut(
        id=key,
        type=RowType.subcategory,
        name=child,
        parent_category=parent,
        budgeted=budgeted,
        spent=spent,
        available=budgeted - spent,
        is_expense_default=is_expense_default,
    )


def _saving_row(
    key: str, row_type: RowType, name: str, budgeted: int, spent: int
) -> BudgetRowOut:
    return BudgetRowOut(
        id=key,
        type=row_type,
        name=name,
        budgeted=budgeted,
        spent=spent,
        available=budgeted - spent,
    )


def _methodology_sections(
    layout: LayoutConfig, rows: list[BudgetRowOut], income: int
) -> list[MethodologySectionOut]:
    rows_by_id = {row.id: row for row in rows}
    sections: list[MethodologySectionOut] = []
    for section in layout.sections:
        row_ids = dict.fromkeys(layout_item_row_id(i) for i in section.item_ids)
        section_rows = [rows_by_id[i] for i in row_ids if i in rows_by_id]
        sections.append(
            MethodologySectionOut(
                name=section.name,
                percentage=section.percentage,
                target=apply_percentage(income, section.percentage),
                budgeted=sum(r.budgeted for r in section_rows),
                spent=sum(r.spent for r in section_rows),
            )
        )
    return sections


def calculate_budget_summary(
    data: BudgetSummaryIn,
    period_range: PeriodRange,
    carryover: int = 0,
    layout: Optional[LayoutConfig] = None,
) -> BudgetSummaryOut:
    owner_user_id = data.effective_owner_user_id
    if data.methodology == Methodology.custom and data.total_budget is not None:
        income = data.total_budget
    else:
        income = calculate_income(
            data.income_sources,
            data.period_type,
            data.budget_view,
            data.user_id,
            period_range,
        )

    spent_map = calculate_spent(
        data.transactions,
        data.category_mappings,
        data.split_settings,
        data.budget_view,
        data.user_id,
        owner_user_id,
    )
    defaults = expense_default_amounts(
        data.expense_definitions,
        SplitLookup(data.split_settings),
        data.period_type,
        data.budget_view,
        data.user_id,
        owner_user_id,
        period_range,
        _manually_assigned_keys(data.assignments),
    )
    budgeted = _assigned_total(data.assignments) + sum(defaults.values())

    goal_names = {g.id: g.name for g in data.goals}
    asset_names = {a.id: a.name for a in data.assets}
    rows: dict[str, BudgetRowOut] = {}

    # Each layer only claims keys no earlier layer produced.
    for a in data.assignments:
        if a.assignment_type == AssignmentType.category and a.subcategory_name:
            key = subcategory_key(a.category_name, a.subcategory_name)
            if key in rows and a.assigned_cents <= 0:
                continue
            spent = spent_map.get(key, 0)
            if a.assigned_cents <= 0 and key in defaults:
                rows[key] = _subcategory_row(key, defaults[key], spent, True)
            else:
                rows[key] = _subcategory_row(key, a.assigned_cents, spent)
        elif a.assignment_type == AssignmentType.goal and a.goal_id:
            key = goal_key(a.goal_id)
            rows[key] = _saving_row(
                key,
                RowType.goal,
                goal_names.get(a.goal_id, a.goal_id),
                a.assigned_cents,
                data.goal_contributions.get(a.goal_id, 0),
            )
        elif a.assignment_type == AssignmentType.asset and a.asset_id:
            key = asset_key(a.asset_id)
            rows[key] = _saving_row(
                key,
                RowType.asset,
                asset_names.get(a.asset_id, a.asset_id),
                a.assigned_cents,
                data.asset_contributions.get(a.asset_id, 0),
            )

    for goal in data.goals:
        key = goal_key(goal.id)
        if key not in rows:
            rows[key] = _saving_row(
                key, RowType.goal, goal.name, 0, data.goal_contributions.get(goal.id, 0)
            )

    for asset in data.assets:
        key = asset_key(asset.id)
        if key not in rows:
            rows[key] = _saving_row(
                key,
                RowType.asset,
                asset.name,
                0,
                data.asset_contributions.get(asset.id, 0),
            )

    for key, amount in defaults.items():
        if key not in rows:
            rows[key] = _subcategory_row(key, amount, spent_map.get(key, 0), True)

    for key, spent in spent_map.items():
        if key not in rows:
            rows[key] = _subcategory_row(key, 0, spent)

    if layout is not None:
        for key in layout_subcategory_keys(layout):
            if key not in rows:
                rows[key] = _subcategory_row(key, 0, 0)

    for goal_id, amount in data.goal_contributions.items():
        key = goal_key(goal_id)
        if key not in rows:
            rows[key] = _saving_row(key, RowType.goal, goal_id, 0, amount)

    for asset_id, amount in data.asset_contributions.items():
        key = asset_key(asset_id)
        if key not in rows:
            rows[key] = _saving_row(key, RowType.asset, asset_id, 0, amount)

    row_list = list(rows.values())
    total_spent = sum(row.spent for row in row_list)
    tbb = income + carryover - budgeted

    methodology_sections = None
    if layout is not None and layout.sections:
        methodology_sections = _methodology_sections(layout, row_list, income)

    logger.debug(
        f"budget_summary: period={period_range.label} income={income} "
        f"budgeted={budgeted} spent={total_spent} tbb={tbb} rows={len(row_list)}"
    )
    return BudgetSummaryOut(
        income=income,
        budgeted=budgeted,
        spent=total_spent,
        carryover=carryover,
        tbb=tbb,
        rows=row_list,
        methodology_sections=methodology_sections,
    )


def reference_instant(value: Union[date, datetime], tz: Optional[str] = None) -> datetime:
    """Instant for a request's ``date``; bare dates mean local midnight."""
    if isinstance(value, datetime):
        return as_utc(value)
    return midnight_in_timezone(value, resolve_timezone(tz))


class BudgetSummaryService:
    def __init__(self, tz: Optional[str] = None) -> None:
        self.timezone = resolve_timezone(tz).key

    def summarize(self, data: BudgetSummaryIn) -> BudgetSummaryResponse:
        tz = data.timezone or self.timezone
        reference = reference_instant(data.date, tz)
        period_range = get_budget_period_range(reference, data.period_type, tz)
        month_key = get_month_key_for_period(reference, tz)
        carryover = calculate_carryover(CarryoverInput(mode=data.carryover_mode))
        layout = normalize_layout_config(data.layout_config)

        summary = calculate_budget_summary(
            data, period_range, carryover=carryover, layout=layout
        )
        return BudgetSummaryResponse(
            **summary.model_dump(),
            period_label=period_range.label,
            period_start=as_utc(period_range.start),
            period_end=as_utc(period_range.end),
            month_key=month_key,
            next_period_start=as_utc(
                get_next_period_date(reference, data.period_type, tz)
            ),
            previous_period_start=as_utc(
                get_previous_period_date(reference, data.period_type, tz)
            ),
        )
