from fractions import Fraction
from typing import Iterable, Optional, Union

from frequency import round_cents
from models import SplitType
from schemas import SplitSettingIn

Percentage = Union[int, float]


def resolve_split_percentage(
    setting: Optional[SplitSettingIn], viewer_user_id: str, owner_user_id: str
) -> Percentage:
    """Share (0-100) of a shared cost that belongs to ``viewer_user_id``.

    Without a setting the cost is unsplit and the viewer carries all of it.
    """
    if setting is None:
        return 100

    is_owner = viewer_user_id == owner_user_id
    if setting.split_type == SplitType.equal:
        return 50
    if setting.split_type == SplitType.custom:
        owner_pct = 100 if setting.owner_percentage is None else setting.owner_percentage
        return owner_pct if is_owner else 100 - owner_pct
    if setting.split_type == SplitType.individual_owner:
        return 100 if is_owner else 0
    if setting.split_type == SplitType.individual_partner:
        return 0 if is_owner else 100
    return 100


def apply_percentage(amount_cents: int, percentage: Percentage) -> int:
    return round_cents(amount_cents * Fraction(str(percentage)) / 100)


class SplitLookup:
    """Index of split settings by expense definition and by parent category."""

    def __init__(self, settings: Iterable[SplitSettingIn]) -> None:
        self.by_expense: dict[str, SplitSettingIn] = {}
        self.by_category: dict[str, SplitSettingIn] = {}
        for setting in settings:
            if setting.expense_definition_id:
                self.by_expense.setdefault(setting.expense_definition_id, setting)
            elif setting.category_name:
                self.by_category.setdefault(setting.category_name, setting)

    def find(
        self,
        expense_definition_id: Optional[str] = None,
        category_name: Optional[str] = None,
    ) -> Optional[SplitSettingIn]:
        """Expense-level setting first, then the category-level one."""
        if expense_definition_id and expense_definition_id in self.by_expense:
            return self.by_expense[expense_definition_id]
        if category_name:
            return self.by_category.get(category_name)
        return None
