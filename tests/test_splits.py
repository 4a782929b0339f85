import pytest
from pydantic import ValidationError

from models import SplitType
from schemas import SplitSettingIn
from splits import SplitLookup, apply_percentage, resolve_split_percentage

OWNER = "user-owner"
PARTNER = "user-partner"


def _setting(split_type: SplitType, owner_percentage=None, **kwargs) -> SplitSettingIn:
    return SplitSettingIn(
        split_type=split_type, owner_percentage=owner_percentage, **kwargs
    )


@pytest.mark.parametrize(
    "setting, owner_share, partner_share",
    [
        (None, 100, 100),
        (_setting(SplitType.equal), 50, 50),
        (_setting(SplitType.custom, 55), 55, 45),
        (_setting(SplitType.custom, 0), 0, 100),
        (_setting(SplitType.custom), 100, 0),
        (_setting(SplitType.individual_owner), 100, 0),
        (_setting(SplitType.individual_partner), 0, 100),
    ],
)
def test_resolve_split_percentage(setting, owner_share, partner_share) -> None:
    assert resolve_split_percentage(setting, OWNER, OWNER) == owner_share
    assert resolve_split_percentage(setting, PARTNER, OWNER) == partner_share


def test_owner_percentage_must_be_a_percentage() -> None:
    with pytest.raises(ValidationError):
        _setting(SplitType.custom, 120)
    with pytest.raises(ValidationError):
        _setting(SplitType.custom, -1)


def test_apply_percentage_rounds_half_up() -> None:
    assert apply_percentage(85_000, 55) == 46_750
    assert apply_percentage(340_000, 55) == 187_000
    assert apply_percentage(101, 50) == 51
    assert apply_percentage(1_000, 33.3) == 333
    assert apply_percentage(1_000, 0) == 0


def test_lookup_prefers_expense_level_setting() -> None:
    lookup = SplitLookup(
        [
            _setting(SplitType.equal, category_name="Housing"),
            _setting(SplitType.custom, 70, expense_definition_id="rent"),
        ]
    )
    assert lookup.find("rent", "Housing").split_type == SplitType.custom
    assert lookup.find("power", "Housing").split_type == SplitType.equal
    assert lookup.find(None, "Housing").split_type == SplitType.equal
    assert lookup.find(None, "Food") is None
    assert lookup.find() is None


def test_expense_settings_are_not_category_settings() -> None:
    # A setting tied to one expense must not leak onto its whole category.
    lookup = SplitLookup(
        [
            _setting(
                SplitType.individual_owner,
                category_name="Housing",
                expense_definition_id="rent",
            )
        ]
    )
    assert lookup.find("power", "Housing") is None


def test_first_setting_wins_for_duplicates() -> None:
    lookup = SplitLookup(
        [
            _setting(SplitType.equal, category_name="Food"),
            _setting(SplitType.individual_partner, category_name="Food"),
        ]
    )
    assert lookup.find(category_name="Food").split_type == SplitType.equal
