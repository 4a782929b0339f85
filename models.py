from enum import Enum


class PeriodType(str, Enum):
    weekly = "weekly"
    fortnightly = "fortnightly"
    monthly = "monthly"


class Frequency(str, Enum):
    weekly = "weekly"
    fortnightly = "fortnightly"
    monthly = "monthly"
    quarterly = "quarterly"
    yearly = "yearly"


class RecurrenceType(str, Enum):
    weekly = "weekly"
    fortnightly = "fortnightly"
    monthly = "monthly"
    quarterly = "quarterly"
    yearly = "yearly"
    one_time = "one-time"


class BudgetView(str, Enum):
    individual = "individual"
    shared = "shared"


class SplitType(str, Enum):
    equal = "equal"
    custom = "custom"
    individual_owner = "individual-owner"
    individual_partner = "individual-partner"


class IncomeSourceType(str, Enum):
    recurring_salary = "recurring-salary"
    one_off = "one-off"


class AssignmentType(str, Enum):
    category = "category"
    goal = "goal"
    asset = "asset"


class RowType(str, Enum):
    subcategory = "subcategory"
    goal = "goal"
    asset = "asset"


class CarryoverMode(str, Enum):
    none = "none"


class Methodology(str, Enum):
    zero_based = "zero-based"
    fifty_thirty_twenty = "50-30-20"
    envelope = "envelope"
    pay_yourself_first = "pay-yourself-first"
    eighty_twenty = "80-20"
    custom = "custom"


KEY_SEPARATOR = "::"


def subcategory_key(category_name: str, subcategory_name: str) -> str:
    return f"{category_name}{KEY_SEPARATOR}{subcategory_name}"


def goal_key(goal_id: str) -> str:
    return f"goal{KEY_SEPARATOR}{goal_id}"


def asset_key(asset_id: str) -> str:
    return f"asset{KEY_SEPARATOR}{asset_id}"
