"""Normalization of loosely shaped collaborator payloads into typed records."""

import math
from collections import Counter
from typing import Any, Iterable, Optional

from models import KEY_SEPARATOR, asset_key, goal_key
from schemas import CategoryMappingIn, LayoutConfig, LayoutSectionIn

SUBCATEGORY_ITEM_PREFIX = "subcategory-"
GOAL_ITEM_PREFIX = "goal-"
ASSET_ITEM_PREFIX = "asset-"


def _item_id(item: Any) -> Optional[str]:
    if isinstance(item, dict):
        item = item.get("id")
    if isinstance(item, str) and item:
        return item
    return None


def _first_present(raw: dict[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        value = raw.get(key)
        if value is not None:
            return value
    return default


def _normalize_section(raw: Any) -> Optional[LayoutSectionIn]:
    if not isinstance(raw, dict):
        return None
    items = _first_present(raw, "itemIds", "items", default=[])
    if not isinstance(items, list):
        items = []
    percentage = _first_present(raw, "percentage", "targetPercentage", default=0)
    if isinstance(percentage, bool) or not isinstance(percentage, (int, float)):
        percentage = 0
    elif isinstance(percentage, float) and not math.isfinite(percentage):
        percentage = 0
    name = _first_present(raw, "name", "title", default="")
    return LayoutSectionIn(
        name=str(name),
        percentage=percentage,
        item_ids=[i for i in (_item_id(item) for item in items) if i],
    )


def normalize_layout_config(raw: Optional[dict[str, Any]]) -> Optional[LayoutConfig]:
    """Typed view of a stored layout blob.

    The editor has saved sections both as ``{name, percentage, itemIds}`` and
    as ``{title, targetPercentage, items: [{id}]}``; both are accepted.
    Unknown keys are ignored. ``None`` stays ``None``.
    """
    if raw is None:
        return None
    sections_raw = raw.get("sections")
    sections = []
    if isinstance(sections_raw, list):
        for section_raw in sections_raw:
            section = _normalize_section(section_raw)
            if section is not None:
                sections.append(section)
    hidden_raw = raw.get("hiddenItemIds")
    hidden = []
    if isinstance(hidden_raw, list):
        hidden = [i for i in (_item_id(item) for item in hidden_raw) if i]
    return LayoutConfig(sections=sections, hidden_item_ids=hidden)


def layout_item_row_id(item_id: str) -> str:
    """Summary row id for a layout item id; unknown ids pass through."""
    if item_id.startswith(SUBCATEGORY_ITEM_PREFIX):
        return item_id[len(SUBCATEGORY_ITEM_PREFIX):]
    if item_id.startswith(GOAL_ITEM_PREFIX):
        return goal_key(item_id[len(GOAL_ITEM_PREFIX):])
    if item_id.startswith(ASSET_ITEM_PREFIX):
        return asset_key(item_id[len(ASSET_ITEM_PREFIX):])
    return item_id


def layout_subcategory_keys(config: LayoutConfig) -> list[str]:
    """``Parent::Child`` keys for every subcategory item the layout places."""
    item_ids = [i for section in config.sections for i in section.item_ids]
    item_ids.extend(config.hidden_item_ids)

    keys: list[str] = []
    for item_id in item_ids:
        if not item_id.startswith(SUBCATEGORY_ITEM_PREFIX):
            continue
        key = item_id[len(SUBCATEGORY_ITEM_PREFIX):]
        parent, sep, child = key.partition(KEY_SEPARATOR)
        if not sep or not parent or not child or key in keys:
            continue
        keys.append(key)
    return keys


def infer_expense_category(
    matched_category_ids: Iterable[Optional[str]],
    mappings: Iterable[CategoryMappingIn],
) -> tuple[str, Optional[str]]:
    """Parent and child category for an expense from its matched transactions.

    The most common mapped category wins; ties go to the one seen first.
    Returns ``("", None)`` when none of the ids map.
    """
    lookup = {m.external_category_id: m for m in mappings}
    counts = Counter(
        category_id for category_id in matched_category_ids if category_id in lookup
    )
    if not counts:
        return "", None
    # Counter preserves insertion order, and max() keeps the first maximum.
    best = max(counts, key=counts.__getitem__)
    mapping = lookup[best]
    return mapping.parent_name, mapping.child_name


def sum_contributions(records: Iterable[tuple[str, int]]) -> dict[str, int]:
    """Fold ``(id, cents)`` records into absolute cents per id."""
    totals: dict[str, int] = {}
    for record_id, amount_cents in records:
        if not record_id:
            continue
        totals[record_id] = totals.get(record_id, 0) + abs(amount_cents)
    return totals
