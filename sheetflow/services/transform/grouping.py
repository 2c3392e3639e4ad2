"""Collection normalization and grouping helpers for iteration commands."""

from __future__ import annotations

from collections.abc import Hashable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import pandas as pd

from sheetflow.core.errors import ConfigurationError, StructuralError

from .expression import DEFAULT_EVALUATOR, ExpressionEvaluator

GROUP_ORDER_ASC = "ASC"
GROUP_ORDER_DESC = "DESC"


@dataclass
class GroupData:
    """A group key and the items sharing it, in their original order."""

    key: Any
    items: List[Any] = field(default_factory=list)

    @property
    def item(self) -> Any:
        """First member of the group."""

        return self.items[0] if self.items else None

    def __len__(self) -> int:
        return len(self.items)


def to_collection(value: Any) -> List[Any]:
    """Materialize *value* as an ordered list.

    ``None`` becomes an empty list, a DataFrame becomes its row records (NaN as ``None``) and
    any other non-collection value is wrapped into a single-element list.
    """

    if value is None:
        return []
    if isinstance(value, pd.DataFrame):
        return value.astype(object).where(pd.notna(value), None).to_dict(orient="records")
    if isinstance(value, pd.Series):
        return value.tolist()
    if isinstance(value, (str, bytes, Mapping)):
        return [value]
    if isinstance(value, Iterable):
        return list(value)
    return [value]


def _property_of(item: Any, name: str) -> Any:
    if isinstance(item, Mapping):
        return item.get(name)
    return getattr(item, name, None)


def _has_property(item: Any, name: str) -> bool:
    if isinstance(item, Mapping):
        return name in item
    return hasattr(item, name)


def _normalize_order(group_order: Optional[str]) -> Optional[str]:
    if group_order is None or not str(group_order).strip():
        return None
    order = str(group_order).strip().upper()
    if order not in (GROUP_ORDER_ASC, GROUP_ORDER_DESC):
        raise ConfigurationError(f"Unsupported group order '{group_order}' (expected ASC or DESC)")
    return order


def group_collection(
    items: Iterable[Any],
    group_by: str,
    group_order: Optional[str] = None,
    *,
    var: str = "item",
    bindings: Optional[Mapping[str, Any]] = None,
    evaluator: ExpressionEvaluator | None = None,
) -> List[GroupData]:
    """Partition *items* into key-ordered buckets.

    ``group_by`` is evaluated per item with the item bound under *var*. A
    bare property name that is not otherwise bound is read straight off the
    item, so ``department`` and ``e.department`` both work.
    """

    evaluator = evaluator or DEFAULT_EVALUATOR
    order = _normalize_order(group_order)
    names: Dict[str, Any] = dict(bindings or {})
    groups: List[GroupData] = []
    index: Dict[Any, GroupData] = {}

    for item in items:
        if group_by.isidentifier() and group_by != var and group_by not in names and _has_property(item, group_by):
            key = _property_of(item, group_by)
        else:
            names[var] = item
            key = evaluator.evaluate(group_by, names)
        hashable = isinstance(key, Hashable)
        if hashable:
            bucket = index.get(key)
        else:
            bucket = next((group for group in groups if group.key == key), None)
        if bucket is None:
            bucket = GroupData(key)
            groups.append(bucket)
            if hashable:
                index[key] = bucket
        bucket.items.append(item)

    if order is not None:
        try:
            groups.sort(key=lambda group: group.key, reverse=order == GROUP_ORDER_DESC)
        except TypeError as exc:
            raise StructuralError(f"Group keys for '{group_by}' are not mutually comparable") from exc
    return groups
