"""Pure updaters used by optimistic writes.

Cached values are dataclass entities, pydantic models or plain dicts
depending on who put them there; these helpers never mutate their input.
"""

import dataclasses
from typing import Any

from pydantic import BaseModel


def get_field(obj: Any, name: str, default: Any = None) -> Any:
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


def merge_fields(obj: Any, changes: dict[str, Any]) -> Any:
    """Shallow merge ``changes`` into a copy of ``obj``."""
    if isinstance(obj, dict):
        return {**obj, **changes}
    if isinstance(obj, BaseModel):
        return obj.model_copy(update=changes)
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        known = {f.name for f in dataclasses.fields(obj) if f.init}
        return dataclasses.replace(obj, **{k: v for k, v in changes.items() if k in known})
    raise TypeError(f"Cannot merge fields into {type(obj).__name__}")


def add_to_field(obj: Any, name: str, delta: int) -> Any:
    return merge_fields(obj, {name: (get_field(obj, name) or 0) + delta})


def update_in_list(items: list[Any], entity_id: str, changes: dict[str, Any]) -> list[Any]:
    return [merge_fields(item, changes) if get_field(item, "id") == entity_id else item for item in items]


def remove_from_list(items: list[Any], entity_id: str, id_field: str = "id") -> list[Any]:
    return [item for item in items if get_field(item, id_field) != entity_id]


def remove_from_page(page: Any, entity_id: str, items_field: str = "products") -> Any:
    """Drop an entity from a paginated result and decrement its total."""
    items = get_field(page, items_field) or []
    remaining = remove_from_list(items, entity_id)
    if len(remaining) == len(items):
        return page
    total = get_field(page, "total") or 0
    return merge_fields(page, {items_field: remaining, "total": max(0, total - 1)})
