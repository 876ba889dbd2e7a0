"""
Per-kind validation and normalization rules.

``REQUIRED_FIELDS`` is the presence policy; ``normalize`` applies the field
coercions and derived fields each kind carries (price as float, category
slug, order total, ...).
"""
from __future__ import annotations

import math
import re
from typing import Any, Callable, Dict, List, Mapping

from storefront.core.utils import to_bool
from storefront.domain.errors import ValidationError

PRODUCTS = "products"
CATEGORIES = "categories"
ORDERS = "orders"
CONTACTS = "contacts"

REQUIRED_FIELDS: Dict[str, tuple[str, ...]] = {
    PRODUCTS: ("name", "price"),
    CATEGORIES: ("name",),
    ORDERS: ("customerName", "customerEmail", "items"),
    CONTACTS: ("name", "email", "message"),
}

DEFAULT_ORDER_STATUS = "pending"
_WS = re.compile(r"\s+")


def is_present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


def missing_fields(kind: str, payload: Mapping[str, Any]) -> List[str]:
    return [f for f in REQUIRED_FIELDS.get(kind, ()) if not is_present(payload.get(f))]


def slugify(name: str) -> str:
    return _WS.sub("-", str(name or "").strip().lower())


def order_total(items: list) -> float:
    total = 0.0
    for item in items:
        if not isinstance(item, Mapping):
            raise ValueError("order item must be an object")
        total += float(item.get("price") or 0) * int(item.get("quantity") or 0)
    return round(total, 2)


def _product(record: Dict[str, Any], changed: set[str]) -> List[str]:
    bad: List[str] = []
    try:
        price = float(record.get("price"))
    except (TypeError, ValueError):
        bad.append("price")
    else:
        if math.isfinite(price) and price >= 0:
            record["price"] = price
        else:
            bad.append("price")
    stock = record.get("stock")
    try:
        record["stock"] = int(stock) if is_present(stock) else 0
    except (TypeError, ValueError):
        bad.append("stock")
    record["featured"] = to_bool(record.get("featured"))
    record.setdefault("category", "")
    record.setdefault("description", "")
    if not is_present(record.get("image")):
        record["image"] = None
    return bad


def _category(record: Dict[str, Any], changed: set[str]) -> List[str]:
    if "name" in changed or "slug" not in record:
        record["slug"] = slugify(record["name"])
    record.setdefault("description", "")
    return []


def _order(record: Dict[str, Any], changed: set[str]) -> List[str]:
    items = record.get("items")
    if not isinstance(items, list):
        return ["items"]
    try:
        record["total"] = order_total(items)
    except (TypeError, ValueError):
        return ["items"]
    if not is_present(record.get("status")):
        record["status"] = DEFAULT_ORDER_STATUS
    return []


def _contact(record: Dict[str, Any], changed: set[str]) -> List[str]:
    return []


_NORMALIZERS: Dict[str, Callable[[Dict[str, Any], set[str]], List[str]]] = {
    PRODUCTS: _product,
    CATEGORIES: _category,
    ORDERS: _order,
    CONTACTS: _contact,
}


def validate(kind: str, record: Dict[str, Any]) -> None:
    """Presence check against ``REQUIRED_FIELDS``."""
    missing = missing_fields(kind, record)
    if missing:
        raise ValidationError(kind, missing, record)


def normalize(kind: str, record: Dict[str, Any], changed: set[str] | None = None) -> Dict[str, Any]:
    """
    Validate ``record`` in place and apply the kind's coercions.

    ``changed`` names the fields touched by the current mutation; derived
    fields are recomputed from their source: the category slug only when
    the name changed, the order total on every write.
    ``None`` means every field is new.
    """
    validate(kind, record)
    normalizer = _NORMALIZERS.get(kind)
    if normalizer is None:
        return record
    snapshot = dict(record)
    bad = normalizer(record, set(record) if changed is None else changed)
    if bad:
        raise ValidationError(kind, bad, snapshot)
    return record
