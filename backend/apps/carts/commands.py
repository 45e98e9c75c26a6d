from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from .dtos import COURSE, ITEM_TYPES, PRODUCT, ItemId, Number


def normalize_item_id(raw: Any) -> Optional[ItemId]:
    if isinstance(raw, bool) or raw is None:
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, str):
        raw = raw.strip()
        return raw or None
    return None


def normalize_price(raw: Any) -> Optional[Number]:
    if isinstance(raw, bool) or raw is None:
        return None
    if isinstance(raw, (int, float)):
        value = raw
    else:
        try:
            value = float(str(raw).strip())
        except (TypeError, ValueError):
            return None
    if value != value or value < 0:
        # NaN or negative
        return None
    return value


def coerce_quantity(raw: Any) -> Optional[int]:
    """Whole-number quantity, or ``None`` when ``raw`` is not integral."""
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        return int(raw) if raw.is_integer() else None
    if isinstance(raw, str):
        try:
            return int(raw.strip())
        except ValueError:
            return None
    return None


def normalize_quantity(raw: Any) -> Optional[int]:
    if isinstance(raw, bool):
        return None
    if not raw:
        return 1
    return coerce_quantity(raw)


def _resolve_type(raw: Dict[str, Any]) -> Optional[str]:
    item_type = raw.get("type") or raw.get("itemType")
    if item_type is None:
        if raw.get("courseId") is not None:
            return COURSE
        return PRODUCT
    item_type = str(item_type).strip().lower()
    return item_type if item_type in ITEM_TYPES else None


def _resolve_item_id(raw: Dict[str, Any], item_type: str) -> Optional[ItemId]:
    if item_type == COURSE:
        candidates = ("itemId", "courseId", "course", "id", "_id")
    else:
        candidates = ("itemId", "productId", "product", "id", "_id")
    for name in candidates:
        item_id = normalize_item_id(raw.get(name))
        if item_id is not None:
            return item_id
    return None


@dataclass
class AddItemCommand:
    item_id: ItemId
    title: str
    price: Number
    quantity: int = 1
    type: str = PRODUCT

    @staticmethod
    def from_raw(raw: Mapping[str, Any]):
        """Build a command from a candidate mapping; ``None`` when it cannot be added."""
        if not isinstance(raw, Mapping):
            return None
        item_type = _resolve_type(raw)
        if item_type is None:
            return None
        item_id = _resolve_item_id(raw, item_type)
        title = raw.get("title") or raw.get("name")
        price = normalize_price(raw.get("price"))
        quantity = normalize_quantity(raw.get("quantity"))
        if item_id is None or not isinstance(title, str) or not title.strip():
            return None
        if price is None or quantity is None or quantity <= 0:
            return None
        return AddItemCommand(
            item_id=item_id,
            title=title.strip(),
            price=price,
            quantity=quantity,
            type=item_type,
        )


@dataclass
class MergeCommand:
    items: List[AddItemCommand] = field(default_factory=list)
    skipped: int = 0

    @staticmethod
    def from_raw(raw_items: Any):
        if raw_items is None:
            return MergeCommand()
        if not isinstance(raw_items, (list, tuple)):
            raise ValueError("Merge payload must be a list of cart items")
        items: List[AddItemCommand] = []
        skipped = 0
        for raw in raw_items:
            if isinstance(raw, Mapping):
                # merged lines never carry a non-positive quantity
                qty = normalize_quantity(raw.get("quantity"))
                if qty is None or qty <= 0:
                    raw = {**raw, "quantity": 1}
            cmd = AddItemCommand.from_raw(raw)
            if cmd:
                items.append(cmd)
            else:
                skipped += 1
        return MergeCommand(items=items, skipped=skipped)
