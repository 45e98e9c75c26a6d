from typing import Any, Iterable, List, Mapping, Optional

from .commands import coerce_quantity, normalize_item_id, normalize_price
from .dtos import ITEM_TYPES, PRODUCT, CartLineItem, CartSummary, MergeStats


class LineItemMapper:
    """Translates line items to and from the persisted camelCase JSON records."""

    def to_record(self, item: CartLineItem) -> dict:
        return {
            "itemId": item.item_id,
            "title": item.title,
            "price": item.price,
            "quantity": item.quantity,
            "type": item.type,
            "addedAt": item.added_at,
        }

    def from_record(self, record: Mapping[str, Any]) -> Optional[CartLineItem]:
        if not isinstance(record, Mapping):
            return None
        item_id = normalize_item_id(record.get("itemId"))
        if item_id is None:
            return None
        # records written before types existed are products
        item_type = record.get("type", PRODUCT)
        if item_type not in ITEM_TYPES:
            return None
        raw_quantity = record.get("quantity")
        quantity = 1 if raw_quantity is None else coerce_quantity(raw_quantity)
        if quantity is None or quantity <= 0:
            return None
        price = normalize_price(record.get("price"))
        title = record.get("title")
        added_at = record.get("addedAt")
        return CartLineItem(
            item_id=item_id,
            title=title if isinstance(title, str) else "",
            price=price if price is not None else 0,
            quantity=quantity,
            type=item_type,
            added_at=added_at if isinstance(added_at, str) else "",
        )

    def many_to_records(self, items: Iterable[CartLineItem]) -> List[dict]:
        return [self.to_record(i) for i in items]

    def many_from_records(self, records: Iterable[Any]) -> List[CartLineItem]:
        """Decode records, dropping unusable ones and any repeat of an (itemId, type) key."""
        items: List[CartLineItem] = []
        seen = set()
        for record in records:
            item = self.from_record(record)
            if item is None or item.key in seen:
                continue
            seen.add(item.key)
            items.append(item)
        return items


def summary_to_payload(summary: CartSummary) -> dict:
    return {
        "itemCount": summary.item_count,
        "totalAmount": summary.total_amount,
        "uniqueItems": summary.unique_items,
        "productCount": summary.product_count,
        "courseCount": summary.course_count,
        "averagePrice": summary.average_price,
    }


def merge_stats_to_payload(stats: MergeStats) -> dict:
    return {
        "mergedItems": stats.merged_items,
        "updatedItems": stats.updated_items,
        "skippedItems": stats.skipped_items,
        "totalItems": stats.total_items,
    }
