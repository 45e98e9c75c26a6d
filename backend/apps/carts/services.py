from __future__ import annotations

import json
from typing import Any, Callable, Iterable, List, Mapping, Optional, Union

from asgiref.sync import sync_to_async
from django.utils import timezone

from apps.common import get_logger
from .activity import (
    CART_ADD_ITEM,
    CART_CLEAR,
    CART_MERGE,
    CART_REMOVE_ITEM,
    CART_UPDATE_ITEM,
    record_cart_activity,
)
from .commands import AddItemCommand, MergeCommand, coerce_quantity
from .dtos import (
    COURSE,
    PRODUCT,
    CartLineItem,
    CartResult,
    CartSummary,
    ItemId,
    MergeStats,
    Number,
)
from .mappers import LineItemMapper
from .protocols import CartStorageProtocol, LineItemMapperProtocol
from .storage import StorageUnavailableError

logger = get_logger(__name__).bind(component="carts", layer="service")

DEFAULT_STORAGE_KEY = "cartItems"

ITEM_NOT_FOUND = "ITEM_NOT_FOUND"
STORAGE_UNAVAILABLE = "STORAGE_UNAVAILABLE"
STORAGE_WRITE_FAILED = "STORAGE_WRITE_FAILED"
VALIDATION_ERROR = "VALIDATION_ERROR"


def cart_count(items: Iterable[CartLineItem]) -> int:
    return sum(i.quantity for i in items)


def cart_total(items: Iterable[CartLineItem]) -> Number:
    return sum(i.line_total for i in items)


class CartStore:
    """
    Shopping cart persisted as one JSON array under a single storage key.

    Every mutation is a full read-modify-write of that array. Storage problems
    never escape: reads degrade to an empty cart and writes come back as a
    failed ``CartResult``.
    """

    def __init__(
        self,
        storage: Optional[CartStorageProtocol],
        mapper: Optional[LineItemMapperProtocol] = None,
        storage_key: str = DEFAULT_STORAGE_KEY,
        clock: Optional[Callable[[], Any]] = None,
        actor: Optional[str] = None,
    ):
        self.storage = storage
        self.mapper = mapper or LineItemMapper()
        self.storage_key = storage_key
        self.clock = clock or timezone.now
        self.actor = actor
        self.logger = logger.bind(service="CartStore", storage_key=storage_key)

    @property
    def is_available(self) -> bool:
        return self.storage is not None

    def read_all(self) -> List[CartLineItem]:
        if self.storage is None:
            self.logger.debug("No storage bound; returning empty cart")
            return []
        try:
            raw = self.storage.get(self.storage_key)
        except Exception as exc:
            self.logger.warning("Cart storage read failed", error=str(exc))
            return []
        if not raw:
            return []
        try:
            records = json.loads(raw)
        except (TypeError, ValueError) as exc:
            self.logger.warning("Persisted cart is not valid JSON", error=str(exc))
            return []
        if not isinstance(records, list):
            self.logger.warning(
                "Persisted cart is not a list", found=type(records).__name__
            )
            return []
        items = self.mapper.many_from_records(records)
        if len(items) != len(records):
            self.logger.warning(
                "Skipped malformed cart records", skipped=len(records) - len(items)
            )
        return items

    def add(self, candidate: Union[AddItemCommand, Mapping[str, Any]]) -> CartResult:
        command = (
            candidate
            if isinstance(candidate, AddItemCommand)
            else AddItemCommand.from_raw(candidate)
        )
        if command is None:
            self.logger.info("Rejected invalid cart item")
            return CartResult(False, "Invalid cart item", code=VALIDATION_ERROR)
        try:
            items = self.read_all()
            existing = self._find(items, command.item_id, command.type)
            if existing is not None:
                old_quantity = existing.quantity
                existing.quantity += command.quantity
                self.logger.debug(
                    "Incremented existing line",
                    item_id=command.item_id,
                    type=command.type,
                    old_quantity=old_quantity,
                    quantity=existing.quantity,
                )
            else:
                items.append(
                    CartLineItem(
                        item_id=command.item_id,
                        title=command.title,
                        price=command.price,
                        quantity=command.quantity,
                        type=command.type,
                        added_at=self._now(),
                    )
                )
            self._persist(items)
        except Exception as exc:
            return self._failure("Failed to add item to cart", exc)
        record_cart_activity(
            CART_ADD_ITEM,
            {
                "itemId": command.item_id,
                "title": existing.title if existing is not None else command.title,
                "itemType": command.type,
                "quantity": command.quantity,
            },
            self.actor,
        )
        return CartResult(True, "Item added to cart successfully")

    async def aadd(self, candidate: Union[AddItemCommand, Mapping[str, Any]]) -> CartResult:
        return await sync_to_async(self.add)(candidate)

    def remove(self, item_id: ItemId, item_type: str = PRODUCT) -> CartResult:
        try:
            items = self.read_all()
            removed = self._find(items, item_id, item_type)
            remaining = [i for i in items if i is not removed]
            self._persist(remaining)
        except Exception as exc:
            return self._failure("Failed to remove item from cart", exc)
        if removed is not None:
            record_cart_activity(
                CART_REMOVE_ITEM,
                {"itemId": item_id, "title": removed.title, "itemType": item_type},
                self.actor,
            )
        else:
            self.logger.debug("Remove of absent item", item_id=item_id, type=item_type)
        return CartResult(True, "Item removed from cart")

    def update_quantity(self, item_id: ItemId, quantity: Any, item_type: str = PRODUCT) -> CartResult:
        requested = quantity
        quantity = coerce_quantity(requested)
        if quantity is None:
            self.logger.info("Rejected non-integer quantity", item_id=item_id, quantity=requested)
            return CartResult(False, "Quantity must be a whole number", code=VALIDATION_ERROR)
        try:
            items = self.read_all()
            target = self._find(items, item_id, item_type)
            if target is None:
                self.logger.info("Quantity update for absent item", item_id=item_id, type=item_type)
                return CartResult(False, "Item not found in cart", code=ITEM_NOT_FOUND)
            old_quantity = target.quantity
            if quantity <= 0:
                items = [i for i in items if i is not target]
            else:
                target.quantity = quantity
            self._persist(items)
        except Exception as exc:
            return self._failure("Failed to update cart", exc)
        record_cart_activity(
            CART_REMOVE_ITEM if quantity <= 0 else CART_UPDATE_ITEM,
            {
                "itemId": item_id,
                "title": target.title,
                "itemType": item_type,
                "oldQuantity": old_quantity,
                "newQuantity": max(quantity, 0),
            },
            self.actor,
        )
        return CartResult(True, "Cart updated successfully")

    def clear(self) -> CartResult:
        cleared = len(self.read_all())
        try:
            if self.storage is None:
                raise StorageUnavailableError("No cart storage available")
            self.storage.remove(self.storage_key)
        except Exception as exc:
            return self._failure("Failed to clear cart", exc)
        record_cart_activity(CART_CLEAR, {"itemsCleared": cleared}, self.actor)
        return CartResult(True, "Cart cleared successfully")

    def merge(self, raw_items: Union[MergeCommand, List[Any], None]) -> CartResult:
        """Fold a list of line items into the cart, e.g. a cart carried over from a guest session."""
        try:
            command = (
                raw_items
                if isinstance(raw_items, MergeCommand)
                else MergeCommand.from_raw(raw_items)
            )
        except ValueError as exc:
            return CartResult(False, str(exc), code=VALIDATION_ERROR)
        stats = MergeStats(skipped_items=command.skipped)
        if not command.items:
            stats.total_items = len(self.read_all())
            return CartResult(True, "No items to merge", data=stats)
        try:
            items = self.read_all()
            for cmd in command.items:
                existing = self._find(items, cmd.item_id, cmd.type)
                if existing is not None:
                    existing.quantity += cmd.quantity
                    stats.updated_items += 1
                else:
                    items.append(
                        CartLineItem(
                            item_id=cmd.item_id,
                            title=cmd.title,
                            price=cmd.price,
                            quantity=cmd.quantity,
                            type=cmd.type,
                            added_at=self._now(),
                        )
                    )
                    stats.merged_items += 1
            stats.total_items = len(items)
            self._persist(items)
        except Exception as exc:
            return self._failure("Failed to merge cart", exc)
        record_cart_activity(
            CART_MERGE,
            {"mergedItems": stats.merged_items, "updatedItems": stats.updated_items},
            self.actor,
        )
        return CartResult(
            True,
            f"Cart merged successfully. Added {stats.merged_items} new items, "
            f"updated {stats.updated_items} existing items.",
            data=stats,
        )

    def count(self) -> int:
        return cart_count(self.read_all())

    def total(self) -> Number:
        return cart_total(self.read_all())

    def summary(self) -> CartSummary:
        items = self.read_all()
        item_count = cart_count(items)
        total_amount = cart_total(items)
        return CartSummary(
            item_count=item_count,
            total_amount=total_amount,
            unique_items=len(items),
            product_count=sum(1 for i in items if i.type == PRODUCT),
            course_count=sum(1 for i in items if i.type == COURSE),
            average_price=total_amount / item_count if item_count else 0,
        )

    @staticmethod
    def _find(items: List[CartLineItem], item_id: ItemId, item_type: str) -> Optional[CartLineItem]:
        key = (str(item_id), item_type)
        for item in items:
            if item.key == key:
                return item
        return None

    def _persist(self, items: List[CartLineItem]) -> None:
        if self.storage is None:
            raise StorageUnavailableError("No cart storage available")
        payload = json.dumps(self.mapper.many_to_records(items))
        self.storage.set(self.storage_key, payload)

    def _now(self) -> str:
        return self.clock().isoformat()

    def _failure(self, message: str, exc: Exception) -> CartResult:
        if isinstance(exc, StorageUnavailableError):
            self.logger.warning(message, reason="storage unavailable", error=str(exc))
            return CartResult(False, message, code=STORAGE_UNAVAILABLE)
        self.logger.exception(message, error=str(exc))
        return CartResult(False, message, code=STORAGE_WRITE_FAILED)
