from dataclasses import dataclass
from typing import Any, Optional, Union

PRODUCT = "product"
COURSE = "course"
ITEM_TYPES = (PRODUCT, COURSE)

ItemId = Union[str, int]
Number = Union[int, float]


@dataclass
class CartLineItem:
    item_id: ItemId
    title: str
    price: Number
    quantity: int = 1
    type: str = PRODUCT
    added_at: str = ""

    @property
    def key(self):
        return (str(self.item_id), self.type)

    @property
    def line_total(self) -> Number:
        return self.price * self.quantity


@dataclass
class CartResult:
    success: bool
    message: str
    code: Optional[str] = None
    data: Optional[Any] = None


@dataclass
class MergeStats:
    merged_items: int = 0
    updated_items: int = 0
    skipped_items: int = 0
    total_items: int = 0


@dataclass
class CartSummary:
    item_count: int = 0
    total_amount: Number = 0
    unique_items: int = 0
    product_count: int = 0
    course_count: int = 0
    average_price: Number = 0
