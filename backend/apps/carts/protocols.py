from __future__ import annotations

from typing import Any, Iterable, List, Mapping, Optional, Protocol, TYPE_CHECKING

if TYPE_CHECKING:
    from apps.carts.dtos import CartLineItem


class CartStorageProtocol(Protocol):
    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def remove(self, key: str) -> None:
        ...


class LineItemMapperProtocol(Protocol):
    def to_record(self, item: "CartLineItem") -> dict:
        ...

    def from_record(self, record: Mapping[str, Any]) -> Optional["CartLineItem"]:
        ...

    def many_to_records(self, items: Iterable["CartLineItem"]) -> List[dict]:
        ...

    def many_from_records(self, records: Iterable[Any]) -> List["CartLineItem"]:
        ...
