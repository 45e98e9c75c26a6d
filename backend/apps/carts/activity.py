from typing import Any, Dict, Optional

from apps.common import get_logger

from .dtos import PRODUCT

CART_ADD_ITEM = "CART_ADD_ITEM"
CART_UPDATE_ITEM = "CART_UPDATE_ITEM"
CART_REMOVE_ITEM = "CART_REMOVE_ITEM"
CART_CLEAR = "CART_CLEAR"
CART_MERGE = "CART_MERGE"

DEFAULT_ACTOR = "Student"

activity_logger = get_logger("apps.carts.activity").bind(component="carts", layer="activity")


def _item_label(details: Dict[str, Any]) -> str:
    item_type = "product" if details.get("itemType") == PRODUCT else "course"
    title = details.get("title")
    item_id = details.get("itemId")
    if title:
        return f'"{title}" {item_type}'
    if item_id is not None:
        return f"{item_type} ID {item_id}"
    return f"a {item_type}"


def build_cart_message(event: str, details: Optional[Dict[str, Any]] = None, actor: Optional[str] = None) -> str:
    details = details or {}
    name = actor.strip() if actor and actor.strip() else DEFAULT_ACTOR

    if event == CART_ADD_ITEM:
        return f"Cart update • {name} added {_item_label(details)} to the cart."
    if event == CART_UPDATE_ITEM:
        old = details.get("oldQuantity", "-")
        new = details.get("newQuantity", "-")
        return f"Cart update • {name} adjusted {_item_label(details)} from {old} to {new}."
    if event == CART_REMOVE_ITEM:
        return f"Cart update • {name} removed {_item_label(details)} from the cart."
    if event == CART_CLEAR:
        cleared = details.get("itemsCleared", 0)
        return f"Cart update • {name} cleared the cart ({cleared} items removed)."
    if event == CART_MERGE:
        merged = details.get("mergedItems", 0)
        updated = details.get("updatedItems", 0)
        return f"Cart update • {name} merged their cart ({merged} added, {updated} updated)."
    return f"Cart update • {name} performed action {event.replace('_', ' ').lower()}."


def record_cart_activity(event: str, details: Optional[Dict[str, Any]] = None, actor: Optional[str] = None) -> str:
    message = build_cart_message(event, details, actor)
    activity_logger.info(message, event=event)
    return message
