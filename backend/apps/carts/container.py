from __future__ import annotations

from typing import Optional

from django.conf import settings

from apps.common import get_logger
from .mappers import LineItemMapper
from .protocols import CartStorageProtocol
from .services import DEFAULT_STORAGE_KEY, CartStore
from .storage import SIGNED_COOKIES_ENGINE, CacheStorage, SessionStorage

logger = get_logger(__name__).bind(component="carts", layer="container")


def build_cart_store(storage: Optional[CartStorageProtocol], **options) -> CartStore:
    storage_key = options.pop(
        "storage_key", getattr(settings, "CART_STORAGE_KEY", DEFAULT_STORAGE_KEY)
    )
    return CartStore(
        storage=storage,
        mapper=LineItemMapper(),
        storage_key=storage_key,
        **options,
    )


def build_request_storage(request) -> Optional[CartStorageProtocol]:
    """Pick the storage scope for a request; ``None`` when the request has no session."""
    session = getattr(request, "session", None)
    if session is None:
        logger.warning("Request has no session; cart storage unavailable")
        return None
    max_bytes = getattr(settings, "CART_MAX_BYTES", None)
    backend = getattr(settings, "CART_STORAGE_BACKEND", "session")
    if backend == "cache":
        if not session.session_key:
            session.save()
        return CacheStorage(
            namespace=f"cart:{session.session_key}",
            timeout=getattr(settings, "CART_CACHE_TIMEOUT", None),
            max_bytes=max_bytes,
        )
    cookie_max_bytes = None
    if getattr(settings, "SESSION_ENGINE", "") == SIGNED_COOKIES_ENGINE:
        cookie_max_bytes = getattr(settings, "CART_SESSION_COOKIE_MAX_BYTES", None)
    return SessionStorage(
        session,
        max_bytes=max_bytes,
        cookie_max_bytes=cookie_max_bytes,
        cookie_name=getattr(settings, "SESSION_COOKIE_NAME", "sessionid"),
    )


def build_request_cart_store(request) -> CartStore:
    return build_cart_store(build_request_storage(request))
