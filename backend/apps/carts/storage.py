"""Key-value backends the cart can be persisted to.

Every adapter stores plain strings under string keys and raises a
``StorageError`` subclass when it cannot honour a call.
"""
from __future__ import annotations

from typing import Dict, Optional

from django.core import signing
from django.core.cache import caches

from apps.common import get_logger

logger = get_logger(__name__).bind(component="carts", layer="storage")

# Module path of Django's signed-cookie session engine, also the salt it signs with
SIGNED_COOKIES_ENGINE = "django.contrib.sessions.backends.signed_cookies"


class StorageError(Exception):
    """Base class for failures raised by cart storage adapters."""


class StorageUnavailableError(StorageError):
    """Raised when the backing store cannot be reached."""


class StorageQuotaExceededError(StorageError):
    """Raised when a value is larger than the adapter accepts."""

    def __init__(self, key: str, size: int, max_bytes: int):
        super().__init__(
            f"Value for '{key}' is {size} bytes, exceeding the {max_bytes} byte quota"
        )
        self.key = key
        self.size = size
        self.max_bytes = max_bytes


class BaseStorage:
    def __init__(self, max_bytes: Optional[int] = None):
        self.max_bytes = max_bytes or None

    def _check_quota(self, key: str, value: str) -> None:
        if self.max_bytes is None:
            return
        size = len(value.encode("utf-8"))
        if size > self.max_bytes:
            raise StorageQuotaExceededError(key, size, self.max_bytes)


class InMemoryStorage(BaseStorage):
    def __init__(self, initial: Optional[Dict[str, str]] = None, max_bytes: Optional[int] = None):
        super().__init__(max_bytes)
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._check_quota(key, value)
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return key in self._data


class SessionStorage(BaseStorage):
    """
    Stores values in a Django session, i.e. scoped to one browser.

    With the signed-cookie session engine the whole session travels in one
    cookie. ``cookie_max_bytes`` bounds the size of that cookie; a write that
    would exceed it is rolled back and raises ``StorageQuotaExceededError``.
    Browsers drop cookies over about 4 KB without telling the server.
    """

    def __init__(
        self,
        session,
        max_bytes: Optional[int] = None,
        cookie_max_bytes: Optional[int] = None,
        cookie_name: str = "sessionid",
    ):
        super().__init__(max_bytes)
        self.session = session
        self.cookie_max_bytes = cookie_max_bytes or None
        self.cookie_name = cookie_name

    def get(self, key: str) -> Optional[str]:
        value = self.session.get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        self._check_quota(key, value)
        previous = self.session.get(key)
        self.session[key] = value
        try:
            self._check_cookie_size(key)
        except StorageQuotaExceededError:
            if previous is None:
                del self.session[key]
            else:
                self.session[key] = previous
            raise
        self.session.modified = True

    def remove(self, key: str) -> None:
        if key in self.session:
            del self.session[key]
        self.session.modified = True

    def cookie_size(self) -> int:
        """Bytes of ``name=value`` the signed-cookie engine would send for the current session."""
        value = signing.dumps(
            dict(self.session.items()),
            compress=True,
            salt=SIGNED_COOKIES_ENGINE,
            serializer=getattr(self.session, "serializer", signing.JSONSerializer),
        )
        return len(self.cookie_name) + 1 + len(value)

    def _check_cookie_size(self, key: str) -> None:
        if self.cookie_max_bytes is None:
            return
        size = self.cookie_size()
        if size > self.cookie_max_bytes:
            logger.warning(
                "Session cookie would exceed browser limit",
                key=key,
                size=size,
                max_bytes=self.cookie_max_bytes,
            )
            raise StorageQuotaExceededError(key, size, self.cookie_max_bytes)


class CacheStorage(BaseStorage):
    """Stores values in a Django cache under ``<namespace>:<key>``."""

    def __init__(
        self,
        namespace: str,
        cache=None,
        timeout: Optional[int] = None,
        max_bytes: Optional[int] = None,
    ):
        super().__init__(max_bytes)
        if not namespace:
            raise StorageUnavailableError("Cache storage requires a namespace")
        self.namespace = namespace
        self.cache = cache if cache is not None else caches["default"]
        self.timeout = timeout

    def _key(self, key: str) -> str:
        return f"{self.namespace}:{key}"

    def get(self, key: str) -> Optional[str]:
        try:
            value = self.cache.get(self._key(key))
        except Exception as exc:
            logger.warning("Cache read failed", key=key, error=str(exc))
            raise StorageUnavailableError(str(exc)) from exc
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        self._check_quota(key, value)
        try:
            if self.timeout is None:
                self.cache.set(self._key(key), value)
            else:
                self.cache.set(self._key(key), value, timeout=self.timeout)
        except Exception as exc:
            raise StorageUnavailableError(str(exc)) from exc

    def remove(self, key: str) -> None:
        try:
            self.cache.delete(self._key(key))
        except Exception as exc:
            raise StorageUnavailableError(str(exc)) from exc
