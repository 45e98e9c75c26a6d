import hashlib
import unittest
from unittest.mock import Mock

from django.contrib.sessions.backends.signed_cookies import SessionStore
from django.core.cache.backends.locmem import LocMemCache

from apps.carts.storage import (
    CacheStorage,
    InMemoryStorage,
    SessionStorage,
    StorageQuotaExceededError,
    StorageUnavailableError,
)


class InMemoryStorageTests(unittest.TestCase):
    def test_get_set_remove(self):
        storage = InMemoryStorage()
        self.assertIsNone(storage.get("cartItems"))
        storage.set("cartItems", "[]")
        self.assertEqual(storage.get("cartItems"), "[]")
        storage.remove("cartItems")
        self.assertIsNone(storage.get("cartItems"))
        # removing twice is harmless
        storage.remove("cartItems")

    def test_quota(self):
        storage = InMemoryStorage(max_bytes=4)
        storage.set("k", "1234")
        with self.assertRaises(StorageQuotaExceededError) as ctx:
            storage.set("k", "12345")
        self.assertEqual(ctx.exception.size, 5)
        self.assertEqual(storage.get("k"), "1234")

    def test_quota_counts_encoded_bytes(self):
        storage = InMemoryStorage(max_bytes=3)
        with self.assertRaises(StorageQuotaExceededError):
            storage.set("k", "éé")


class SessionStorageTests(unittest.TestCase):
    def setUp(self):
        self.session = SessionStore()
        self.storage = SessionStorage(self.session)

    def test_set_marks_session_modified(self):
        self.storage.set("cartItems", "[1]")
        self.assertTrue(self.session.modified)
        self.assertEqual(self.session["cartItems"], "[1]")
        self.assertEqual(self.storage.get("cartItems"), "[1]")

    def test_remove(self):
        self.storage.set("cartItems", "[1]")
        self.storage.remove("cartItems")
        self.assertNotIn("cartItems", self.session)
        self.assertIsNone(self.storage.get("cartItems"))

    def test_non_string_values_are_ignored(self):
        self.session["cartItems"] = [1, 2]
        self.assertIsNone(self.storage.get("cartItems"))

    def test_quota(self):
        storage = SessionStorage(self.session, max_bytes=2)
        with self.assertRaises(StorageQuotaExceededError):
            storage.set("cartItems", "[1, 2]")
        self.assertNotIn("cartItems", self.session)

    def test_cookie_limit_rejects_write_and_restores_previous_value(self):
        storage = SessionStorage(self.session, cookie_max_bytes=300)
        storage.set("cartItems", "[1]")
        self.assertLessEqual(storage.cookie_size(), 300)
        noisy = "".join(hashlib.sha256(str(i).encode()).hexdigest() for i in range(20))
        with self.assertRaises(StorageQuotaExceededError) as ctx:
            storage.set("cartItems", noisy)
        self.assertEqual(ctx.exception.max_bytes, 300)
        self.assertEqual(self.session["cartItems"], "[1]")

    def test_cookie_limit_on_first_write_leaves_key_absent(self):
        storage = SessionStorage(self.session, cookie_max_bytes=40)
        with self.assertRaises(StorageQuotaExceededError):
            storage.set("cartItems", "[1, 2, 3]")
        self.assertNotIn("cartItems", self.session)

    def test_cookie_size_counts_cookie_name(self):
        short = SessionStorage(self.session, cookie_name="s")
        long = SessionStorage(self.session, cookie_name="a-much-longer-cookie-name")
        self.assertEqual(long.cookie_size() - short.cookie_size(), 24)


class CacheStorageTests(unittest.TestCase):
    def setUp(self):
        self.cache = LocMemCache("cart-storage-tests", {})
        self.cache.clear()

    def test_keys_are_namespaced(self):
        first = CacheStorage("cart:a", cache=self.cache)
        second = CacheStorage("cart:b", cache=self.cache)
        first.set("cartItems", "[1]")
        self.assertEqual(self.cache.get("cart:a:cartItems"), "[1]")
        self.assertEqual(first.get("cartItems"), "[1]")
        self.assertIsNone(second.get("cartItems"))
        first.remove("cartItems")
        self.assertIsNone(first.get("cartItems"))

    def test_timeout_is_passed_to_cache(self):
        cache = Mock()
        CacheStorage("ns", cache=cache, timeout=30).set("cartItems", "[]")
        cache.set.assert_called_once_with("ns:cartItems", "[]", timeout=30)

    def test_requires_namespace(self):
        with self.assertRaises(StorageUnavailableError):
            CacheStorage("", cache=self.cache)

    def test_backend_errors_become_unavailable(self):
        cache = Mock()
        cache.get.side_effect = ConnectionError("redis down")
        cache.set.side_effect = ConnectionError("redis down")
        cache.delete.side_effect = ConnectionError("redis down")
        storage = CacheStorage("ns", cache=cache)
        with self.assertRaises(StorageUnavailableError):
            storage.get("cartItems")
        with self.assertRaises(StorageUnavailableError):
            storage.set("cartItems", "[]")
        with self.assertRaises(StorageUnavailableError):
            storage.remove("cartItems")
