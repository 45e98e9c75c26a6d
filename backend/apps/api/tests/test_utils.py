import unittest
from rest_framework import status
from apps.api.utils import envelope_response, error_response


class ErrorResponseTests(unittest.TestCase):
    def test_default_status_mapping_and_details(self):
        resp = error_response("ITEM_NOT_FOUND", "Item not found in cart", {"itemId": "P1"})
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)
        self.assertFalse(resp.data["success"])
        self.assertEqual(resp.data["message"], "Item not found in cart")
        self.assertIsNone(resp.data["data"])
        self.assertEqual(resp.data["error"]["code"], "ITEM_NOT_FOUND")
        self.assertEqual(resp.data["error"]["status"], status.HTTP_404_NOT_FOUND)
        self.assertEqual(resp.data["error"]["details"], {"itemId": "P1"})

    def test_storage_codes_map_to_service_unavailable(self):
        for code in ("STORAGE_UNAVAILABLE", "storage_write_failed"):
            resp = error_response(code, "Failed to add item to cart")
            self.assertEqual(resp.status_code, status.HTTP_503_SERVICE_UNAVAILABLE)
            self.assertEqual(resp.data["error"]["code"], code.upper())

    def test_unknown_code_defaults_to_bad_request(self):
        resp = error_response("SOMETHING_ODD", "odd")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

    def test_custom_status_override_and_hint(self):
        resp = error_response(
            "UNKNOWN", "oops", http_status=status.HTTP_202_ACCEPTED, hint="Retry later"
        )
        self.assertEqual(resp.status_code, status.HTTP_202_ACCEPTED)
        self.assertEqual(resp.data["error"]["hint"], "Retry later")

    def test_rejects_blank_code_and_message(self):
        with self.assertRaises(ValueError):
            error_response(" ", "message")
        with self.assertRaises(ValueError):
            error_response("CODE", "")


class EnvelopeResponseTests(unittest.TestCase):
    def test_envelope_shape(self):
        resp = envelope_response("Cart is empty", {"items": []})
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(
            resp.data, {"success": True, "message": "Cart is empty", "data": {"items": []}}
        )
