from typing import Any, Dict, Optional

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework.permissions import AllowAny
from rest_framework.views import APIView

from apps.api.exceptions import ApplicationError
from apps.api.schemas import ErrorResponseSerializer, envelope
from apps.api.utils import envelope_response
from apps.common import get_logger
from .container import build_request_cart_store
from .dtos import CartResult
from .mappers import merge_stats_to_payload, summary_to_payload
from .serializers import (
    CartCountSerializer,
    CartItemAddSerializer,
    CartMergeSerializer,
    CartQuantitySerializer,
    CartReadSerializer,
    CartSummarySerializer,
)
from .services import (
    ITEM_NOT_FOUND,
    STORAGE_UNAVAILABLE,
    STORAGE_WRITE_FAILED,
    VALIDATION_ERROR,
    CartStore,
    cart_count,
    cart_total,
)

logger = get_logger(__name__).bind(component="carts", layer="view")

FAILURE_HINTS = {
    STORAGE_UNAVAILABLE: "The cart is kept in the session; make sure cookies are enabled.",
    STORAGE_WRITE_FAILED: "The cart could not be saved. Remove some items and try again.",
}

ERROR_RESPONSES = {
    400: OpenApiResponse(response=ErrorResponseSerializer),
    503: OpenApiResponse(response=ErrorResponseSerializer),
}


class CartStoreView(APIView):
    """Base view: no authentication, the cart lives in the caller's session."""

    authentication_classes: list = []
    permission_classes = [AllowAny]
    log = logger

    def get_store(self, request) -> CartStore:
        return build_request_cart_store(request)

    @staticmethod
    def cart_payload(store: CartStore) -> Dict[str, Any]:
        items = store.read_all()
        return {
            "items": store.mapper.many_to_records(items),
            "count": cart_count(items),
            "totalAmount": cart_total(items),
        }

    def result_response(
        self,
        store: CartStore,
        result: CartResult,
        extra: Optional[Dict[str, Any]] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        """Envelope with the refreshed cart, or raise ``ApplicationError`` for a failed result."""
        if not result.success:
            self.log.info("Cart operation failed", code=result.code, message=result.message)
            code = result.code or VALIDATION_ERROR
            raise ApplicationError(
                code, result.message, details=details, hint=FAILURE_HINTS.get(code)
            )
        data = self.cart_payload(store)
        if extra:
            data.update(extra)
        return envelope_response(result.message, data)


class CartView(CartStoreView):
    log = logger.bind(view="CartView")

    @extend_schema(summary="Get cart", responses={200: envelope(CartReadSerializer)})
    def get(self, request):
        store = self.get_store(request)
        data = self.cart_payload(store)
        message = "Cart retrieved successfully" if data["items"] else "Cart is empty"
        return envelope_response(message, data)

    @extend_schema(
        summary="Clear cart",
        responses={200: envelope(CartReadSerializer), 503: ERROR_RESPONSES[503]},
    )
    def delete(self, request):
        store = self.get_store(request)
        return self.result_response(store, store.clear())


class CartItemListView(CartStoreView):
    log = logger.bind(view="CartItemListView")

    @extend_schema(
        summary="Add item to cart",
        description=(
            "Adds a product or course. Adding an item already in the cart increases its "
            "quantity; the title and price recorded on the first add are kept."
        ),
        request=CartItemAddSerializer,
        responses={200: envelope(CartReadSerializer), **ERROR_RESPONSES},
    )
    def post(self, request):
        serializer = CartItemAddSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        store = self.get_store(request)
        result = store.add(dict(serializer.validated_data))
        self.log.debug("Add item handled", success=result.success)
        return self.result_response(store, result)


class CartItemDetailView(CartStoreView):
    log = logger.bind(view="CartItemDetailView")

    @extend_schema(
        summary="Update item quantity",
        description="Overwrites the quantity. Zero or less removes the item.",
        request=CartQuantitySerializer,
        responses={
            200: envelope(CartReadSerializer),
            404: OpenApiResponse(response=ErrorResponseSerializer),
            **ERROR_RESPONSES,
        },
    )
    def patch(self, request, item_type: str, item_id: str):
        serializer = CartQuantitySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        store = self.get_store(request)
        result = store.update_quantity(
            item_id, serializer.validated_data["quantity"], item_type
        )
        details = None
        if result.code == ITEM_NOT_FOUND:
            details = {"itemId": item_id, "type": item_type}
        return self.result_response(store, result, details=details)

    @extend_schema(
        summary="Remove item from cart",
        responses={200: envelope(CartReadSerializer), 503: ERROR_RESPONSES[503]},
    )
    def delete(self, request, item_type: str, item_id: str):
        store = self.get_store(request)
        return self.result_response(store, store.remove(item_id, item_type))


class CartCountView(CartStoreView):
    @extend_schema(summary="Get cart count", responses={200: envelope(CartCountSerializer)})
    def get(self, request):
        store = self.get_store(request)
        return envelope_response(
            "Cart count retrieved successfully", {"count": store.count()}
        )


class CartSummaryView(CartStoreView):
    @extend_schema(summary="Get cart summary", responses={200: envelope(CartSummarySerializer)})
    def get(self, request):
        store = self.get_store(request)
        summary = store.summary()
        message = (
            "Cart summary retrieved successfully" if summary.unique_items else "Cart is empty"
        )
        return envelope_response(message, summary_to_payload(summary))


class CartMergeView(CartStoreView):
    log = logger.bind(view="CartMergeView")

    @extend_schema(
        summary="Merge items into cart",
        description=(
            "Folds a list of line items, for example a cart kept by a guest client, into "
            "the session cart. Invalid entries are skipped and counted."
        ),
        request=CartMergeSerializer,
        responses={200: envelope(CartReadSerializer), **ERROR_RESPONSES},
    )
    def post(self, request):
        serializer = CartMergeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        store = self.get_store(request)
        result = store.merge(serializer.validated_data.get("localCartItems") or [])
        extra = None
        if result.success and result.data is not None:
            extra = {"mergeStats": merge_stats_to_payload(result.data)}
            self.log.info(
                "Cart merged via API",
                merged=result.data.merged_items,
                updated=result.data.updated_items,
                skipped=result.data.skipped_items,
            )
        return self.result_response(store, result, extra)


__all__ = [
    "CartView",
    "CartItemListView",
    "CartItemDetailView",
    "CartCountView",
    "CartSummaryView",
    "CartMergeView",
]
