from django.urls import path, re_path

from .views import (
    CartCountView,
    CartItemDetailView,
    CartItemListView,
    CartMergeView,
    CartSummaryView,
    CartView,
)

urlpatterns = [
    path("", CartView.as_view(), name="api-cart"),
    path("items/", CartItemListView.as_view(), name="api-cart-items"),
    # Optional trailing slash on item detail
    re_path(
        r"^items/(?P<item_type>product|course)/(?P<item_id>[^/]+)/?$",
        CartItemDetailView.as_view(),
        name="api-cart-item-detail",
    ),
    path("count/", CartCountView.as_view(), name="api-cart-count"),
    path("summary/", CartSummaryView.as_view(), name="api-cart-summary"),
    path("merge/", CartMergeView.as_view(), name="api-cart-merge"),
]
