from rest_framework import serializers

from .dtos import ITEM_TYPES, PRODUCT


class CartLineItemSerializer(serializers.Serializer):
    itemId = serializers.CharField(source="item_id")
    type = serializers.ChoiceField(choices=ITEM_TYPES)
    title = serializers.CharField()
    price = serializers.FloatField()
    quantity = serializers.IntegerField()
    addedAt = serializers.CharField(source="added_at")


class CartReadSerializer(serializers.Serializer):
    items = CartLineItemSerializer(many=True)
    count = serializers.IntegerField()
    totalAmount = serializers.FloatField()


class CartItemAddSerializer(serializers.Serializer):
    itemId = serializers.CharField(max_length=64)
    type = serializers.ChoiceField(choices=ITEM_TYPES, default=PRODUCT)
    title = serializers.CharField(max_length=255)
    price = serializers.FloatField(min_value=0)
    # 0 or omitted falls back to a single unit
    quantity = serializers.IntegerField(min_value=0, required=False, default=1)


class CartQuantitySerializer(serializers.Serializer):
    quantity = serializers.IntegerField()


class CartMergeSerializer(serializers.Serializer):
    # Entries are validated one by one by the store; invalid ones are skipped
    localCartItems = serializers.ListField(
        child=serializers.DictField(), required=False, allow_empty=True
    )


class CartCountSerializer(serializers.Serializer):
    count = serializers.IntegerField()


class CartSummarySerializer(serializers.Serializer):
    itemCount = serializers.IntegerField()
    totalAmount = serializers.FloatField()
    uniqueItems = serializers.IntegerField()
    productCount = serializers.IntegerField()
    courseCount = serializers.IntegerField()
    averagePrice = serializers.FloatField()
