from drf_spectacular.utils import inline_serializer
from rest_framework import serializers


class ErrorDetailSerializer(serializers.Serializer):
    code = serializers.CharField()
    message = serializers.CharField()
    status = serializers.IntegerField()
    details = serializers.JSONField(required=False)
    hint = serializers.CharField(required=False, allow_blank=True)


class ErrorResponseSerializer(serializers.Serializer):
    success = serializers.BooleanField(default=False)
    message = serializers.CharField()
    data = serializers.JSONField(allow_null=True)
    error = ErrorDetailSerializer()


def envelope(
    data_serializer_class: type[serializers.Serializer],
) -> type[serializers.Serializer]:
    """Create an inline serializer describing ``{success, message, data}`` around the given payload."""
    name = getattr(data_serializer_class, "__name__", "Payload")
    return inline_serializer(
        name=f"Envelope{name}",
        fields={
            "success": serializers.BooleanField(),
            "message": serializers.CharField(),
            "data": data_serializer_class(),
        },
    )
