"""
Serializers for the revalidation API.
"""

import httpx
from rest_framework import serializers

from .types import EntityKind


class EndpointSettingsSerializer(serializers.Serializer):
    """Endpoint settings; the token is write-only and reported as `has_token`."""

    endpoint_url = serializers.CharField(required=False, allow_blank=True, max_length=2000)
    auth_token = serializers.CharField(
        required=False,
        allow_blank=True,
        write_only=True,
        trim_whitespace=True,
    )
    has_token = serializers.BooleanField(read_only=True)
    configured = serializers.BooleanField(read_only=True)

    def validate_endpoint_url(self, value):
        """Endpoint must be an absolute http(s) URL when set."""
        value = value.strip()
        if not value:
            return value
        if not value.startswith(("http://", "https://")):
            raise serializers.ValidationError("URL must start with http:// or https://")
        try:
            url = httpx.URL(value)
        except httpx.InvalidURL as e:
            raise serializers.ValidationError(f"Invalid URL: {e}") from e
        if not url.host:
            raise serializers.ValidationError("URL must include a host.")
        return value


class ManualRevalidationSerializer(serializers.Serializer):
    """Request body for operator-initiated revalidation."""

    entity_kind = serializers.ChoiceField(
        choices=[kind.value for kind in EntityKind],
        default=EntityKind.CONTENT.value,
    )
    entity_id = serializers.IntegerField(min_value=1)


class ManualRevalidationResultSerializer(serializers.Serializer):
    """Result of an operator-initiated revalidation."""

    success = serializers.BooleanField()
    message = serializers.CharField()
    paths = serializers.ListField(child=serializers.CharField())
    attempts = serializers.ListField(child=serializers.JSONField())
