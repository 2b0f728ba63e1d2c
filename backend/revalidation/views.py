"""
API views for revalidation logs, endpoint settings and manual revalidation.
"""

from __future__ import annotations

import logging

from rest_framework import status
from rest_framework.permissions import IsAdminUser, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from config.domain_exceptions import ServiceUnavailableError

from .config import load_endpoint_config, save_endpoint_config
from .engine import get_engine
from .serializers import (
    EndpointSettingsSerializer,
    ManualRevalidationResultSerializer,
    ManualRevalidationSerializer,
)
from .types import EntityKind

logger = logging.getLogger(__name__)


def _settings_payload(config) -> dict:
    return {
        "endpoint_url": config.endpoint_url,
        "has_token": bool(config.auth_token),
        "configured": config.is_configured,
    }


class RevalidationLogsView(APIView):
    """Admin-only endpoint for reading / clearing the revalidation audit log."""

    permission_classes = [IsAdminUser]

    def get(self, request):
        """Return logged attempts, newest first."""
        entries = get_engine().audit_log.list()

        limit_raw = request.query_params.get("limit")
        if limit_raw is not None:
            try:
                entries = entries[: max(1, int(limit_raw))]
            except (ValueError, TypeError):
                pass

        status_filter = request.query_params.get("status")
        if status_filter:
            entries = [e for e in entries if isinstance(e, dict) and e.get("status") == status_filter]

        return Response(entries, status=status.HTTP_200_OK)

    def delete(self, request):
        """Clear all logged attempts."""
        if not get_engine().audit_log.clear():
            raise ServiceUnavailableError("Failed to clear revalidation logs.")
        return Response(status=status.HTTP_204_NO_CONTENT)


class EndpointSettingsView(APIView):
    """Read or update the revalidation endpoint and token."""

    permission_classes = [IsAdminUser]

    def get(self, request):
        return Response(_settings_payload(load_endpoint_config()))

    def put(self, request):
        """Update settings; omitted or masked tokens keep the stored one."""
        serializer = EndpointSettingsSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        config = save_endpoint_config(
            endpoint_url=serializer.validated_data.get("endpoint_url"),
            auth_token=serializer.validated_data.get("auth_token"),
        )
        logger.info("Revalidation endpoint settings updated by %s", request.user)
        return Response(_settings_payload(config))

    patch = put


class ManualRevalidationView(APIView):
    """Revalidate one entity now, bypassing the cooldown window."""

    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = ManualRevalidationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        kind = EntityKind(serializer.validated_data["entity_kind"])
        entity_id = serializer.validated_data["entity_id"]

        engine = get_engine()
        if kind.is_term:
            result = engine.revalidate_term(kind, entity_id)
        else:
            result = engine.revalidate_content(entity_id)

        logger.info(
            "Manual revalidation of %s %s by %s: %s",
            kind.value,
            entity_id,
            request.user,
            result.message,
        )
        return Response(ManualRevalidationResultSerializer(result.as_dict()).data)


class RevalidationStatusView(APIView):
    """Engine configuration and counters."""

    permission_classes = [IsAdminUser]

    def get(self, request):
        return Response(get_engine().status())
