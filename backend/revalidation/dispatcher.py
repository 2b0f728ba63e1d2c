"""
Outbound revalidation request.

Sends a GET to the configured endpoint for one path and classifies the outcome.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import httpx
from django.utils import timezone

from . import PRODUCT_NAME, __version__
from .types import AttemptStatus, DispatchAttempt

if TYPE_CHECKING:
    from .config import EndpointConfig

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 30.0
REDACTED = "***"
BODY_PREVIEW_CHARS = 500


def user_agent() -> str:
    return f"{PRODUCT_NAME}/{__version__}"


def _redact_token(url: str) -> str:
    """Replace the token query value so stored logs never carry the secret."""
    parts = urlsplit(url)
    query = [(k, REDACTED if k == "token" else v) for k, v in parse_qsl(parts.query, keep_blank_values=True)]
    return urlunsplit(parts._replace(query=urlencode(query, safe="/*")))


class RevalidationDispatcher:
    """
    Sends revalidation requests.

    No retries: a failed or non-2xx request is recorded and returned, the
    caller never re-enqueues it.
    """

    def __init__(self, *, timeout: float = REQUEST_TIMEOUT, verify: bool = True):
        self._timeout = timeout
        self._verify = verify

    def build_url(self, path: str, config: EndpointConfig) -> str:
        """Return the full request URL with `token` and `path` query parameters."""
        request = httpx.Request(
            "GET",
            config.endpoint_url,
            params={"token": config.auth_token, "path": path},
        )
        return str(request.url)

    def dispatch(self, path: str, config: EndpointConfig, trigger: str = "auto") -> DispatchAttempt:
        """
        Send one revalidation request.

        Args:
            path: Normalized path to revalidate
            config: Endpoint URL and auth token (both non-empty)
            trigger: "auto" for lifecycle events, "manual" for operator actions

        Returns:
            DispatchAttempt describing the request and its outcome
        """
        headers = {"User-Agent": user_agent()}
        request_info = {
            "url": config.endpoint_url,
            "method": "GET",
            "headers": dict(headers),
            "timeout": self._timeout,
        }
        timestamp = timezone.now().isoformat()

        try:
            request_info["url"] = _redact_token(self.build_url(path, config))
            with httpx.Client(timeout=self._timeout, verify=self._verify) as client:
                response = client.get(
                    config.endpoint_url,
                    params={"token": config.auth_token, "path": path},
                    headers=headers,
                )
        except httpx.TimeoutException as e:
            logger.warning("Revalidation request for %s timed out: %s", path, e)
            return self._transport_error(timestamp, path, request_info, trigger, str(e) or "Request timed out", "TIMEOUT")
        except httpx.RequestError as e:
            logger.warning("Revalidation request for %s failed: %s", path, e)
            return self._transport_error(timestamp, path, request_info, trigger, f"Network error: {e}", "NETWORK_ERROR")
        except Exception as e:
            logger.exception("Unexpected error sending revalidation request for %s", path)
            return self._transport_error(timestamp, path, request_info, trigger, f"Unexpected error: {e}", "REQUEST_ERROR")

        response_info = {
            "code": response.status_code,
            "message": response.reason_phrase,
            "body": response.text[:BODY_PREVIEW_CHARS],
            "headers": dict(response.headers),
        }

        # Accept any 2xx status as success
        if 200 <= response.status_code < 300:
            logger.info("Revalidated path %s (%s)", path, response.status_code)
            status = AttemptStatus.SUCCESS
        else:
            logger.warning("Revalidation endpoint returned %s for %s", response.status_code, path)
            status = AttemptStatus.ERROR

        return DispatchAttempt(
            timestamp=timestamp,
            path=path,
            status=status,
            status_code=response.status_code,
            request=request_info,
            response=response_info,
            trigger=trigger,
        )

    @staticmethod
    def _transport_error(
        timestamp: str,
        path: str,
        request_info: dict,
        trigger: str,
        message: str,
        code: str,
    ) -> DispatchAttempt:
        return DispatchAttempt(
            timestamp=timestamp,
            path=path,
            status=AttemptStatus.ERROR,
            status_code=None,
            request=request_info,
            response={"error": True, "message": message, "code": code},
            trigger=trigger,
        )
