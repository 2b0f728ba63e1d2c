"""Endpoint configuration store and engine options normalization."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from .crypto import EncryptionNotConfigured, decrypt_secret, protect_secret
from .dedup import DEFAULT_COOLDOWN_SECONDS
from .dispatcher import REQUEST_TIMEOUT

logger = logging.getLogger(__name__)

ENDPOINT_KEY = "revalidate_endpoint"
TOKEN_KEY = "revalidate_token"

# Characters used by admin forms to display a stored secret
MASK_CHARACTERS = frozenset("•*")

DEFAULT_CONTENT_KINDS = ("post",)
DEFAULT_PUBLISHED_STATUS = "publish"


@dataclass(frozen=True)
class EndpointConfig:
    """Where and how to send revalidation requests. Empty values mean disabled."""

    endpoint_url: str = ""
    auth_token: str = ""

    @property
    def is_configured(self) -> bool:
        return bool(self.endpoint_url) and bool(self.auth_token)


@dataclass(frozen=True)
class RevalidationOptions:
    """Engine options loaded from the `REVALIDATION` Django setting."""

    content_index: str = ""
    site_url: str = ""
    cooldown_seconds: int = DEFAULT_COOLDOWN_SECONDS
    content_kinds: tuple[str, ...] = DEFAULT_CONTENT_KINDS
    published_status: str = DEFAULT_PUBLISHED_STATUS
    request_timeout: float = REQUEST_TIMEOUT


def is_masked_value(value: object) -> bool:
    """True for display placeholders such as `••••••••`."""
    return isinstance(value, str) and bool(value) and set(value) <= MASK_CHARACTERS


def normalize_revalidation_options(raw: Any) -> RevalidationOptions:
    """
    Normalize the raw settings dict into typed options.

    Args:
        raw: Raw settings value (dict or None)

    Returns:
        RevalidationOptions with defaults applied
    """
    if not isinstance(raw, dict):
        return RevalidationOptions()

    content_index = raw.get("CONTENT_INDEX") or ""
    if not isinstance(content_index, str):
        content_index = ""

    site_url = raw.get("SITE_URL") or ""
    if not isinstance(site_url, str):
        site_url = ""

    cooldown_seconds = raw.get("COOLDOWN_SECONDS", DEFAULT_COOLDOWN_SECONDS)
    if not isinstance(cooldown_seconds, int) or cooldown_seconds < 0:
        cooldown_seconds = DEFAULT_COOLDOWN_SECONDS
    elif cooldown_seconds > 3600:
        cooldown_seconds = 3600

    content_kinds = raw.get("DISPATCHABLE_CONTENT_KINDS", DEFAULT_CONTENT_KINDS)
    if isinstance(content_kinds, str):
        content_kinds = (content_kinds,)
    if not isinstance(content_kinds, (list, tuple)):
        content_kinds = DEFAULT_CONTENT_KINDS
    content_kinds = tuple(k for k in content_kinds if isinstance(k, str) and k) or DEFAULT_CONTENT_KINDS

    published_status = raw.get("PUBLISHED_STATUS") or DEFAULT_PUBLISHED_STATUS
    if not isinstance(published_status, str):
        published_status = DEFAULT_PUBLISHED_STATUS

    request_timeout = raw.get("REQUEST_TIMEOUT", REQUEST_TIMEOUT)
    if not isinstance(request_timeout, (int, float)) or request_timeout <= 0:
        request_timeout = REQUEST_TIMEOUT

    return RevalidationOptions(
        content_index=content_index,
        site_url=site_url,
        cooldown_seconds=cooldown_seconds,
        content_kinds=content_kinds,
        published_status=published_status,
        request_timeout=float(request_timeout),
    )


def get_revalidation_options() -> RevalidationOptions:
    """Load engine options from Django settings."""
    from django.conf import settings

    return normalize_revalidation_options(getattr(settings, "REVALIDATION", None))


def _read_string(key: str) -> str:
    from .models import RevalidationSetting

    row = RevalidationSetting.objects.filter(key=key).first()
    if row is None or not isinstance(row.value, str):
        return ""
    return row.value


def _write_string(key: str, value: str) -> None:
    from .models import RevalidationSetting

    RevalidationSetting.objects.update_or_create(key=key, defaults={"value": value})


def load_endpoint_config() -> EndpointConfig:
    """
    Read the endpoint URL and decrypted token from the settings store.

    A token that cannot be decrypted counts as missing.
    """
    try:
        auth_token = decrypt_secret(_read_string(TOKEN_KEY))
    except EncryptionNotConfigured as e:
        logger.error("Cannot read revalidation token: %s", e)
        auth_token = ""
    return EndpointConfig(
        endpoint_url=_read_string(ENDPOINT_KEY).strip(),
        auth_token=auth_token.strip(),
    )


def save_endpoint_config(
    *,
    endpoint_url: str | None = None,
    auth_token: str | None = None,
) -> EndpointConfig:
    """
    Persist endpoint settings.

    `None` leaves a value untouched. A token made only of mask characters is
    the display placeholder of the stored secret and never overwrites it.
    An explicit empty string clears the value.
    """
    if endpoint_url is not None:
        _write_string(ENDPOINT_KEY, endpoint_url.strip())

    if auth_token is not None and not is_masked_value(auth_token):
        _write_string(TOKEN_KEY, protect_secret(auth_token.strip()))

    return load_endpoint_config()
