from __future__ import annotations

import logging

from django.core.signals import request_started
from django.dispatch import receiver

from config.domain_exceptions import ConfigurationError
from revalidation.engine import current_engine, get_engine
from revalidation.signals import content_changed
from revalidation.types import ChangeEvent

logger = logging.getLogger(__name__)


@receiver(content_changed)
def route_content_change(sender, *, event: ChangeEvent, **kwargs) -> None:
    """Hand a CMS lifecycle event to the engine's router."""
    try:
        engine = get_engine()
    except ConfigurationError as e:
        logger.warning("Revalidation disabled: %s", e)
        return

    engine.router.handle(event)


@receiver(request_started)
def start_request_scope(sender, **kwargs) -> None:
    """Each HTTP request is a new trigger cycle for same-request dedup."""
    engine = current_engine()
    if engine is not None:
        engine.deduplicator.reset_processed()
