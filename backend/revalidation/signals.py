from __future__ import annotations

from django.dispatch import Signal

# Sent by the CMS integration layer for every content lifecycle event.
# Args: event (revalidation.types.ChangeEvent)
content_changed = Signal()
