"""Low-level webhook delivery.

Agents may register a webhook URL; every event they are allowed to see is
POSTed to it as JSON. Delivery is best effort: failures are logged and the
event is dropped, so a slow or dead agent endpoint never stalls a game.
"""

import logging
from typing import Any

import httpx

from statecraft.config import settings

logger = logging.getLogger(__name__)


async def send_webhook(
    url: str, body: dict[str, Any], client: httpx.AsyncClient | None = None
) -> bool:
    """POST ``body`` to ``url``. Returns True on a 2xx response."""
    try:
        if client is None:
            async with httpx.AsyncClient(timeout=settings.webhook_timeout_seconds) as own_client:
                response = await own_client.post(url, json=body)
        else:
            response = await client.post(url, json=body)
        response.raise_for_status()
    except httpx.HTTPError as exc:
        logger.warning("Webhook delivery to %s failed: %s", url, exc)
        return False

    logger.debug("Webhook delivered to %s: %s", url, body.get("event_type"))
    return True
