"""Escalation webhook client for committee and executive approval queues"""

import asyncio
import logging
from typing import Any, Dict, Optional

import httpx

from underwriting_gateway.config import settings
from underwriting_gateway.infrastructure.observability.metrics import webhook_failure_counter, webhook_latency_histogram

IDEMPOTENCY_HEADER = "Idempotency-Key"


def is_retryable(error: httpx.HTTPError) -> bool:
    """Transport failures and 5xx responses may succeed on retry; 4xx never will"""
    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code >= 500
    return isinstance(error, httpx.RequestError)


class EscalationClient:
    """Notifies the approval queue when a transaction needs senior sign-off"""

    def __init__(self, webhook_url: str | None = None):
        self.webhook_url = webhook_url or settings.escalation_webhook_url
        self.max_retries = settings.webhook_max_retries
        self.backoff_base = settings.webhook_backoff_base

    async def send_escalation_event(self, payload: Dict[str, Any], idempotency_key: Optional[str] = None) -> None:
        """
        Deliver an escalation event, retrying with exponential backoff.

        Every attempt carries the same Idempotency-Key (the evaluation id by
        default) so the queue can drop duplicates of a retried delivery.
        Rejected events (4xx) are not retried.

        Raises:
            httpx.HTTPStatusError: On a 4xx, or a 5xx on the final attempt
            httpx.RequestError: On a transport failure on the final attempt
        """
        key = idempotency_key or payload.get("evaluation_id")
        headers = {IDEMPOTENCY_HEADER: str(key)} if key else {}

        async with httpx.AsyncClient(timeout=settings.http_timeout_seconds) as client:
            for attempt in range(1, self.max_retries + 1):
                try:
                    with webhook_latency_histogram.time():
                        response = await client.post(self.webhook_url, json=payload, headers=headers)
                        response.raise_for_status()
                    return

                except (httpx.HTTPStatusError, httpx.RequestError) as e:
                    webhook_failure_counter.inc()
                    if not is_retryable(e) or attempt >= self.max_retries:
                        logging.error(
                            f"Escalation delivery failed: {e}",
                            extra={"idempotency_key": key, "attempt": attempt, "step": "escalation"},
                        )
                        raise

                    await asyncio.sleep(self.backoff_base * (2 ** (attempt - 1)))
