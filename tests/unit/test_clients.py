"""Unit tests for the vendor and escalation HTTP clients"""

from unittest.mock import AsyncMock, patch

import httpx
import pytest
from underwriting_gateway.domain.exceptions import VendorAPIError
from underwriting_gateway.infrastructure.clients.escalation import IDEMPOTENCY_HEADER, EscalationClient
from underwriting_gateway.infrastructure.clients.vendor import BackgroundCheckClient

VENDOR_URL = "http://vendor.test/reports/background-check"
WEBHOOK_URL = "http://queue.test/escalations"


def vendor_response(status_code=200, **kwargs):
    return httpx.Response(status_code, request=httpx.Request("GET", VENDOR_URL), **kwargs)


def webhook_response(status_code=200):
    return httpx.Response(status_code, request=httpx.Request("POST", WEBHOOK_URL))


async def test_get_report_defaults_subject_id():
    client = BackgroundCheckClient(base_url="http://vendor.test")
    response = vendor_response(json={"report_type": "background_check"})

    with patch("httpx.AsyncClient.get", new_callable=AsyncMock, return_value=response) as mock_get:
        report = await client.get_report("john-doe")

    assert report == {"report_type": "background_check", "subject_id": "john-doe"}
    assert mock_get.call_args.kwargs["params"] == {"subject_id": "john-doe"}


@pytest.mark.parametrize(
    "outcome",
    [
        vendor_response(503),
        vendor_response(json=["not", "an", "object"]),
        vendor_response(content=b"<html>"),
        httpx.ReadTimeout("timed out"),
        httpx.ConnectError("refused"),
    ],
)
async def test_get_report_errors(outcome):
    client = BackgroundCheckClient(base_url="http://vendor.test")
    kwargs = {"side_effect": outcome} if isinstance(outcome, Exception) else {"return_value": outcome}

    with patch("httpx.AsyncClient.get", new_callable=AsyncMock, **kwargs):
        with pytest.raises(VendorAPIError):
            await client.get_report("john-doe")


async def test_escalation_retries_then_succeeds():
    client = EscalationClient(webhook_url=WEBHOOK_URL)

    with patch(
        "httpx.AsyncClient.post",
        new_callable=AsyncMock,
        side_effect=[httpx.ConnectError("refused"), webhook_response(500), webhook_response(200)],
    ) as mock_post, patch("asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
        await client.send_escalation_event({"event": "UNDERWRITING_ESCALATION"})

    assert mock_post.call_count == 3
    assert [c.args[0] for c in mock_sleep.call_args_list] == [
        client.backoff_base,
        client.backoff_base * 2,
    ]


async def test_escalation_gives_up_after_max_retries():
    client = EscalationClient(webhook_url=WEBHOOK_URL)
    client.max_retries = 2

    with patch(
        "httpx.AsyncClient.post",
        new_callable=AsyncMock,
        return_value=webhook_response(502),
    ) as mock_post, patch("asyncio.sleep", new_callable=AsyncMock):
        with pytest.raises(httpx.HTTPStatusError):
            await client.send_escalation_event({"event": "UNDERWRITING_ESCALATION"})

    assert mock_post.call_count == 2


@pytest.mark.parametrize("status_code", [400, 409, 422])
async def test_escalation_rejection_is_not_retried(status_code):
    client = EscalationClient(webhook_url=WEBHOOK_URL)

    with patch(
        "httpx.AsyncClient.post",
        new_callable=AsyncMock,
        return_value=webhook_response(status_code),
    ) as mock_post, patch("asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
        with pytest.raises(httpx.HTTPStatusError):
            await client.send_escalation_event({"event": "UNDERWRITING_ESCALATION"})

    assert mock_post.call_count == 1
    mock_sleep.assert_not_called()


async def test_escalation_retries_reuse_idempotency_key():
    client = EscalationClient(webhook_url=WEBHOOK_URL)
    payload = {"event": "UNDERWRITING_ESCALATION", "evaluation_id": "5f0c4c1e-eval"}

    with patch(
        "httpx.AsyncClient.post",
        new_callable=AsyncMock,
        side_effect=[webhook_response(503), webhook_response(200)],
    ) as mock_post, patch("asyncio.sleep", new_callable=AsyncMock):
        await client.send_escalation_event(payload)

    keys = [c.kwargs["headers"][IDEMPOTENCY_HEADER] for c in mock_post.call_args_list]
    assert keys == ["5f0c4c1e-eval", "5f0c4c1e-eval"]
