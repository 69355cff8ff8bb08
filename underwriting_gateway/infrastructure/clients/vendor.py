"""Background-check vendor HTTP client for fetching identity/background reports"""

from typing import Any, Dict

import httpx

from underwriting_gateway.config import settings
from underwriting_gateway.domain.exceptions import VendorAPIError


class BackgroundCheckClient:
    """Client for the external identity/background-check vendor API"""

    def __init__(self, base_url: str | None = None, timeout: float | None = None):
        self.base_url = base_url or settings.vendor_api_base
        self.timeout = timeout or settings.http_timeout_seconds

    async def get_report(self, subject_id: str) -> Dict[str, Any]:
        """
        Fetch the latest background-check report for a subject.

        The payload is returned as-is; parsing and validation belong to the
        signal normalizer so vendor data problems surface per subject.

        Raises:
            VendorAPIError: On timeout, HTTP errors, or a non-object response
        """
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            try:
                response = await client.get(
                    f"{self.base_url}/reports/background-check",
                    params={"subject_id": subject_id},
                )
                response.raise_for_status()
                data = response.json()

            except httpx.TimeoutException as e:
                raise VendorAPIError(f"Vendor API timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                raise VendorAPIError(f"Vendor API error: {e.response.status_code}") from e
            except httpx.RequestError as e:
                raise VendorAPIError(f"Vendor API unreachable: {e}") from e
            except ValueError as e:
                raise VendorAPIError(f"Invalid JSON from vendor: {e}") from e

        if not isinstance(data, dict):
            raise VendorAPIError("Vendor report is not a JSON object")

        # Vendors key reports by their own id; keep the caller's
        data.setdefault("subject_id", subject_id)
        return data
