"""
Client for the profile service, the system of record for students and
promotions.

Every endpoint answers ``{"data": ...}``. A non-200 status or a body that is
not the expected JSON is treated as an empty result; only transport errors
(connection refused, timeout) raise :class:`UpstreamFailure`.
"""
from typing import Any, Dict, List, Optional

import httpx

from campus_events.core.config import settings
from campus_events.core.errors import UpstreamFailure
from campus_events.core.logging import logger


class ProfileServiceClient:
    """
    Async HTTP client for the profile service.

    Args:
        base_url: Root URL of the profile service
        timeout: Per-request timeout in seconds
        credentials: Caller credential forwarded on every call
        transport: Optional httpx transport (used by tests)
    """

    def __init__(
        self,
        base_url: str = None,
        timeout: float = None,
        credentials: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or settings.PROFILE_SERVICE_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.PROFILE_SERVICE_TIMEOUT
        self.credentials = credentials
        self.transport = transport

    def _headers(self) -> Dict[str, str]:
        if not self.credentials:
            return {}
        return {
            "Authorization": f"Bearer {self.credentials}",
            "Cookie": f"token={self.credentials}",
        }

    async def _get_data(self, path: str) -> Any:
        url = f"{self.base_url}{path}"
        logger.debug(f"Calling profile service: GET {url}")
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.get(url, headers=self._headers())
        except httpx.HTTPError as e:
            logger.error(f"Request to profile service failed for {path}: {e}")
            raise UpstreamFailure("Profile service unavailable", error=str(e))

        if response.status_code != 200:
            logger.error(f"Profile service returned status {response.status_code} for {path}: {response.text[:200]}")
            return None
        try:
            body = response.json()
        except ValueError as e:
            logger.error(f"Invalid JSON from profile service for {path}: {e}")
            return None
        if not isinstance(body, dict):
            logger.error(f"Unexpected payload from profile service for {path}")
            return None
        return body.get("data")

    async def get_active_students(self) -> List[dict]:
        """Roster of every active student."""
        return _as_records(await self._get_data("/students/active"))

    async def get_students_by_promotion(self, promotion_id) -> List[dict]:
        """Roster of one promotion."""
        return _as_records(await self._get_data(f"/students/promotion/{promotion_id}"))

    async def get_profile(self, profile_id) -> Optional[dict]:
        """A single profile, or None if the service has no such profile."""
        data = await self._get_data(f"/profile/{profile_id}")
        if isinstance(data, list):
            data = data[0] if data else None
        return data if isinstance(data, dict) else None


def _as_records(data: Any) -> List[dict]:
    if not isinstance(data, list):
        return []
    return [item for item in data if isinstance(item, dict)]
