"""
HTTP client for a SolarShare server.

Blocking calls built on a requests.Session. Async callers run them in a
worker thread (see DiscoveryLoop and TransferOrchestrator).
"""

import logging

import pydantic
import requests

from solarshare.config import API_URL, REQUEST_TIMEOUT, UPLOAD_TIMEOUT
from solarshare.errors import TransportError, ValidationError
from solarshare.presence.models import (
    ClearResponse,
    HeartbeatResponse,
    ParticipantListResponse,
    ParticipantView,
)
from solarshare.transfer.models import OutgoingFile, UploadReceipt

logger = logging.getLogger(__name__)


class SolarShareClient:
    """Talks to the registry and upload endpoints of one server."""

    def __init__(
        self,
        base_url: str = API_URL,
        timeout: float | None = REQUEST_TIMEOUT,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()

    def close(self) -> None:
        self._session.close()

    def heartbeat(
        self, user_id: int, user_name: str, ip_address: str | None = None
    ) -> HeartbeatResponse:
        """Register or refresh this participant."""
        body = {"userId": user_id, "userName": user_name}
        if ip_address:
            body["ipAddress"] = ip_address
        data = self._request("POST", "/api/transfer", json=body, timeout=self.timeout)
        return self._parse(HeartbeatResponse, data)

    def list_participants(self) -> list[ParticipantView]:
        """Return the live participants, ascending by id."""
        data = self._request("GET", "/api/transfer", timeout=self.timeout)
        return self._parse(ParticipantListResponse, data).users

    def clear(self) -> int:
        """Remove every participant from the registry."""
        data = self._request("DELETE", "/api/transfer", timeout=self.timeout)
        return self._parse(ClearResponse, data).cleared

    def upload(self, file: OutgoingFile, target_id: int, sender_id: int) -> UploadReceipt:
        """Send one whole file to the server's store."""
        data = self._request(
            "POST",
            "/api/transfer/upload",
            files={"file": (file.name, file.data)},
            data={"targetUserId": str(target_id), "senderUserId": str(sender_id)},
            timeout=UPLOAD_TIMEOUT,
        )
        return self._parse(UploadReceipt, data)

    def _request(self, method: str, path: str, **kwargs) -> dict:
        url = f"{self.base_url}{path}"
        try:
            response = self._session.request(method, url, **kwargs)
        except requests.Timeout as e:
            logger.warning(f"{method} {path} timed out: {e}")
            raise TransportError(f"Request to {url} timed out") from e
        except requests.RequestException as e:
            logger.warning(f"{method} {path} failed: {e}")
            raise TransportError(f"Could not reach {url}: {e}") from e

        try:
            payload = response.json()
        except ValueError:
            payload = None
        if not isinstance(payload, dict):
            if response.ok:
                raise TransportError(f"Malformed response from {url}", status_code=response.status_code)
            payload = {}

        if response.status_code == 400:
            raise ValidationError(payload.get("error") or "Request rejected")
        if not response.ok:
            message = payload.get("error") or f"HTTP {response.status_code}"
            raise TransportError(message, status_code=response.status_code)
        return payload

    @staticmethod
    def _parse(model, data: dict):
        try:
            return model.model_validate(data)
        except pydantic.ValidationError as e:
            raise TransportError(f"Malformed response: {e.error_count()} invalid field(s)") from e
