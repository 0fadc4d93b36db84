# letmein/client/sync_service.py
import logging
from typing import Optional

import requests
from pydantic import ValidationError

from letmein.core.errors import SyncError, TransportError
from letmein.core.models import Client

logger = logging.getLogger(__name__)

SYNC_PATH = "/api/v1noauth/sync"


class SyncService:
    """One POST round trip to the sync server. No retries."""

    def __init__(self, server_url: str, session: Optional[requests.Session] = None, timeout: float = 15.0):
        if not server_url:
            raise ValueError("server URL is required")
        self.server_url = server_url
        self.session = session or requests.Session()
        self.timeout = timeout

    @property
    def api_url(self) -> str:
        return f"{self.server_url.rstrip('/')}{SYNC_PATH}"

    def exchange(self, request: Client) -> Client:
        payload = request.to_document()
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        logger.debug("sync request: %s", payload)
        try:
            resp = self.session.post(self.api_url, json=payload, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            raise TransportError(f"error sending POST request to server: {e}") from e

        if resp.status_code != 200:
            raise SyncError(
                f"server returned an error status: {resp.status_code}\n{resp.text}",
                status_code=resp.status_code,
                body=resp.text,
            )

        try:
            data = resp.json()
            updates = Client.model_validate(data)
        except (ValueError, ValidationError) as e:
            raise SyncError(f"error decoding server response JSON: {e}",
                            status_code=resp.status_code, body=resp.text) from e

        logger.debug("sync response: %s", data)
        return updates
