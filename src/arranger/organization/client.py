"""HTTP client for the collection reorganization endpoint."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx
from pydantic import ValidationError

from .errors import ReorganizationRequestError
from .models import Reorganization, ReorganizeResponse

LOGGER = logging.getLogger(__name__)


class ReorganizeClient:
    """Request a proposed reorganization for a collection.

    Args:
        endpoint: URL accepting ``POST {collectionId, collectionName}``.
        timeout: Request timeout in seconds.
        transport: Optional transport, used to stub the endpoint in tests.
    """

    def __init__(
        self,
        endpoint: str,
        *,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.endpoint = endpoint
        self.timeout = timeout
        self._transport = transport

    async def request(
        self,
        collection_id: str,
        collection_name: str,
        organization_prompt: Optional[str] = None,
    ) -> Reorganization:
        """Post a reorganization request and parse the proposed operations.

        Raises:
            ReorganizationRequestError: On network failure, non-2xx status or
                a malformed body.
        """
        payload: Dict[str, Any] = {"collectionId": collection_id, "collectionName": collection_name}
        if organization_prompt:
            payload["organizationPrompt"] = organization_prompt

        LOGGER.info("Requesting reorganization of %s from %s", collection_id, self.endpoint)
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(self.endpoint, json=payload)
                response.raise_for_status()
                body = response.json()
        except httpx.HTTPStatusError as exc:
            raise ReorganizationRequestError(
                f"Reorganization endpoint returned {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise ReorganizationRequestError(f"Reorganization request failed: {exc}") from exc
        except ValueError as exc:
            raise ReorganizationRequestError("Reorganization endpoint returned invalid JSON") from exc

        try:
            parsed = ReorganizeResponse.model_validate(body)
        except ValidationError as exc:
            raise ReorganizationRequestError(f"Unexpected reorganization payload: {exc}") from exc
        return parsed.reorganization


__all__ = ["ReorganizeClient"]
