"""Shared HTTP plumbing for the Google service adapters.

Every adapter call goes through `GoogleApiClient._request`, which attaches the
bearer credential and maps responses onto the error taxonomy:

- 401 -> `AuthExpiredError`
- any other non-2xx -> `RemoteServiceError` carrying the service's message
- request failures (transport, decoding, redirects) -> `RemoteServiceError`
  without a status
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import httpx

from eznote.core.exceptions import AuthExpiredError, RemoteServiceError
from eznote.telemetry import TelemetryContext

if TYPE_CHECKING:
    from eznote.config import FrozenConfig
    from eznote.core.types import Credential
    from eznote.telemetry import TelemetryContextProtocol

logger = logging.getLogger(__name__)

_BODY_SNIPPET = 200


def build_http_client(
    config: FrozenConfig, transport: httpx.AsyncBaseTransport | None = None
) -> httpx.AsyncClient:
    """Create the async client shared by the adapters of one host."""
    kwargs: dict[str, Any] = {"transport": transport}
    if config.http_timeout_seconds is not None:
        kwargs["timeout"] = config.http_timeout_seconds
    return httpx.AsyncClient(**kwargs)


def raise_for_api_status(response: httpx.Response, *, service: str) -> None:
    """Raise the taxonomy error for a failed response; return on 2xx."""
    if response.status_code == 401:
        raise AuthExpiredError(f"{service} rejected the credential")
    if response.is_success:
        return

    body = response.text
    message = f"{service} error: {response.status_code}"
    service_message: str | None = None
    try:
        payload = response.json()
    except ValueError:
        payload = None
    error = payload.get("error") if isinstance(payload, dict) else None
    if isinstance(error, dict) and error.get("message"):
        service_message = str(error["message"])
    if service_message:
        message = service_message
    elif body:
        message = f"{message} {body[:_BODY_SNIPPET]}"
    raise RemoteServiceError(
        message, status=response.status_code, service_message=service_message
    )


class GoogleApiClient:
    """Base for adapters bound to one credential."""

    service_name = "Google API"

    def __init__(
        self,
        client: httpx.AsyncClient,
        credential: Credential,
        config: FrozenConfig,
        telemetry: TelemetryContextProtocol | None = None,
    ) -> None:
        self._client = client
        self._credential = credential
        self._config = config
        self._telemetry: TelemetryContextProtocol = telemetry or TelemetryContext()

    async def _request(
        self, method: str, url: str, *, scope: str, **kwargs: Any
    ) -> httpx.Response:
        headers = {"Authorization": f"Bearer {self._credential.token}"}
        headers.update(kwargs.pop("headers", None) or {})
        with self._telemetry(scope):
            try:
                response = await self._client.request(
                    method, url, headers=headers, **kwargs
                )
            except httpx.RequestError as e:
                raise RemoteServiceError(
                    f"{self.service_name} unreachable: {e}"
                ) from e
        logger.debug("%s %s -> %d", method, scope, response.status_code)
        raise_for_api_status(response, service=self.service_name)
        return response

    @staticmethod
    def _json(response: httpx.Response) -> dict[str, Any]:
        try:
            data = response.json()
        except ValueError as e:
            raise RemoteServiceError("Malformed JSON response") from e
        return data if isinstance(data, dict) else {}
