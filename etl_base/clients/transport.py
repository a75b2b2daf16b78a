"""Authenticated async HTTP client for the ETL server API."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from types import TracebackType
from typing import Any

import httpx

from etl_base.config import Settings
from etl_base.errors import TransportError
from etl_base.validation import Schema, SchemaValidator

logger = logging.getLogger(__name__)


class TransportClient:
    """Bearer-authenticated wrapper around ``httpx.AsyncClient``.

    Paths are resolved against ``Settings.api_base``. Structured bodies are
    serialized to JSON; ``bytes`` bodies are sent verbatim so callers keep
    exact control over framing.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        http_client: httpx.AsyncClient | None = None,
        validator: SchemaValidator | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        self._settings = settings
        self._validator = validator or SchemaValidator()
        # No timeout unless the caller asks for one
        self._client = http_client or httpx.AsyncClient(timeout=httpx.Timeout(timeout_seconds))
        self._owns_client = http_client is None

    def url(self, path: str | httpx.URL) -> httpx.URL:
        return httpx.URL(self._settings.api_base).join(path)

    async def request(
        self,
        path: str | httpx.URL,
        *,
        method: str = "GET",
        headers: Mapping[str, str] | None = None,
        body: Any = None,
    ) -> httpx.Response:
        """Issue an authenticated request and return the 2xx response."""
        url = self.url(path)
        request_headers = httpx.Headers(headers or {})
        if "Authorization" not in request_headers:
            request_headers["Authorization"] = f"Bearer {self._settings.token}"

        content: bytes | None = None
        if isinstance(body, (bytes, bytearray)):
            content = bytes(body)
        elif body is not None:
            content = json.dumps(body).encode("utf-8")
            request_headers["Content-Type"] = "application/json"

        logger.debug("%s %s", method, url)
        try:
            response = await self._client.request(method, url, headers=request_headers, content=content)
        except httpx.HTTPError as exc:
            raise TransportError(str(exc) or type(exc).__name__, code="ETL_UNAVAILABLE", status_code=502) from exc

        if not response.is_success:
            self._raise_for_status(response)
        return response

    async def fetch_json(
        self,
        path: str | httpx.URL,
        *,
        method: str = "GET",
        headers: Mapping[str, str] | None = None,
        body: Any = None,
        schema: Schema | Mapping[str, Any] | None = None,
    ) -> Any:
        """Request ``path`` and decode the JSON body, validating it when a schema is given."""
        response = await self.request(path, method=method, headers=headers, body=body)
        try:
            payload = response.json()
        except ValueError as exc:
            raise TransportError(
                "ETL server response is not valid JSON.",
                code="ETL_BAD_RESPONSE_JSON",
                status_code=502,
                body=response.text,
            ) from exc
        if schema is None:
            return payload
        return self._validator.validate(schema, payload)

    @staticmethod
    def _raise_for_status(response: httpx.Response) -> None:
        text = response.text
        logger.error(
            "ETL request failed with %s: %s",
            response.status_code,
            text,
            extra={"statusCode": response.status_code, "resourceId": str(response.request.url)},
        )
        message = text or f"ETL request failed with status {response.status_code}"
        try:
            parsed = json.loads(text)
        except ValueError:
            parsed = None
        if isinstance(parsed, dict) and isinstance(parsed.get("message"), str):
            message = parsed["message"]
        raise TransportError(message, status_code=response.status_code, body=text)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> TransportClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.aclose()
