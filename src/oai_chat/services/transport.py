"""Authenticated HTTP transport for the completion service."""

import json
import time
from typing import Dict, Optional

import httpx
import structlog

from ..config import DEFAULT_CHAT_ENDPOINT, DEFAULT_TIMEOUT
from ..domain.errors import ConfigurationError, TransportError

logger = structlog.get_logger()


def pretty_json(text: str) -> str:
    """Indent ``text`` if it is JSON, otherwise return it unchanged."""
    try:
        return json.dumps(json.loads(text), indent=2, ensure_ascii=False)
    except ValueError:
        return text


def _error_detail(body: str) -> Optional[str]:
    """Pull ``error.message`` out of an error body, if there is one."""
    try:
        payload = json.loads(body)
    except ValueError:
        return None
    if isinstance(payload, dict) and isinstance(payload.get("error"), dict):
        return payload["error"].get("message")
    return None


class OpenAITransport:
    """HTTP client pre-configured with the bearer credential.

    Keeps the last request and response bodies (pretty-printed) and the
    latency of the last call for diagnostics.
    """

    def __init__(
        self,
        api_key: str,
        organization: Optional[str] = None,
        project: Optional[str] = None,
        endpoint: str = DEFAULT_CHAT_ENDPOINT,
        timeout: float = DEFAULT_TIMEOUT,
        client: Optional[httpx.AsyncClient] = None
    ) -> None:
        if not api_key:
            raise ConfigurationError("API key is not set.")

        self._headers: Dict[str, str] = {"Authorization": f"Bearer {api_key}"}
        if organization:
            self._headers["OpenAI-Organization"] = organization
        if project:
            self._headers["OpenAI-Project"] = project

        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self.endpoint = ""
        self.set_endpoint(endpoint)

        self.json_request = ""
        self.json_response = ""
        self.response_time_ms = 0

    def set_endpoint(self, endpoint: str) -> None:
        """Set the URL chat requests are posted to."""
        if not endpoint:
            raise ConfigurationError("Endpoint can not be empty.")
        try:
            url = httpx.URL(endpoint)
        except httpx.InvalidURL as e:
            raise ConfigurationError(f"Endpoint is not a valid URL: {e}") from e
        if url.scheme not in ("http", "https") or not url.host:
            raise ConfigurationError(f"Endpoint must be an absolute http(s) URL: {endpoint}")
        self.endpoint = endpoint

    async def post_json(self, body: str, url: Optional[str] = None) -> str:
        """POST a JSON body and return the response text.

        Raises TransportError on a network failure or a non-success status.
        """
        url = url or self.endpoint
        self.json_request = body
        self.json_response = ""
        headers = {**self._headers, "Content-Type": "application/json"}
        return await self._send("POST", url, headers=headers, content=body.encode("utf-8"))

    async def get_text(self, url: str) -> str:
        """GET ``url`` and return the response text."""
        return await self._send("GET", url, headers=dict(self._headers))

    async def _send(self, method: str, url: str, **kwargs) -> str:
        start = time.perf_counter()
        try:
            response = await self._client.request(method, url, **kwargs)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            self.response_time_ms = int((time.perf_counter() - start) * 1000)
            logger.error("transport_request_failed", method=method, url=url, error=str(e))
            raise TransportError(f"{method} {url} failed: {e}") from e

        self.response_time_ms = int((time.perf_counter() - start) * 1000)
        self.json_response = pretty_json(response.text)

        if not response.is_success:
            message = f"{method} {url} returned {response.status_code} {response.reason_phrase}"
            detail = _error_detail(response.text)
            if detail:
                message = f"{message}: {detail}"
            logger.warning(
                "transport_status_error",
                method=method,
                url=url,
                status_code=response.status_code,
                elapsed_ms=self.response_time_ms
            )
            raise TransportError(message, status_code=response.status_code, body=response.text)

        logger.debug(
            "transport_request_completed",
            method=method,
            url=url,
            status_code=response.status_code,
            elapsed_ms=self.response_time_ms
        )
        return response.text

    async def aclose(self) -> None:
        """Close the underlying client if this transport created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "OpenAITransport":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
