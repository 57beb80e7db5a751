"""Model listing."""

import json
from typing import List, Optional

import httpx
import structlog

from ..config import DEFAULT_MODELS_ENDPOINT, DEFAULT_TIMEOUT
from ..domain.errors import SerializationError
from .transport import OpenAITransport, pretty_json

logger = structlog.get_logger()


class ModelCatalog:
    """Lists the models available to the credential."""

    def __init__(
        self,
        api_key: str,
        organization: Optional[str] = None,
        project: Optional[str] = None,
        *,
        endpoint: str = DEFAULT_MODELS_ENDPOINT,
        timeout: float = DEFAULT_TIMEOUT,
        http_client: Optional[httpx.AsyncClient] = None
    ) -> None:
        self.transport = OpenAITransport(
            api_key,
            organization=organization,
            project=project,
            endpoint=endpoint,
            timeout=timeout,
            client=http_client
        )

    async def list_models(self) -> str:
        """Return the model list as pretty-printed JSON."""
        text = await self.transport.get_text(self.transport.endpoint)
        return pretty_json(text)

    async def model_ids(self) -> List[str]:
        """Return the sorted ids from the model list."""
        text = await self.transport.get_text(self.transport.endpoint)
        try:
            data = json.loads(text)["data"]
            ids = sorted(entry["id"] for entry in data)
        except (ValueError, KeyError, TypeError) as e:
            raise SerializationError(f"Unexpected model list response: {e}") from e
        logger.info("models_listed", count=len(ids))
        return ids

    async def aclose(self) -> None:
        await self.transport.aclose()

    async def __aenter__(self) -> "ModelCatalog":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
