"""Test suite for model listing."""

import json

import httpx
import pytest

from oai_chat.domain.errors import SerializationError, TransportError
from oai_chat.services.catalog import ModelCatalog

MODELS = {
    "object": "list",
    "data": [
        {"id": "gpt-4o", "object": "model", "created": 1715367049, "owned_by": "system"},
        {"id": "gpt-4.1-nano", "object": "model", "created": 1744321707, "owned_by": "system"},
    ],
}


def catalog_for(handler):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return ModelCatalog("sk-test", http_client=client)


@pytest.mark.asyncio
async def test_list_models_is_pretty_printed():
    """Test that the model list comes back indented."""
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(200, text=json.dumps(MODELS))

    listing = await catalog_for(handler).list_models()

    assert json.loads(listing) == MODELS
    assert "\n  " in listing
    assert requests[0].method == "GET"
    assert str(requests[0].url) == "https://api.openai.com/v1/models"
    assert requests[0].headers["authorization"] == "Bearer sk-test"


@pytest.mark.asyncio
async def test_model_ids_are_sorted():
    """Test extracting model ids."""
    ids = await catalog_for(lambda request: httpx.Response(200, json=MODELS)).model_ids()
    assert ids == ["gpt-4.1-nano", "gpt-4o"]


@pytest.mark.asyncio
async def test_model_ids_reject_unexpected_body():
    """Test that a body without data is a serialization error."""
    catalog = catalog_for(lambda request: httpx.Response(200, json={"object": "list"}))
    with pytest.raises(SerializationError):
        await catalog.model_ids()


@pytest.mark.asyncio
async def test_list_models_error_status():
    """Test that a rejected credential surfaces as a transport error."""
    body = {"error": {"message": "Incorrect API key provided"}}
    catalog = catalog_for(lambda request: httpx.Response(401, json=body))

    with pytest.raises(TransportError) as exc_info:
        await catalog.list_models()

    assert exc_info.value.status_code == 401
    assert "Incorrect API key provided" in str(exc_info.value)
