"""Shared fixtures."""

import json
from datetime import datetime, timedelta

import httpx
import pytest

from oai_chat.repositories.memory import ConversationHistory
from oai_chat.services.chat import ChatCompletion


class TickingClock:
    """Clock that advances by ``step`` every time it is read."""

    def __init__(self, start=datetime(2024, 5, 1, 9, 0, 0), step=timedelta(seconds=1)):
        self.now = start
        self.step = step

    def __call__(self):
        current = self.now
        self.now += self.step
        return current


@pytest.fixture
def clock():
    return TickingClock()


@pytest.fixture
def history(clock):
    return ConversationHistory(clock=clock)


@pytest.fixture
def completion_body():
    """Build a chat-completions response body."""
    def build(content="Hello!", prompt_tokens=9, completion_tokens=12):
        return {
            "id": "chatcmpl-123",
            "object": "chat.completion",
            "created": 1714550400,
            "model": "gpt-4o",
            "choices": [
                {
                    "index": 0,
                    "message": {"role": "assistant", "content": content},
                    "finish_reason": "stop"
                }
            ],
            "usage": {
                "prompt_tokens": prompt_tokens,
                "completion_tokens": completion_tokens,
                "total_tokens": prompt_tokens + completion_tokens
            }
        }
    return build


@pytest.fixture
def recorded_requests():
    return []


@pytest.fixture
def chat_factory(tmp_path, recorded_requests):
    """Build a ChatCompletion whose HTTP calls go to ``handler``.

    Every request body is decoded and appended to ``recorded_requests``.
    """
    def build(handler, **kwargs):
        def recording_handler(request):
            recorded_requests.append(json.loads(request.content) if request.content else None)
            return handler(request)

        client = httpx.AsyncClient(transport=httpx.MockTransport(recording_handler))
        kwargs.setdefault("diagnostics_dir", tmp_path)
        kwargs.setdefault("clock", TickingClock())
        return ChatCompletion("sk-test", http_client=client, **kwargs)
    return build
