"""Chat-completion session with conversation memory.

Usage::

    async with ChatCompletion(api_key) as chat:
        chat.set_system_role("You are a professional travel guide.")
        await chat.send_chat("Plan a weekend in Lisbon on a tight budget.")
        await chat.send_chat("What about museums?", RecentPairs(3))
        await chat.send_chat("Back to money.", KeywordPairs(["budget"], prune_before=True))
"""

import asyncio
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Sequence, Union

import httpx
import structlog

from ..config import (
    DEFAULT_CHAT_ENDPOINT,
    DEFAULT_MAX_TOKENS,
    DEFAULT_MODEL,
    DEFAULT_SYSTEM_ROLE,
    DEFAULT_TEMPERATURE,
    DEFAULT_TIMEOUT,
    Settings,
)
from ..domain.errors import ConfigurationError, ValidationError
from ..domain.models import ChatOutcome, ChatResponse, Message, QAPair, RequestParameters
from ..repositories.memory import ConversationHistory
from .assembler import build_messages
from .executor import RoundTripExecutor
from .selector import HistorySelector, Selection
from .transport import OpenAITransport

logger = structlog.get_logger()


class ChatCompletion:
    """Talks to the chat-completions endpoint and remembers the conversation.

    Every successful round trip appends its question/answer pair to
    :attr:`history`. Calls on one session are serialized, so concurrent
    callers see the history change one round trip at a time.

    ``strict`` on the send methods makes transport and response errors
    propagate. Without it the error text comes back as the answer and is
    stored in the history like one. ``log_errors`` additionally writes a
    diagnostic file with the last request and response.
    """

    def __init__(
        self,
        api_key: str,
        organization: Optional[str] = None,
        project: Optional[str] = None,
        *,
        endpoint: str = DEFAULT_CHAT_ENDPOINT,
        model: str = DEFAULT_MODEL,
        timeout: float = DEFAULT_TIMEOUT,
        http_client: Optional[httpx.AsyncClient] = None,
        diagnostics_dir: Optional[Union[str, Path]] = None,
        clock: Optional[Callable[[], datetime]] = None
    ) -> None:
        self.transport = OpenAITransport(
            api_key,
            organization=organization,
            project=project,
            endpoint=endpoint,
            timeout=timeout,
            client=http_client
        )
        self.history = ConversationHistory(clock=clock)
        self.selector = HistorySelector(self.history)
        self.executor = RoundTripExecutor(self.transport, self.history, diagnostics_dir)
        self._lock = asyncio.Lock()

        self._model = ""
        self.set_model(model)
        self._system_role = DEFAULT_SYSTEM_ROLE
        self._temperature = DEFAULT_TEMPERATURE
        self._max_tokens = DEFAULT_MAX_TOKENS
        logger.info("chat_session_init", model=self._model, endpoint=self.transport.endpoint)

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs) -> "ChatCompletion":
        """Build a session from resolved settings; unset values keep their defaults."""
        if settings.endpoint:
            kwargs.setdefault("endpoint", settings.endpoint)
        chat = cls(settings.api_key, **kwargs)
        if settings.model:
            chat.set_model(settings.model)
        if settings.system_role:
            chat.set_system_role(settings.system_role)
        if settings.temperature is not None:
            chat.set_temperature(settings.temperature)
        return chat

    # Settings

    @property
    def model(self) -> str:
        return self._model

    @property
    def system_role(self) -> str:
        return self._system_role

    @property
    def temperature(self) -> float:
        return self._temperature

    @property
    def max_tokens(self) -> int:
        return self._max_tokens

    def set_model(self, model: str) -> None:
        """Set the model used for requests, e.g. "gpt-4o-mini"."""
        if not model:
            raise ConfigurationError("Model can not be empty.")
        self._model = model

    def set_endpoint(self, endpoint: str) -> None:
        self.transport.set_endpoint(endpoint)

    def set_max_tokens(self, max_tokens: int) -> None:
        """Set the maximum number of tokens in a response (default 5000)."""
        if max_tokens <= 0:
            raise ValidationError("Max tokens must be a positive integer.")
        self._max_tokens = max_tokens

    def set_temperature(self, temperature: float) -> None:
        """Set the sampling temperature, from 0.0 to 2.0 (default 0.7).

        Low values make the model pick the most likely words; high values
        give more varied, and less reliable, answers.
        """
        if not 0 <= temperature <= 2:
            raise ValidationError("Temperature must be a value between 0.0 and 2.0.")
        self._temperature = temperature

    def set_system_role(self, system_role: str) -> None:
        """Set the instruction sent ahead of every request.

        An empty role restores the default role and raises ValidationError.
        """
        if not system_role:
            self._system_role = DEFAULT_SYSTEM_ROLE
            raise ValidationError(
                f"System role must not be empty. It is now set to the default: {DEFAULT_SYSTEM_ROLE!r}"
            )
        self._system_role = system_role

    # History

    def clear_history(self) -> None:
        self.history.clear()

    def most_recent_pairs(self, count: int) -> List[QAPair]:
        return self.history.most_recent(count)

    def pairs_containing_keywords(
        self, keywords: Optional[Iterable[str]], prune_before: bool = False
    ) -> List[QAPair]:
        """See :meth:`ConversationHistory.by_keywords`; may prune the history."""
        return self.history.by_keywords(keywords, prune_before=prune_before)

    # Round trips

    async def send_chat(
        self,
        user_input: str,
        selection: Optional[Selection] = None,
        *,
        strict: bool = False,
        log_errors: bool = False
    ) -> str:
        """Ask ``user_input`` with the history picked by ``selection``.

        Without a selection only the system role and the question are sent.
        """
        async with self._lock:
            pairs = self.selector.select(selection)
            messages = build_messages(self._system_role, pairs, user_input)
            return await self.executor.run(
                self._parameters(messages), strict=strict, log_errors=log_errors
            )

    async def send_messages(
        self,
        messages: Sequence[Message],
        *,
        strict: bool = False,
        log_errors: bool = False
    ) -> str:
        """Send a caller-built message list; its last message is the question."""
        params = self._parameters(list(messages))
        async with self._lock:
            return await self.executor.run(params, strict=strict, log_errors=log_errors)

    async def send_chat_advanced(
        self,
        params: RequestParameters,
        *,
        strict: bool = False,
        log_errors: bool = False
    ) -> str:
        """Send fully caller-controlled request parameters."""
        async with self._lock:
            return await self.executor.run(params, strict=strict, log_errors=log_errors)

    async def complete(self, params: RequestParameters) -> ChatOutcome:
        """Send ``params`` and return the typed outcome.

        Only a successful outcome is added to the history.
        """
        async with self._lock:
            outcome = await self.executor.execute(params)
            if outcome.ok:
                self.history.append(outcome.question, outcome.result.answer)
            return outcome

    def _parameters(self, messages: List[Message]) -> RequestParameters:
        return RequestParameters(
            model=self._model,
            messages=messages,
            max_tokens=self._max_tokens,
            temperature=self._temperature
        )

    # Last response

    @property
    def full_response(self) -> Optional[ChatResponse]:
        return self.executor.last_response

    @property
    def last_answer(self) -> Optional[str]:
        response = self.executor.last_response
        if response is None:
            return None
        return response.choices[0].message.content

    @property
    def total_tokens(self) -> int:
        return self._usage_value("total_tokens")

    @property
    def prompt_tokens(self) -> int:
        return self._usage_value("prompt_tokens")

    @property
    def completion_tokens(self) -> int:
        return self._usage_value("completion_tokens")

    def _usage_value(self, name: str) -> int:
        response = self.executor.last_response
        if response is None or response.usage is None:
            return 0
        return getattr(response.usage, name)

    @property
    def response_time_ms(self) -> int:
        return self.transport.response_time_ms

    @property
    def json_request(self) -> str:
        return self.transport.json_request

    @property
    def json_response(self) -> str:
        return self.transport.json_response

    async def aclose(self) -> None:
        await self.transport.aclose()

    async def __aenter__(self) -> "ChatCompletion":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
