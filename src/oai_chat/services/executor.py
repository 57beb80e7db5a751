"""One request/response exchange with the chat-completions endpoint."""

import json
from pathlib import Path
from typing import Optional, Union

import structlog
from pydantic import ValidationError as PydanticValidationError

from ..domain.errors import ConfigurationError, SerializationError, TransportError
from ..domain.models import (
    ChatOutcome,
    ChatResponse,
    RequestParameters,
    RoundTripResult,
    Usage,
)
from ..repositories.base import HistoryRepository
from .diagnostics import write_diagnostic_record
from .metrics import PROCESSING_TIME, ROUND_TRIP_ERRORS, ROUND_TRIPS
from .transport import OpenAITransport

logger = structlog.get_logger()


class RoundTripExecutor:
    """Sends one request and records the exchange in the history.

    :meth:`execute` produces a :class:`ChatOutcome` and never touches the
    history. :meth:`run` applies the strict/lenient reporting policy on top
    of it and appends the question/answer pair.
    """

    def __init__(
        self,
        transport: OpenAITransport,
        history: HistoryRepository,
        diagnostics_dir: Optional[Union[str, Path]] = None
    ) -> None:
        self.transport = transport
        self.history = history
        self.diagnostics_dir = diagnostics_dir
        self.last_response: Optional[ChatResponse] = None

    async def execute(self, params: RequestParameters) -> ChatOutcome:
        """Send ``params`` and return the outcome.

        An empty model identifier raises ConfigurationError before anything
        is sent. Transport and response-shape failures are returned inside
        the outcome.
        """
        if not params.model:
            raise ConfigurationError("LLM chat completion model is not set.")

        question = params.question
        request_json = json.dumps(params.to_wire(), indent=2, ensure_ascii=False)
        ROUND_TRIPS.inc()
        logger.info(
            "chat_round_trip_started",
            model=params.model,
            messages=len(params.messages),
            endpoint=self.transport.endpoint
        )

        try:
            try:
                response_text = await self.transport.post_json(request_json)
            finally:
                PROCESSING_TIME.inc(self.transport.response_time_ms / 1000)
            response = self._parse(response_text)
        except (TransportError, SerializationError) as e:
            ROUND_TRIP_ERRORS.inc()
            logger.error(
                "chat_round_trip_failed",
                model=params.model,
                error_type=type(e).__name__,
                error=str(e),
                elapsed_ms=self.transport.response_time_ms
            )
            return ChatOutcome(question=question, error=e)

        self.last_response = response
        answer = response.choices[0].message.content or ""
        usage = response.usage or Usage()
        logger.info(
            "chat_round_trip_completed",
            model=params.model,
            elapsed_ms=self.transport.response_time_ms,
            total_tokens=usage.total_tokens,
            answer_length=len(answer)
        )
        return ChatOutcome(
            question=question,
            result=RoundTripResult(
                answer=answer,
                usage=usage,
                request_json=self.transport.json_request,
                response_json=self.transport.json_response,
                elapsed_ms=self.transport.response_time_ms,
                response=response
            )
        )

    async def run(
        self,
        params: RequestParameters,
        strict: bool = False,
        log_errors: bool = False
    ) -> str:
        """Execute, append the pair to the history and return the answer text.

        On failure, ``strict`` re-raises the error and leaves the history
        alone. Otherwise the error text is returned as the answer and is
        also recorded in the history as the answer to the question.
        """
        outcome = await self.execute(params)

        if not outcome.ok:
            if log_errors:
                try:
                    write_diagnostic_record(
                        outcome.error,
                        self.transport.json_request,
                        self.transport.json_response,
                        directory=self.diagnostics_dir
                    )
                except OSError as e:
                    logger.error("diagnostic_record_failed", error=str(e))
            if strict:
                raise outcome.error

        text = outcome.as_text()
        self.history.append(outcome.question, text)
        return text

    @staticmethod
    def _parse(response_text: str) -> ChatResponse:
        try:
            response = ChatResponse.model_validate_json(response_text)
        except PydanticValidationError as e:
            raise SerializationError(f"Unexpected chat completion response: {e}") from e

        if not response.choices:
            raise SerializationError("Chat completion response contains no choices.")
        return response
