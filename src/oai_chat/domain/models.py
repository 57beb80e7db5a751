"""Domain models for the chat client."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic import ValidationError as PydanticValidationError

from ..config import DEFAULT_MAX_TOKENS, DEFAULT_TEMPERATURE
from .errors import SerializationError, TransportError, ValidationError


class Role(str, Enum):
    """Author of a wire message."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class Message(BaseModel):
    """Immutable role/content pair."""

    model_config = ConfigDict(frozen=True)

    role: Role
    content: str = ""

    @classmethod
    def system(cls, content: str) -> "Message":
        return cls(role=Role.SYSTEM, content=content)

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(role=Role.USER, content=content)

    @classmethod
    def assistant(cls, content: str) -> "Message":
        return cls(role=Role.ASSISTANT, content=content)

    def __str__(self) -> str:
        return f"role:{self.role.value} content:{self.content}"


class QAPair(BaseModel):
    """One question and its answer, stamped when added to a history."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    question: Message
    answer: Message

    @model_validator(mode="after")
    def _check_roles(self) -> "QAPair":
        if self.question.role is not Role.USER:
            raise ValueError("question must be a user message")
        if self.answer.role is not Role.ASSISTANT:
            raise ValueError("answer must be an assistant message")
        return self

    def mentions(self, keyword: str) -> bool:
        """Case-insensitive substring test on question and answer."""
        needle = keyword.casefold()
        return (
            needle in self.question.content.casefold()
            or needle in self.answer.content.casefold()
        )


class RequestParameters(BaseModel):
    """Body of one chat-completions request.

    Field order is the wire order. Numeric ranges are checked here; an empty
    model identifier is left for the executor to reject so that the check
    happens right before the network call.
    """

    model: str
    messages: List[Message] = Field(min_length=1)
    max_tokens: int = Field(DEFAULT_MAX_TOKENS, gt=0)
    temperature: float = Field(DEFAULT_TEMPERATURE, ge=0.0, le=2.0)
    top_p: float = 1.0
    frequency_penalty: float = 0.0
    presence_penalty: float = 0.0
    stream: Literal[False] = False

    def __init__(self, **data: Any) -> None:
        try:
            super().__init__(**data)
        except PydanticValidationError as exc:
            details = "; ".join(
                f"{'.'.join(str(part) for part in error['loc']) or 'messages'}: {error['msg']}"
                for error in exc.errors()
            )
            raise ValidationError(f"Invalid request parameters: {details}") from exc

    @model_validator(mode="after")
    def _check_last_turn(self) -> "RequestParameters":
        if self.messages[-1].role is not Role.USER:
            raise ValueError("the last message must be the current user turn")
        return self

    @property
    def question(self) -> str:
        """Content of the current user turn (the last message)."""
        return self.messages[-1].content

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")


class ResponseMessage(BaseModel):
    role: Optional[str] = None
    content: Optional[str] = None
    refusal: Optional[str] = None


class Choice(BaseModel):
    index: int = 0
    message: ResponseMessage
    finish_reason: Optional[str] = None


class Usage(BaseModel):
    """Token counters reported by the service."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class ChatResponse(BaseModel):
    """Subset of the chat-completions response body that the client reads."""

    id: Optional[str] = None
    object: Optional[str] = None
    created: Optional[int] = None
    model: Optional[str] = None
    choices: List[Choice]
    usage: Optional[Usage] = None


@dataclass
class RoundTripResult:
    """Everything produced by one successful request/response exchange."""

    answer: str
    usage: Usage
    request_json: str
    response_json: str
    elapsed_ms: int
    response: ChatResponse


@dataclass
class ChatOutcome:
    """Result of a round trip: either a RoundTripResult or the error that ended it."""

    question: str
    result: Optional[RoundTripResult] = None
    error: Optional[Union[TransportError, SerializationError]] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def as_text(self) -> str:
        """Collapse the outcome into the string-only answer contract.

        On failure this returns the error description, which is
        indistinguishable from an answer for a caller that only sees text.
        """
        if self.error is not None:
            return str(self.error)
        return self.result.answer
