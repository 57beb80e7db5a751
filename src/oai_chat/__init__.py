"""Chat-completion client with conversation memory."""

from .domain.errors import (
    ChatClientError,
    ConfigurationError,
    SerializationError,
    TransportError,
    ValidationError,
)
from .domain.models import ChatOutcome, Message, QAPair, RequestParameters, Role
from .repositories.memory import ConversationHistory
from .services.catalog import ModelCatalog
from .services.chat import ChatCompletion
from .services.selector import KeywordPairs, NoHistory, RecentPairs

__all__ = [
    "ChatClientError",
    "ChatCompletion",
    "ChatOutcome",
    "ConfigurationError",
    "ConversationHistory",
    "KeywordPairs",
    "Message",
    "ModelCatalog",
    "NoHistory",
    "QAPair",
    "RecentPairs",
    "RequestParameters",
    "Role",
    "SerializationError",
    "TransportError",
    "ValidationError",
]
