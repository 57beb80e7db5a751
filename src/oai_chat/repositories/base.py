"""Base repository interface for conversation history."""

from abc import ABC, abstractmethod
from typing import Iterable, List, Optional

from ..domain.models import QAPair


class HistoryRepository(ABC):
    """Abstract base class for question/answer history stores."""

    @abstractmethod
    def append(self, question: str, answer: str) -> QAPair:
        """Stamp a new pair and add it at the end."""
        pass

    @abstractmethod
    def clear(self) -> None:
        """Remove every pair."""
        pass

    @abstractmethod
    def most_recent(self, count: int) -> List[QAPair]:
        """Return up to ``count`` newest pairs, oldest first."""
        pass

    @abstractmethod
    def by_keywords(
        self, keywords: Optional[Iterable[str]], prune_before: bool = False
    ) -> List[QAPair]:
        """Return the pairs from the oldest keyword match onwards."""
        pass

    @abstractmethod
    def __len__(self) -> int:
        pass
