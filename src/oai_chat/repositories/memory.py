"""In-memory conversation history."""

from datetime import datetime
from typing import Callable, Iterable, Iterator, List, Optional, Tuple

import structlog

from ..domain.errors import ValidationError
from ..domain.models import Message, QAPair
from .base import HistoryRepository

logger = structlog.get_logger()


class ConversationHistory(HistoryRepository):
    """Ordered question/answer pairs owned by a single chat session.

    Insertion order is chronological order. Pairs are only ever appended,
    cleared all at once, or pruned as a prefix by :meth:`by_keywords`.
    There is no locking here; the owning session serializes access.
    """

    def __init__(self, clock: Optional[Callable[[], datetime]] = None) -> None:
        self._clock = clock or datetime.now
        self._pairs: List[QAPair] = []

    def append(self, question: str, answer: str) -> QAPair:
        """Add a pair stamped with the current time."""
        timestamp = self._clock()
        # Keep timestamps non-decreasing if the wall clock steps backwards
        if self._pairs and timestamp < self._pairs[-1].timestamp:
            timestamp = self._pairs[-1].timestamp

        pair = QAPair(
            timestamp=timestamp,
            question=Message.user(question),
            answer=Message.assistant(answer)
        )
        self._pairs.append(pair)
        logger.debug("history_pair_appended", size=len(self._pairs))
        return pair

    def clear(self) -> None:
        removed = len(self._pairs)
        self._pairs = []
        logger.info("history_cleared", removed=removed)

    def most_recent(self, count: int) -> List[QAPair]:
        """Return the ``count`` newest pairs, oldest first.

        ``count <= 0`` gives an empty list and a count larger than the
        history gives the whole history.
        """
        if count <= 0:
            return []
        return self._pairs[-count:]

    def by_keywords(
        self, keywords: Optional[Iterable[str]], prune_before: bool = False
    ) -> List[QAPair]:
        """Return every pair from the oldest keyword match onwards.

        A pair matches when any keyword occurs, ignoring case, in its
        question or its answer. With ``prune_before`` the pairs stamped
        strictly earlier than the match are deleted for good; pairs sharing
        the match's timestamp are kept.

        ``keywords`` must be a collection of strings; a single string raises
        ValidationError instead of being split into characters.
        """
        if isinstance(keywords, str):
            raise ValidationError("Keywords must be a collection of strings, not a single string.")
        keywords = list(keywords or [])
        if not keywords:
            return []

        anchor = next(
            (pair for pair in self._pairs if any(pair.mentions(kw) for kw in keywords)),
            None
        )
        if anchor is None:
            return []

        if prune_before:
            kept = [pair for pair in self._pairs if not pair.timestamp < anchor.timestamp]
            removed = len(self._pairs) - len(kept)
            if removed:
                logger.info("history_pruned", removed=removed, remaining=len(kept))
            self._pairs = kept

        return [pair for pair in self._pairs if pair.timestamp >= anchor.timestamp]

    @property
    def pairs(self) -> Tuple[QAPair, ...]:
        return tuple(self._pairs)

    def __iter__(self) -> Iterator[QAPair]:
        return iter(tuple(self._pairs))

    def __len__(self) -> int:
        return len(self._pairs)
