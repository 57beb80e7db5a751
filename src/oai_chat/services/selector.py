"""History selection policies.

A selection is chosen at the call site as one of three value types and
applied to the session's history by :class:`HistorySelector`.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence, Union

import structlog

from ..domain.models import QAPair
from ..repositories.base import HistoryRepository

logger = structlog.get_logger()


@dataclass(frozen=True)
class NoHistory:
    """Send only the system role and the new question."""

    def select_from(self, history: HistoryRepository) -> List[QAPair]:
        return []


@dataclass(frozen=True)
class RecentPairs:
    """Include the ``count`` most recent pairs."""

    count: int

    def select_from(self, history: HistoryRepository) -> List[QAPair]:
        return history.most_recent(self.count)


@dataclass(frozen=True)
class KeywordPairs:
    """Include everything from the oldest pair mentioning any keyword.

    ``prune_before`` permanently drops the older pairs from the history,
    which is useful when the conversation changes topic.
    """

    keywords: Optional[Sequence[str]]
    prune_before: bool = False

    def select_from(self, history: HistoryRepository) -> List[QAPair]:
        return history.by_keywords(self.keywords, prune_before=self.prune_before)


Selection = Union[NoHistory, RecentPairs, KeywordPairs]

NO_HISTORY = NoHistory()


class HistorySelector:
    """Applies a selection to one history."""

    def __init__(self, history: HistoryRepository) -> None:
        self._history = history

    def select(self, selection: Optional[Selection] = None) -> List[QAPair]:
        selection = selection or NO_HISTORY
        size_before = len(self._history)
        pairs = selection.select_from(self._history)
        logger.debug(
            "history_selected",
            selection=type(selection).__name__,
            selected=len(pairs),
            history_size=size_before,
            pruned=size_before - len(self._history)
        )
        return pairs
