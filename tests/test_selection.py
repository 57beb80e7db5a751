"""Test suite for history selection and message assembly."""

import pytest

from oai_chat.domain.errors import ValidationError
from oai_chat.domain.models import Role
from oai_chat.services.assembler import build_messages
from oai_chat.services.selector import (
    NO_HISTORY,
    HistorySelector,
    KeywordPairs,
    NoHistory,
    RecentPairs,
)


@pytest.fixture
def selector(history):
    history.append("Tell me about Rome", "Rome is the capital of Italy.")
    history.append("And the food?", "Try cacio e pepe.")
    history.append("Any budget tips?", "Walk instead of taking taxis.")
    return HistorySelector(history)


def test_no_selection_selects_nothing(selector):
    """Test the default and explicit empty selections."""
    assert selector.select() == []
    assert selector.select(NO_HISTORY) == []
    assert selector.select(NoHistory()) == []


def test_recent_selection(selector):
    """Test that RecentPairs delegates to the recency window."""
    selected = selector.select(RecentPairs(2))
    assert [pair.question.content for pair in selected] == ["And the food?", "Any budget tips?"]


def test_keyword_selection_prunes_on_request(selector, history):
    """Test that KeywordPairs forwards the prune flag."""
    selected = selector.select(KeywordPairs(["CACIO"]))
    assert len(selected) == 2
    assert len(history) == 3

    selected = selector.select(KeywordPairs(["cacio"], prune_before=True))
    assert len(selected) == 2
    assert len(history) == 2


def test_keyword_selection_without_keywords(selector, history):
    """Test that KeywordPairs(None) selects nothing."""
    assert selector.select(KeywordPairs(None, prune_before=True)) == []
    assert len(history) == 3


def test_build_messages_without_history():
    """Test that an empty selection yields exactly system then user."""
    messages = build_messages("Be brief.", [], "Hi")

    assert [m.role for m in messages] == [Role.SYSTEM, Role.USER]
    assert [m.content for m in messages] == ["Be brief.", "Hi"]


@pytest.mark.parametrize("count", [1, 2, 3])
def test_build_messages_interleaves_pairs(history, count):
    """Test message count, boundary roles and pair order."""
    for i in range(3):
        history.append(f"q{i}", f"a{i}")
    selected = history.most_recent(count)

    messages = build_messages("system text", selected, "current")

    assert len(messages) == 2 + 2 * len(selected)
    assert messages[0].role is Role.SYSTEM
    assert messages[-1].role is Role.USER
    assert messages[-1].content == "current"
    middle = messages[1:-1]
    assert [m.role for m in middle] == [Role.USER, Role.ASSISTANT] * len(selected)
    expected = []
    for pair in selected:
        expected.extend([pair.question.content, pair.answer.content])
    assert [m.content for m in middle] == expected


def test_build_messages_keeps_given_order(history):
    """Test that the assembler does not reorder pairs."""
    first = history.append("older", "1")
    second = history.append("newer", "2")

    messages = build_messages("s", [second, first], "now")

    assert [m.content for m in messages] == ["s", "newer", "2", "older", "1", "now"]


def test_keyword_selection_rejects_a_single_string(selector, history):
    """Test that KeywordPairs with a bare string neither selects nor prunes."""
    with pytest.raises(ValidationError):
        selector.select(KeywordPairs("budget", prune_before=True))
    assert len(history) == 3
