"""Test suite for the command-line front end."""

import io
import json

import pytest
import structlog

from oai_chat import cli
from oai_chat.domain.errors import TransportError


@pytest.fixture(autouse=True)
def isolated(tmp_path, monkeypatch):
    """Run from an empty directory with no credentials in the environment."""
    monkeypatch.chdir(tmp_path)
    for name in ("OPENAI_API_KEY", "OAI_MODEL", "OAI_SYSTEM_ROLE", "OAI_TEMPERATURE", "OAI_ENDPOINT"):
        monkeypatch.delenv(name, raising=False)
    yield
    structlog.reset_defaults()


@pytest.fixture
def asked(monkeypatch):
    """Replace the network call and record what would have been asked."""
    calls = []

    async def fake_ask(question, settings):
        calls.append((question, settings))
        return "The sky scatters blue light."

    monkeypatch.setattr(cli, "ask", fake_ask)
    return calls


def run(argv, stdin_text=""):
    stdout = io.StringIO()
    code = cli.main(argv, stdin=io.StringIO(stdin_text), stdout=stdout)
    return code, stdout.getvalue()


def test_missing_inputs_are_all_reported():
    """Test that every missing input is listed with a usage hint."""
    code, output = run([])

    assert code == 1
    assert "Question (-q) is required" in output
    assert "API Key (-k) is required" in output
    assert "Model (-m) is required" in output
    assert "Usage examples:" in output


def test_question_from_flags(asked):
    """Test a fully specified command line."""
    code, output = run(["-q", "Why is the sky blue?", "-m", "gpt-4o", "-k", "sk-test", "-t", "0.3"])

    assert code == 0
    assert output.strip() == "The sky scatters blue light."
    question, settings = asked[0]
    assert question == "Why is the sky blue?"
    assert (settings.api_key, settings.model, settings.temperature) == ("sk-test", "gpt-4o", 0.3)


def test_settings_file_fills_missing_flags(tmp_path, asked):
    """Test falling back to settings.json."""
    (tmp_path / "settings.json").write_text(json.dumps({
        "OpenAISettings": {
            "ApiKey": "sk-file",
            "PreferedChatCompletionModel": "gpt-4o-mini",
            "SystemRole": "Answer in one line."
        }
    }), encoding="utf-8")

    code, _ = run(["-q", "Say hello", "-s", "Shout."])

    assert code == 0
    _, settings = asked[0]
    assert (settings.api_key, settings.model, settings.system_role) == ("sk-file", "gpt-4o-mini", "Shout.")


def test_question_from_file_and_stdin(tmp_path, asked):
    """Test reading the question from a file argument and from stdin."""
    (tmp_path / "input.txt").write_text("  say hello  \n", encoding="utf-8")

    assert run(["input.txt", "-m", "gpt-4o", "-k", "sk-test"])[0] == 0
    assert run(["-m", "gpt-4o", "-k", "sk-test"], stdin_text="from stdin\n")[0] == 0

    assert [question for question, _ in asked] == ["say hello", "from stdin"]


def test_round_trip_error_is_printed(monkeypatch):
    """Test that a failed round trip prints the error and exits non-zero."""
    async def failing_ask(question, settings):
        raise TransportError("POST https://api.openai.com/v1/chat/completions returned 401 Unauthorized")

    monkeypatch.setattr(cli, "ask", failing_ask)

    code, output = run(["-q", "Hi", "-m", "gpt-4o", "-k", "sk-bad"])

    assert code == 1
    assert "401 Unauthorized" in output
