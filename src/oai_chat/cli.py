"""
Command-line chat client.

Usage:
    oai -q "Why is the sun red at sunset?" -m gpt-4o -k YOUR_API_KEY
    oai -q "Say Hello!"                      # key and model from settings.json
    oai input.txt -s "Do the opposite!"      # question read from a file
    oai < input.txt > answer.txt             # question read from stdin
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional, TextIO

import structlog

from .config import Settings, load_settings
from .domain.errors import ChatClientError
from .services.chat import ChatCompletion

USAGE_HINT = """Please provide the necessary arguments!
Usage examples:
oai -q "Why is the sun red at sunset?" -m "gpt-4o" -k "YOUR_API_KEY"
oai -q "Why is the sun red at sunset?" (if the API key and model are set in settings.json)
"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="oai", description="Ask a chat-completion model one question.")
    parser.add_argument("input_file", nargs="?", help="Read the question from this file")
    parser.add_argument("-q", "--question", help="Question to ask")
    parser.add_argument("-m", "--model", help="Model to use")
    parser.add_argument("-k", "--api-key", help="API key")
    parser.add_argument("-t", "--temperature", type=float, help="Sampling temperature, 0.0 to 2.0")
    parser.add_argument("-s", "--system-role", help="System role sent ahead of the question")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log progress to stderr")
    return parser


def resolve_question(args: argparse.Namespace, stdin: TextIO) -> Optional[str]:
    """Question from -q, else the input file, else redirected stdin."""
    if args.question:
        return args.question
    if args.input_file and Path(args.input_file).is_file():
        return Path(args.input_file).read_text(encoding="utf-8").strip()
    if not stdin.isatty():
        return stdin.read().strip()
    return None


def collect_errors(question: Optional[str], settings: Settings) -> List[str]:
    errors = []
    if not question:
        errors.append("Error: Question (-q) is required.")
    if not settings.api_key:
        errors.append("Error: API Key (-k) is required if not set in settings.json.")
    if not settings.model:
        errors.append("Error: Model (-m) is required if not set in settings.json.")
    return errors


def configure_logging(verbose: bool) -> None:
    """Send structlog output to stderr so stdout carries only the answer."""
    structlog.configure(
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.INFO if verbose else logging.WARNING
        )
    )


async def ask(question: str, settings: Settings) -> str:
    async with ChatCompletion.from_settings(settings) as chat:
        return await chat.send_chat(question, strict=True, log_errors=True)


def main(
    argv: Optional[List[str]] = None,
    stdin: TextIO = sys.stdin,
    stdout: TextIO = sys.stdout
) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)

    try:
        file_settings = load_settings()
    except ChatClientError as e:
        print(f"Error: {e}", file=stdout)
        return 1

    settings = file_settings.model_copy(update={
        key: value for key, value in {
            "api_key": args.api_key,
            "model": args.model,
            "system_role": args.system_role,
            "temperature": args.temperature,
        }.items() if value is not None
    })

    question = resolve_question(args, stdin)
    errors = collect_errors(question, settings)
    if errors:
        print("\n".join(errors), file=stdout)
        print(USAGE_HINT, file=stdout)
        return 1

    try:
        answer = asyncio.run(ask(question, settings))
    except ChatClientError as e:
        print(f"Error: {e}", file=stdout)
        return 1

    print(answer, file=stdout)
    return 0


if __name__ == "__main__":
    sys.exit(main())
