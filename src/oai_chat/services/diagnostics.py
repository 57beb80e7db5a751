"""Diagnostic records for failed round trips."""

from datetime import datetime
from pathlib import Path
from typing import Optional, Union

import structlog

logger = structlog.get_logger()

DIAGNOSTIC_FILE_PREFIX = "chat_round_trip_error"


def write_diagnostic_record(
    error: Exception,
    request_text: str,
    response_text: str,
    directory: Optional[Union[str, Path]] = None,
    now: Optional[datetime] = None
) -> Path:
    """Write the error and the last wire request/response to a timestamped file."""
    directory = Path(directory or Path.cwd())
    directory.mkdir(parents=True, exist_ok=True)
    timestamp = (now or datetime.now()).strftime("%Y_%m_%d__%H_%M_%S")
    path = directory / f"{DIAGNOSTIC_FILE_PREFIX}_{timestamp}.txt"

    record = "\n".join([
        str(error),
        "Request:",
        request_text,
        "Response:",
        response_text,
        ""
    ])
    path.write_text(record, encoding="utf-8")
    logger.info("diagnostic_record_written", path=str(path), error_type=type(error).__name__)
    return path
