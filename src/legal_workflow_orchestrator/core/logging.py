"""Log output for the orchestrator.

Components pass their context through `extra=`. The ids naming the record a
line is about (document, workflow, step, bus subscription) are lifted to
top-level keys so log lines can be filtered per document or workflow; any
other extra goes under `context`.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any

RECORD_ID_KEYS: tuple[str, ...] = (
    "document_id",
    "workflow_id",
    "step_id",
    "topic",
    "subscription_id",
)

# Attributes every LogRecord has, plus the two set by Formatter.format.
_BUILTIN_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}

TEXT_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def split_extras(record: logging.LogRecord) -> tuple[dict[str, Any], dict[str, Any]]:
    """Return `(record_ids, context)` from the `extra=` fields of a record."""

    ids: dict[str, Any] = {}
    context: dict[str, Any] = {}
    for key, value in vars(record).items():
        if key in _BUILTIN_ATTRS or key.startswith("_"):
            continue
        if key in RECORD_ID_KEYS:
            ids[key] = value
        else:
            context[key] = value
    # Stable order regardless of the order callers passed them in.
    ordered = {key: ids[key] for key in RECORD_ID_KEYS if key in ids}
    return ordered, context


class JsonFormatter(logging.Formatter):
    """One JSON object per line with record ids at the top level."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: A003 (record)
        ids, context = split_extras(record)
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **ids,
        }
        if context:
            entry["context"] = context
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable lines ending in `[document_id=... workflow_id=...]`."""

    def __init__(self) -> None:
        super().__init__(TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:  # noqa: A003 (record)
        line = super().format(record)
        ids, _context = split_extras(record)
        if not ids:
            return line
        tag = " ".join(f"{key}={value}" for key, value in ids.items())
        head, sep, tail = line.partition("\n")
        return f"{head} [{tag}]{sep}{tail}"


_FORMATTERS: dict[str, type[logging.Formatter]] = {
    "json": JsonFormatter,
    "text": TextFormatter,
}


def configure_logging(level: str, fmt: str = "json") -> None:
    """Send all logs to stderr in `fmt` (`json` or `text`) at `level`.

    stdout is left to the CLI's JSON output. Calling this again replaces the
    previous handler.
    """

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)

    handler = logging.StreamHandler(stream=sys.stderr)
    handler.setFormatter(_FORMATTERS.get(fmt, JsonFormatter)())
    root.addHandler(handler)
    root.setLevel(level.upper())
