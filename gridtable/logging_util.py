"""Structured logging helper for the table and its stores.

One line per event on stderr, JSON by default:
    {"ts":"...","level":"WARN","event":"key_field_fallback","requested":"x"}
GRIDTABLE_LOG_FORMAT=text gives `ts LEVEL event k=v ...` instead, which reads
better in a terminal. Level and format are re-read on each call so tests and
operators can flip them without re-importing.
"""
from __future__ import annotations
import os, sys, json, time, threading
from typing import Any, Dict

_lock = threading.Lock()
LEVEL_ORDER = ["DEBUG", "INFO", "WARN", "ERROR"]
DEFAULT_LEVEL = "INFO"

def current_level() -> str:
    return os.environ.get("GRIDTABLE_LOG_LEVEL", DEFAULT_LEVEL).upper()

def _should(level: str) -> bool:
    try:
        return LEVEL_ORDER.index(level) >= LEVEL_ORDER.index(current_level())
    except ValueError:
        return True

def _jsonable(value):
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=str)
    return str(value)

def _format(record: Dict[str, Any]) -> str:
    if os.environ.get("GRIDTABLE_LOG_FORMAT", "json").lower() != "text":
        return json.dumps(record, separators=(',', ':'), default=_jsonable)
    head = f"{record.pop('ts')} {record.pop('level'):<5} {record.pop('event')}"
    tail = " ".join(f"{k}={json.dumps(v, default=_jsonable)}" for k, v in record.items())
    return f"{head} {tail}" if tail else head

def log(level: str, event: str, **fields):
    level = level.upper()
    if not _should(level):
        return
    record = {
        "ts": time.strftime('%Y-%m-%dT%H:%M:%SZ', time.gmtime()),
        "level": level,
        "event": event,
    }
    record.update(fields)
    line = _format(record)
    with _lock:
        sys.stderr.write(line + "\n")
        sys.stderr.flush()

def debug(event: str, **fields): log("DEBUG", event, **fields)
def info(event: str, **fields): log("INFO", event, **fields)
def warn(event: str, **fields): log("WARN", event, **fields)
def error(event: str, **fields): log("ERROR", event, **fields)


class BoundLogger:
    """Logger carrying fixed context fields; per-call fields win on conflict."""
    def __init__(self, **context):
        self.context = context

    def bind(self, **more) -> "BoundLogger":
        return BoundLogger(**{**self.context, **more})

    def log(self, level: str, event: str, **fields):
        log(level, event, **{**self.context, **fields})

    def debug(self, event: str, **fields): self.log("DEBUG", event, **fields)
    def info(self, event: str, **fields): self.log("INFO", event, **fields)
    def warn(self, event: str, **fields): self.log("WARN", event, **fields)
    def error(self, event: str, **fields): self.log("ERROR", event, **fields)


def bind(**context) -> BoundLogger:
    return BoundLogger(**context)
