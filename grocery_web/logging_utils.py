"""Logging utilities for the web app.

Structured JSONL logging of API requests and their outcomes.
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict

from .config import LOG_DIR

__all__ = ["log_interaction", "LOG_DIR"]


def _log_file() -> Path:
    return LOG_DIR / f"api_requests_{datetime.now().strftime('%Y%m%d')}.jsonl"


def log_interaction(event_type: str, data: Dict[str, Any]) -> None:
    """Append an API event to the day's JSONL file.

    Args:
        event_type: Type of event (search_request, compare_result, upstream_error, etc.)
        data: Event-specific data to log
    """
    LOG_DIR.mkdir(parents=True, exist_ok=True)
    log_entry = {"timestamp": datetime.now().isoformat(), "event_type": event_type, **data}
    with open(_log_file(), "a", encoding="utf-8") as f:
        f.write(json.dumps(log_entry, ensure_ascii=False, default=str) + "\n")
