"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Clock and timestamp helpers shared by cache backends.
"""

from __future__ import annotations

import time
from datetime import datetime, timezone


def now_ms() -> int:
    return int(time.time() * 1000)


def format_timestamp(ms: int) -> str:
    """Render epoch milliseconds as ISO-8601 UTC with millisecond precision."""
    moment = datetime.fromtimestamp(ms // 1000, tz=timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{ms % 1000:03d}Z"


def parse_timestamp(raw: object) -> int | None:
    """
    Parse a stored timestamp into epoch milliseconds.

    Accepts ISO-8601 strings (``Z`` or explicit offsets) and numeric epoch
    milliseconds. Returns ``None`` when the value is not a timestamp.
    """
    if isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        return int(raw)
    if not isinstance(raw, str) or not raw.strip():
        return None
    text = raw.strip()
    if text.endswith("Z") or text.endswith("z"):
        text = text[:-1] + "+00:00"
    try:
        moment = datetime.fromisoformat(text)
    except ValueError:
        return None
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return int(round(moment.timestamp() * 1000))
