"""Runtime settings, read once from the environment at import time."""

from __future__ import annotations

import os
from typing import Optional


def _data_file() -> Optional[str]:
    # An empty value keeps the whole state in memory.
    value = os.environ.get("EDUSCHEDULE_DATA_FILE", "data/eduschedule.json")
    return value or None


DATA_FILE = _data_file()
LOG_LEVEL = os.environ.get("EDUSCHEDULE_LOG_LEVEL", "INFO").upper()
# Continuation warns when a subject has this many periods left or fewer.
WARN_THRESHOLD = int(os.environ.get("EDUSCHEDULE_WARN_THRESHOLD", 4))
PORT = int(os.environ.get("PORT", 8000))


__all__ = ["DATA_FILE", "LOG_LEVEL", "WARN_THRESHOLD", "PORT"]
