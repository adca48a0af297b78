# src/timestake/env.py
"""`.env` support for the API entry point.

Only TIMESTAKE_* keys are taken from the file. A variable already set in the
process environment always wins over the file.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Dict, Optional

from dotenv import dotenv_values

from timestake.runtime.events import log_event

ENV_PREFIX = "TIMESTAKE_"

log = logging.getLogger("timestake.env")

_loaded_from: Optional[Path] = None


def dotenv_path(explicit: Optional[str] = None) -> Path:
    return Path(explicit or os.environ.get("TIMESTAKE_DOTENV_PATH") or ".env").expanduser()


def load_dotenv_if_present(path: Optional[str] = None) -> Dict[str, str]:
    """Export TIMESTAKE_* values from a .env file and return the ones applied.

    Runs at most once per process; later calls return an empty dict.
    """
    global _loaded_from
    if _loaded_from is not None:
        return {}

    p = dotenv_path(path)
    _loaded_from = p
    if not p.is_file():
        return {}

    applied: Dict[str, str] = {}
    for key, value in dotenv_values(p).items():
        if value is None or not key.startswith(ENV_PREFIX) or key in os.environ:
            continue
        os.environ[key] = value
        applied[key] = value

    log_event(log, "dotenv_loaded", path=str(p), keys=sorted(applied))
    return applied
