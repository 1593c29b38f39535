from __future__ import annotations

import os
from typing import List, Optional


_TRUE = {"1", "true", "yes", "y", "on"}
_FALSE = {"0", "false", "no", "n", "off"}


def env_bool(name: str) -> Optional[bool]:
    """True/False when the variable holds a recognizable flag, else None."""
    v = (os.getenv(name) or "").strip().lower()
    if v in _TRUE:
        return True
    if v in _FALSE:
        return False
    return None


def env_list(name: str, sep: str = ",") -> Optional[List[str]]:
    """Split a delimited variable; None when unset or blank."""
    v = os.getenv(name)
    if v is None or not v.strip():
        return None
    return [item.strip() for item in v.split(sep) if item.strip()]
