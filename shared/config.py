# shared/config.py
from __future__ import annotations
import os
from typing import List, Optional


def _env(k, d=None):
    v = os.getenv(k)
    return v if v and v.strip() else d


def env_int(k: str, d: int) -> int:
    v = _env(k)
    if v is None:
        return d
    try:
        return int(v)
    except ValueError:
        raise ValueError(f"{k} must be an integer, got {v!r}") from None


def env_float(k: str, d: Optional[float]) -> Optional[float]:
    v = _env(k)
    if v is None:
        return d
    try:
        return float(v)
    except ValueError:
        raise ValueError(f"{k} must be a number, got {v!r}") from None


def env_list(k: str, sep: str = ",") -> List[str]:
    """Split a separated env var into stripped, non-empty items."""
    v = _env(k)
    if v is None:
        return []
    return [item.strip() for item in v.split(sep) if item.strip()]
