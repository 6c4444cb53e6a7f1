from __future__ import annotations

import math
from datetime import datetime, timezone


def normalize_facility_type(value: str | None) -> str:
    if not value:
        return ""
    return "_".join(value.lower().split())


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def format_currency(amount: int | float) -> str:
    return f"${amount:,}"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def short_snippet(text: str, max_len: int = 180) -> str:
    clean = " ".join((text or "").split())
    if len(clean) <= max_len:
        return clean
    return clean[: max_len - 3] + "..."
