from __future__ import annotations

import json
from pathlib import Path
from typing import Any


def load_raw_leads(path: str) -> list[dict[str, Any]]:
    """Read a JSON lead export.

    Accepts either a bare list of lead records or an object with a ``leads``
    list, which is what the compliance monitor and web scraper write.
    """
    leads_path = Path(path)
    if not leads_path.exists():
        raise FileNotFoundError(f"Leads file not found: {path}")
    try:
        data = json.loads(leads_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Leads file is not valid JSON: {path} ({exc})") from exc

    if isinstance(data, dict):
        data = data.get("leads")
    if not isinstance(data, list):
        raise ValueError(f"Leads file must contain a list of leads: {path}")
    return data


def save_result(path: str, payload: dict[str, Any]) -> None:
    out_path = Path(path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
