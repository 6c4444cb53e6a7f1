from __future__ import annotations

import json
import logging

import requests
from rich.console import Console

from leadrouter.models import BatchResult
from leadrouter.utils import format_currency

logger = logging.getLogger("leadrouter.outputs.summary")


def build_message(result: BatchResult) -> str:
    stats = result.stats
    return (
        f"Lead scoring: {len(result.leads)} leads ranked from {stats.total_processed} records "
        f"(HOT={stats.hot_leads}, WARM={stats.warm_leads}, COLD={stats.cold_leads}, "
        f"URGENT={stats.urgent_leads}), pipeline {format_currency(stats.total_estimated_revenue)}"
    )


def emit_summary(mode: str, webhook: str, result: BatchResult) -> None:
    message = build_message(result)

    if mode == "discord" and webhook:
        try:
            response = requests.post(webhook, json={"content": message}, timeout=8)
            response.raise_for_status()
        except requests.RequestException as exc:
            logger.warning("Discord summary failed: %s", exc)
            Console().print(message)
    else:
        Console().print(message)


def reasons_to_text(reasons: dict[str, int]) -> str:
    if not reasons:
        return "none"
    return json.dumps(reasons, sort_keys=True)
