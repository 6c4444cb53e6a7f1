from __future__ import annotations

from collections import Counter
from datetime import datetime, timezone
from pathlib import Path

from leadrouter.models import BatchResult, Temperature
from leadrouter.outputs.summary import reasons_to_text
from leadrouter.utils import format_currency, short_snippet


def generate_markdown_report(
    output_path: str,
    started_at: datetime,
    ended_at: datetime,
    result: BatchResult,
) -> None:
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    duration = (ended_at - started_at).total_seconds()
    stats = result.stats
    clusters = Counter(lead.route_optimization.cluster for lead in result.leads)
    top_5 = sorted(result.leads, key=lambda lead: lead.score, reverse=True)[:5]

    lines = [
        "# Lead Scoring Last Run Report",
        "",
        f"Run timestamp: {ended_at.astimezone(timezone.utc).isoformat()}",
        f"Duration seconds: {duration:.2f}",
        f"Service hub: {result.center['lat']}, {result.center['lng']} (radius {result.service_radius_miles} mi)",
        f"Criteria: min score {result.options.min_score}, sort by {result.options.sort_by}",
        "",
        "## Totals",
        "",
        f"- Records received: {stats.total_processed}",
        f"- Leads kept: {stats.hot_leads + stats.warm_leads + stats.cold_leads}",
        f"- Leads listed: {len(result.leads)}",
        f"- Average score: {stats.avg_score}",
        f"- Urgent leads: {stats.urgent_leads}",
        f"- Estimated revenue: {format_currency(stats.total_estimated_revenue)}",
        "",
        "## Temperature Distribution",
        "",
        f"- {Temperature.HOT.value} (85+): {stats.hot_leads}",
        f"- {Temperature.WARM.value} (60-84): {stats.warm_leads}",
        f"- {Temperature.COLD.value} (<60): {stats.cold_leads}",
        "",
        "## Clusters",
        "",
    ]

    for cluster, count in sorted(clusters.items()):
        lines.append(f"- {cluster}: {count}")

    lines.extend(
        [
            "",
            "## Top 5 Leads",
            "",
            "| Business | Score | Temperature | Priority | Distance | Next Action |",
            "|---|---:|---|---|---:|---|",
        ]
    )

    for lead in top_5:
        name = short_snippet(lead.business_name, 60).replace("|", " ")
        plan = lead.action_plan
        lines.append(
            f"| {name} | {lead.score} | {lead.temperature.value} | {lead.priority.value} "
            f"| {lead.distance_miles} | {plan.contact_method} within {plan.timeframe} |"
        )

    lines.extend(
        [
            "",
            "## Skipped",
            "",
            f"Skip reasons: {reasons_to_text(stats.skipped)}",
        ]
    )

    for reason, count in sorted(stats.skipped.items()):
        lines.append(f"- {reason}: {count}")

    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
