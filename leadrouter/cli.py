from __future__ import annotations

import argparse
import json
import logging

from rich.console import Console
from rich.table import Table

from leadrouter.batch import score_single
from leadrouter.config import default_config, engine_config_from, load_config
from leadrouter.models import SORT_KEYS
from leadrouter.outputs.csv_writer import read_leads_csv
from leadrouter.run import run_pipeline

logger = logging.getLogger("leadrouter.cli")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="leadrouter", description="Backflow lead scoring and territory routing")
    sub = parser.add_subparsers(dest="command", required=True)

    run_cmd = sub.add_parser("run", help="Score a JSON file of raw leads")
    run_cmd.add_argument("--config", default="config/engine.yaml", help="Path to YAML config")
    run_cmd.add_argument("--leads", default=None, help="JSON lead file (defaults to input.leads_file)")
    run_cmd.add_argument("--dry-run", action="store_true", help="Score without writing csv/report (--json-out still applies)")
    run_cmd.add_argument("--sort-by", choices=SORT_KEYS, default=None)
    run_cmd.add_argument("--temperature", choices=["HOT", "WARM", "COLD"], default=None)
    run_cmd.add_argument("--min-score", type=int, default=None)
    run_cmd.add_argument("--max-results", type=int, default=None)
    run_cmd.add_argument("--workers", type=int, default=None, help="Score leads on N threads")
    run_cmd.add_argument("--json-out", default=None, help="Also write the full scoring result as JSON")

    score_cmd = sub.add_parser("score", help="Score a single business")
    score_cmd.add_argument("--config", default=None, help="Path to YAML config (optional)")
    score_cmd.add_argument("--business", required=True)
    score_cmd.add_argument("--address", required=True)
    score_cmd.add_argument("--lat", required=True)
    score_cmd.add_argument("--lng", required=True)
    score_cmd.add_argument("--type", dest="facility_type", default="commercial")
    score_cmd.add_argument("--json", action="store_true", help="Print the full JSON result")

    stats_cmd = sub.add_parser("stats", help="Show CSV lead statistics")
    stats_cmd.add_argument("--config", default="config/engine.yaml", help="Path to YAML config")

    export_cmd = sub.add_parser("export", help="Export scored leads from CSV")
    export_cmd.add_argument("--format", choices=["markdown"], default="markdown")
    export_cmd.add_argument("--csv-path", default="output/scored_leads.csv")
    export_cmd.add_argument("--temperature", choices=["HOT", "WARM", "COLD"], default=None)

    return parser


def cmd_score(args: argparse.Namespace) -> int:
    config = load_config(args.config) if args.config else default_config()
    result = score_single(
        business_name=args.business,
        address=args.address,
        lat=args.lat,
        lng=args.lng,
        facility_type=args.facility_type,
        config=engine_config_from(config),
    )

    console = Console()
    if args.json:
        console.print_json(json.dumps(result.to_dict()))
        return 0

    analysis = result.analysis
    table = Table(title=f"Lead Analysis: {result.lead.business_name}")
    table.add_column("Field")
    table.add_column("Value")
    table.add_row("Score", str(result.lead.score))
    table.add_row("Temperature", analysis.temperature.value)
    table.add_row("Priority", analysis.priority.value)
    table.add_row("Next Action", analysis.next_action)
    table.add_row("Recommendation", analysis.recommendation)
    table.add_row("Estimated Value", analysis.estimated_value)
    table.add_row("Distance", analysis.distance)
    table.add_row("Cluster", result.lead.route_optimization.cluster)
    table.add_row("Visit Time", result.lead.route_optimization.optimal_visit_time)
    for name, points in result.lead.scoring_breakdown.to_dict().items():
        table.add_row(f"  {name}", str(points))
    console.print(table)
    return 0


def cmd_stats(config_path: str) -> int:
    cfg = load_config(config_path)
    csv_path = cfg["output"]["csv"].get("path", "output/scored_leads.csv")
    rows = read_leads_csv(csv_path)

    table = Table(title="Lead Scoring Stats")
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    table.add_row("CSV Path", csv_path)
    table.add_row("Total Leads", str(len(rows)))
    for temperature in ["HOT", "WARM", "COLD"]:
        table.add_row(temperature, str(sum(1 for row in rows if row.get("Temperature") == temperature)))
    table.add_row("URGENT", str(sum(1 for row in rows if row.get("Priority") == "URGENT")))
    Console().print(table)
    return 0


def cmd_export_markdown(csv_path: str, temperature: str | None = None) -> int:
    rows = read_leads_csv(csv_path, temperature=temperature)
    rows.sort(key=lambda row: int(row.get("Score", 0) or 0), reverse=True)

    lines = [
        "| Generated | Business | Facility | Temperature | Priority | Score | Distance | Cluster | Contact |",
        "|---|---|---|---|---|---:|---:|---|---|",
    ]
    for row in rows:
        lines.append(
            "| {date} | {business} | {facility} | {temp} | {priority} | {score} | {distance} | {cluster} | {contact} |".format(
                date=row.get("Generated At", "").replace("|", " "),
                business=row.get("Business", "").replace("|", " "),
                facility=row.get("Facility Type", "").replace("|", " "),
                temp=row.get("Temperature", ""),
                priority=row.get("Priority", ""),
                score=row.get("Score", "0"),
                distance=row.get("Distance (mi)", ""),
                cluster=row.get("Cluster", ""),
                contact="{} within {}".format(row.get("Contact Method", ""), row.get("Timeframe", "")),
            )
        )

    Console().print("\n".join(lines))
    return 0


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    parser = _build_parser()
    args = parser.parse_args()

    try:
        if args.command == "run":
            run_pipeline(
                config_path=args.config,
                leads_path=args.leads,
                dry_run=args.dry_run,
                sort_by=args.sort_by,
                temperature=args.temperature,
                min_score=args.min_score,
                max_results=args.max_results,
                workers=args.workers,
                json_out=args.json_out,
            )
            raise SystemExit(0)

        if args.command == "score":
            raise SystemExit(cmd_score(args))

        if args.command == "stats":
            raise SystemExit(cmd_stats(args.config))

        if args.command == "export":
            raise SystemExit(cmd_export_markdown(args.csv_path, args.temperature))
    except (ValueError, FileNotFoundError) as exc:
        logger.error("%s", exc)
        raise SystemExit(2) from exc

    raise SystemExit(1)
