from __future__ import annotations

import logging

from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from leadrouter.batch import process_batch
from leadrouter.config import engine_config_from, load_config
from leadrouter.inputs import load_raw_leads, save_result
from leadrouter.models import BatchResult
from leadrouter.outputs.csv_writer import write_leads_csv
from leadrouter.outputs.report import generate_markdown_report
from leadrouter.outputs.summary import emit_summary
from leadrouter.utils import format_currency, utc_now

logger = logging.getLogger("leadrouter.run")


def _batch_options(config: dict, overrides: dict) -> dict:
    batch = dict(config["batch"])
    for key, value in overrides.items():
        if value is not None:
            batch[key] = value
    return batch


def run_pipeline(
    config_path: str = "config/engine.yaml",
    leads_path: str | None = None,
    dry_run: bool = False,
    sort_by: str | None = None,
    temperature: str | None = None,
    min_score: int | None = None,
    max_results: int | None = None,
    workers: int | None = None,
    json_out: str | None = None,
) -> BatchResult:
    config = load_config(config_path)
    engine_config = engine_config_from(config)
    leads_file = leads_path or config["input"]["leads_file"]
    raw_leads = load_raw_leads(leads_file)
    options = _batch_options(
        config,
        {"sort_by": sort_by, "temperature_filter": temperature, "min_score": min_score, "max_results": max_results},
    )

    started_at = utc_now()
    console = Console()
    with Progress(SpinnerColumn(), TextColumn("[progress.description]{task.description}"), transient=True) as progress:
        progress.add_task(f"Scoring {len(raw_leads)} leads", total=None)
        result = process_batch(raw_leads, options, config=engine_config, now=started_at, workers=workers)
    ended_at = utc_now()

    if not dry_run:
        output = config["output"]
        if output["csv"].get("enabled", True):
            write_leads_csv(output["csv"]["path"], result.leads)
        if output["report"].get("enabled", True):
            generate_markdown_report(
                output_path=output["report"]["path"],
                started_at=started_at,
                ended_at=ended_at,
                result=result,
            )

    if json_out:
        save_result(json_out, result.to_dict())
        logger.info("wrote %d scored leads to %s", len(result.leads), json_out)

    summary_cfg = config["output"]["summary"]
    if summary_cfg.get("enabled", True):
        emit_summary(summary_cfg.get("mode", "stdout"), summary_cfg.get("discord_webhook", ""), result)

    _print_run_table(console, result)
    return result


def _print_run_table(console: Console, result: BatchResult) -> None:
    stats = result.stats
    table = Table(title="Lead Scoring Run Summary")
    table.add_column("Metric")
    table.add_column("Value", justify="right")

    table.add_row("Records", str(stats.total_processed))
    table.add_row("Listed Leads", str(len(result.leads)))
    table.add_row("HOT", str(stats.hot_leads))
    table.add_row("WARM", str(stats.warm_leads))
    table.add_row("COLD", str(stats.cold_leads))
    table.add_row("URGENT", str(stats.urgent_leads))
    table.add_row("Avg Score", str(stats.avg_score))
    table.add_row("Est. Revenue", format_currency(stats.total_estimated_revenue))
    table.add_row("Processing (ms)", str(stats.processing_time_ms))
    for reason, count in sorted(stats.skipped.items()):
        table.add_row(f"  - skipped {reason}", str(count))

    console.print(table)
