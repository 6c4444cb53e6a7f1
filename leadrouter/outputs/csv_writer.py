from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import Iterable

from leadrouter.models import ScoredLead

logger = logging.getLogger("leadrouter.outputs.csv_writer")

HEADERS = [
    "Generated At",
    "Lead ID",
    "Business",
    "Address",
    "Facility Type",
    "Temperature",
    "Priority",
    "Score",
    "Estimated Value",
    "Distance (mi)",
    "Cluster",
    "Contact Method",
    "Timeframe",
    "Phone",
    "Email",
    "Source",
]


def _existing_header(csv_path: Path) -> list[str] | None:
    if not csv_path.exists() or csv_path.stat().st_size == 0:
        return None
    with csv_path.open("r", encoding="utf-8", newline="") as handle:
        return next(csv.reader(handle), None)


def write_leads_csv(path: str, leads: Iterable[ScoredLead]) -> int:
    """Append scored leads to the CSV at ``path`` and return the row count.

    The header is written when the file is new. Appending to a file with a
    different header raises ValueError.
    """
    csv_path = Path(path)
    csv_path.parent.mkdir(parents=True, exist_ok=True)
    header = _existing_header(csv_path)
    if header is not None and header != HEADERS:
        raise ValueError(f"{path} has unexpected columns; move it aside before appending")

    written = 0
    with csv_path.open("a", encoding="utf-8", newline="") as handle:
        writer = csv.DictWriter(handle, fieldnames=HEADERS)
        if header is None:
            writer.writeheader()
        for lead in leads:
            writer.writerow(dict(zip(HEADERS, lead.to_row())))
            written += 1

    logger.info("appended %d leads to %s", written, csv_path)
    return written


def read_leads_csv(path: str, temperature: str | None = None) -> list[dict[str, str]]:
    csv_path = Path(path)
    if not csv_path.exists():
        return []
    with csv_path.open("r", encoding="utf-8", newline="") as handle:
        rows = list(csv.DictReader(handle))
    if temperature is None:
        return rows
    return [row for row in rows if row.get("Temperature") == temperature.upper()]
