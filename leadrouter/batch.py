from __future__ import annotations

import logging
import math
import time
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, replace
from datetime import datetime
from functools import reduce
from typing import Any, Mapping, Sequence

from leadrouter.config import EngineConfig
from leadrouter.geo import valid_coordinates
from leadrouter.models import (
    PRIORITY_RANK,
    SORT_KEYS,
    BatchOptions,
    BatchResult,
    BatchStats,
    LeadAnalysis,
    Priority,
    RawLead,
    ScoredLead,
    SingleLeadResult,
    Temperature,
)
from leadrouter.scorer import LeadScorer
from leadrouter.utils import format_currency, round_half_up, utc_now

logger = logging.getLogger("leadrouter.batch")

SKIP_MALFORMED = "malformed_record"
SKIP_NO_COORDINATES = "missing_coordinates"
SKIP_OUT_OF_RADIUS = "out_of_radius"
SKIP_SCORING_ERROR = "scoring_error"
SKIP_LOW_SCORE = "below_min_score"
SKIP_TEMPERATURE = "temperature_filtered"


class InvalidLeadInput(ValueError):
    """Raised for caller mistakes, before any lead is scored."""


@dataclass(frozen=True)
class _Tally:
    kept: int = 0
    hot: int = 0
    warm: int = 0
    cold: int = 0
    urgent: int = 0
    revenue: int = 0
    score_sum: int = 0


def _add(tally: _Tally, lead: ScoredLead) -> _Tally:
    return replace(
        tally,
        kept=tally.kept + 1,
        hot=tally.hot + (lead.temperature == Temperature.HOT),
        warm=tally.warm + (lead.temperature == Temperature.WARM),
        cold=tally.cold + (lead.temperature == Temperature.COLD),
        urgent=tally.urgent + (lead.priority == Priority.URGENT),
        revenue=tally.revenue + lead.estimated_value,
        score_sum=tally.score_sum + lead.score,
    )


SORTERS = {
    "score": lambda leads: sorted(leads, key=lambda lead: lead.score, reverse=True),
    "distance": lambda leads: sorted(leads, key=lambda lead: lead.distance_miles),
    "value": lambda leads: sorted(leads, key=lambda lead: lead.estimated_value, reverse=True),
    "urgency": lambda leads: sorted(leads, key=lambda lead: PRIORITY_RANK[lead.priority], reverse=True),
}


def parse_options(options: BatchOptions | Mapping[str, Any] | None) -> BatchOptions:
    if options is None:
        return BatchOptions()
    if isinstance(options, BatchOptions):
        raw = {
            "minScore": options.min_score,
            "maxResults": options.max_results,
            "temperatureFilter": options.temperature_filter,
            "sortBy": options.sort_by,
        }
    elif isinstance(options, Mapping):
        raw = options
    else:
        raise InvalidLeadInput("options must be a mapping")

    def pick(camel: str, snake: str, default: Any) -> Any:
        for key in (camel, snake):
            if raw.get(key) is not None:
                return raw[key]
        return default

    try:
        min_score = int(pick("minScore", "min_score", 30))
        max_results = int(pick("maxResults", "max_results", 100))
    except (TypeError, ValueError) as exc:
        raise InvalidLeadInput(f"minScore and maxResults must be integers: {exc}") from exc
    if max_results < 0:
        raise InvalidLeadInput("maxResults must be >= 0")

    sort_by = str(pick("sortBy", "sort_by", "score")).lower()
    if sort_by not in SORT_KEYS:
        raise InvalidLeadInput(f"sortBy must be one of: {', '.join(SORT_KEYS)}")

    temperature_filter = pick("temperatureFilter", "temperature_filter", None)
    if temperature_filter is not None:
        try:
            temperature_filter = Temperature(str(getattr(temperature_filter, "value", temperature_filter)).upper())
        except ValueError as exc:
            raise InvalidLeadInput("temperatureFilter must be HOT, WARM or COLD") from exc

    return BatchOptions(
        min_score=min_score,
        max_results=max_results,
        temperature_filter=temperature_filter,
        sort_by=sort_by,
    )


def _evaluate(
    record: RawLead | Mapping[str, Any],
    scorer: LeadScorer,
    options: BatchOptions,
    now: datetime,
) -> tuple[ScoredLead | None, str | None]:
    try:
        lead = record if isinstance(record, RawLead) else RawLead.from_dict(record)
    except ValueError as exc:
        logger.debug("skipping malformed record: %s", exc)
        return None, SKIP_MALFORMED

    if not lead.has_coordinates:
        logger.debug("skipping %s: no coordinates", lead.identifier)
        return None, SKIP_NO_COORDINATES

    if not valid_coordinates(lead.latitude, lead.longitude):
        logger.debug("skipping %s: coordinates out of range", lead.identifier)
        return None, SKIP_MALFORMED

    service_area = scorer.config.service_area
    distance = service_area.distance_from_hub(lead.latitude, lead.longitude)
    if not service_area.within_radius(distance):
        logger.debug("skipping %s: %.2f miles from hub", lead.identifier, distance)
        return None, SKIP_OUT_OF_RADIUS

    try:
        scored = scorer.score(lead, now=now, distance=distance)
    except Exception as exc:  # noqa: BLE001
        logger.warning("scoring failed for %s: %s", lead.identifier, exc)
        return None, SKIP_SCORING_ERROR

    if scored.score < options.min_score:
        return None, SKIP_LOW_SCORE
    if options.temperature_filter is not None and scored.temperature != options.temperature_filter:
        return None, SKIP_TEMPERATURE
    return scored, None


def process_batch(
    leads: Sequence[RawLead | Mapping[str, Any]],
    options: BatchOptions | Mapping[str, Any] | None = None,
    config: EngineConfig | None = None,
    now: datetime | None = None,
    workers: int | None = None,
) -> BatchResult:
    """Score, filter and rank a batch of raw leads.

    Records without coordinates or outside the service radius are skipped, as
    is any record whose scoring raises. ``workers`` > 1 scores leads on a
    thread pool; the result is the same as the sequential run.
    """
    if not isinstance(leads, (list, tuple)) or not leads:
        raise InvalidLeadInput("Invalid leads array provided")
    batch_options = parse_options(options)
    scorer = LeadScorer(config)
    now = now or utc_now()
    started = time.perf_counter()

    def evaluate(record: RawLead | Mapping[str, Any]) -> tuple[ScoredLead | None, str | None]:
        return _evaluate(record, scorer, batch_options, now)

    if workers and workers > 1:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            outcomes = list(pool.map(evaluate, leads))
    else:
        outcomes = [evaluate(record) for record in leads]

    kept = [scored for scored, _ in outcomes if scored is not None]
    skipped = Counter(reason for _, reason in outcomes if reason is not None)
    tally = reduce(_add, kept, _Tally())

    ranked = SORTERS[batch_options.sort_by](kept)[: batch_options.max_results]
    elapsed_ms = round_half_up((time.perf_counter() - started) * 1000)

    stats = BatchStats(
        total_processed=len(leads),
        hot_leads=tally.hot,
        warm_leads=tally.warm,
        cold_leads=tally.cold,
        avg_score=round_half_up(tally.score_sum / tally.kept) if tally.kept else 0,
        total_estimated_revenue=tally.revenue,
        urgent_leads=tally.urgent,
        processing_time_ms=elapsed_ms,
        skipped=dict(sorted(skipped.items())),
    )
    logger.info(
        "scored %d of %d leads (hot=%d warm=%d cold=%d) in %dms",
        tally.kept,
        len(leads),
        tally.hot,
        tally.warm,
        tally.cold,
        elapsed_ms,
    )

    service_area = scorer.config.service_area
    return BatchResult(
        stats=stats,
        leads=tuple(ranked),
        options=batch_options,
        generated_at=now.isoformat(),
        center=service_area.center(),
        service_radius_miles=service_area.radius_miles,
    )


def _require_coordinate(value: Any, name: str) -> float:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise InvalidLeadInput(f"Missing required parameters: business, address, lat, lng ({name})")
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError) as exc:
        raise InvalidLeadInput(f"{name} must be a number") from exc
    if not math.isfinite(number):
        raise InvalidLeadInput(f"{name} must be a finite number")
    return number


def score_single(
    business_name: str | None,
    address: str | None,
    lat: float | str | None,
    lng: float | str | None,
    facility_type: str | None = "commercial",
    config: EngineConfig | None = None,
    now: datetime | None = None,
) -> SingleLeadResult:
    if not business_name or not str(business_name).strip():
        raise InvalidLeadInput("Missing required parameters: business, address, lat, lng (business)")
    if not address or not str(address).strip():
        raise InvalidLeadInput("Missing required parameters: business, address, lat, lng (address)")
    latitude = _require_coordinate(lat, "lat")
    longitude = _require_coordinate(lng, "lng")
    if not valid_coordinates(latitude, longitude):
        raise InvalidLeadInput("lat must be within [-90, 90] and lng within [-180, 180]")

    now = now or utc_now()
    lead = RawLead(
        identifier=f"single_{int(now.timestamp() * 1000)}",
        business_name=str(business_name).strip(),
        address=str(address).strip(),
        facility_type=facility_type or "commercial",
        latitude=latitude,
        longitude=longitude,
        source="manual_input",
        found_at=now.isoformat(),
    )
    scored = LeadScorer(config).score(lead, now=now)
    plan = scored.action_plan

    analysis = LeadAnalysis(
        temperature=scored.temperature,
        priority=scored.priority,
        recommendation=plan.message,
        next_action=f"{plan.contact_method} within {plan.timeframe}",
        estimated_value=format_currency(scored.estimated_value),
        distance=f"{scored.distance_miles} miles",
    )
    return SingleLeadResult(lead=scored, analysis=analysis)
