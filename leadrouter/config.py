from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Mapping

import yaml

from leadrouter.geo import HUB_LATITUDE, HUB_LONGITUDE, SERVICE_RADIUS_MILES, ServiceArea
from leadrouter.models import SORT_KEYS, Temperature
from leadrouter.utils import normalize_facility_type

DEFAULT_FACILITY_SCORES = MappingProxyType(
    {
        "hospital": 25,
        "medical_center": 24,
        "clinic": 22,
        "dental_office": 20,
        "restaurant": 23,
        "food_service": 22,
        "cafeteria": 20,
        "bakery": 19,
        "manufacturing": 21,
        "industrial": 21,
        "processing": 20,
        "warehouse": 18,
        "office_complex": 17,
        "commercial": 16,
        "retail": 15,
        "shopping_center": 19,
        "school": 18,
        "university": 20,
        "government": 16,
        "municipal": 17,
        "hotel": 19,
        "apartment": 16,
        "nursing_home": 22,
        "daycare": 18,
        "other": 12,
    }
)

DEFAULT_FACILITY_SCORE = 12
DEFAULT_REVENUE_PER_DEVICE = 250

SUMMARY_MODES = {"stdout", "discord"}


@dataclass(frozen=True)
class EngineConfig:
    service_area: ServiceArea = field(default_factory=ServiceArea)
    revenue_per_device: int = DEFAULT_REVENUE_PER_DEVICE
    facility_scores: Mapping[str, int] = field(default_factory=lambda: DEFAULT_FACILITY_SCORES)
    default_facility_score: int = DEFAULT_FACILITY_SCORE


def _require_field(section: dict, key: str, section_name: str) -> None:
    if key not in section:
        raise ValueError(f"Missing required field '{section_name}.{key}'")


def _ensure_bool(section: dict, key: str, section_name: str) -> None:
    if key in section and not isinstance(section[key], bool):
        raise ValueError(f"Field '{section_name}.{key}' must be a boolean")


def _ensure_number(section: dict, key: str, section_name: str, minimum: float | None = None) -> None:
    if key not in section:
        return
    value = section[key]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"Field '{section_name}.{key}' must be a number")
    if minimum is not None and value < minimum:
        raise ValueError(f"Field '{section_name}.{key}' must be >= {minimum}")


def _ensure_mapping(config: dict, key: str, section_name: str) -> None:
    if key in config and not isinstance(config[key], dict):
        raise ValueError(f"{section_name}{key} must be a mapping")


def _validate(config: dict) -> None:
    _require_field(config, "engine", "config")
    for top_level in ["engine", "batch", "input", "output"]:
        _ensure_mapping(config, top_level, "")

    engine = config["engine"]
    _require_field(engine, "hub", "engine")
    _require_field(engine, "service_radius_miles", "engine")
    _ensure_number(engine, "service_radius_miles", "engine", minimum=0)
    _ensure_number(engine, "revenue_per_device", "engine", minimum=0)

    if not isinstance(engine["hub"], dict):
        raise ValueError("engine.hub must be a mapping")
    for key in ["latitude", "longitude"]:
        _require_field(engine["hub"], key, "engine.hub")
        _ensure_number(engine["hub"], key, "engine.hub")
    if not -90 <= engine["hub"]["latitude"] <= 90:
        raise ValueError("engine.hub.latitude must be between -90 and 90")
    if not -180 <= engine["hub"]["longitude"] <= 180:
        raise ValueError("engine.hub.longitude must be between -180 and 180")

    if "facility_scores" in engine:
        if not isinstance(engine["facility_scores"], dict):
            raise ValueError("engine.facility_scores must be a mapping of facility type -> int")
        for name, points in engine["facility_scores"].items():
            if not isinstance(name, str):
                raise ValueError("engine.facility_scores keys must be strings")
            if isinstance(points, bool) or not isinstance(points, int):
                raise ValueError(f"engine.facility_scores.{name} must be an integer")

    batch = config.get("batch", {})
    _ensure_number(batch, "min_score", "batch", minimum=0)
    _ensure_number(batch, "max_results", "batch", minimum=0)
    if batch.get("sort_by") is not None and batch["sort_by"] not in SORT_KEYS:
        raise ValueError(f"batch.sort_by must be one of: {', '.join(SORT_KEYS)}")
    temperature = batch.get("temperature_filter")
    if temperature is not None and str(temperature).upper() not in Temperature.__members__:
        raise ValueError("batch.temperature_filter must be HOT, WARM or COLD")

    output = config.get("output", {})
    for output_key in ["csv", "report", "summary"]:
        _ensure_mapping(output, output_key, "output.")
        _ensure_bool(output.get(output_key, {}), "enabled", f"output.{output_key}")
    summary = output.get("summary", {})
    if "mode" in summary and summary["mode"] not in SUMMARY_MODES:
        raise ValueError("output.summary.mode must be 'stdout' or 'discord'")


def _apply_defaults(config: dict) -> dict:
    engine = config["engine"]
    engine.setdefault("revenue_per_device", DEFAULT_REVENUE_PER_DEVICE)
    engine.setdefault("facility_scores", {})

    batch = config.setdefault("batch", {})
    batch.setdefault("min_score", 30)
    batch.setdefault("max_results", 100)
    batch.setdefault("temperature_filter", None)
    batch.setdefault("sort_by", "score")

    config.setdefault("input", {})
    config["input"].setdefault("leads_file", "input/leads.json")

    output = config.setdefault("output", {})
    output.setdefault("csv", {})
    output["csv"].setdefault("enabled", True)
    output["csv"].setdefault("path", "output/scored_leads.csv")
    output.setdefault("report", {})
    output["report"].setdefault("enabled", True)
    output["report"].setdefault("path", "output/last-run-report.md")
    output.setdefault("summary", {})
    output["summary"].setdefault("enabled", True)
    output["summary"].setdefault("mode", "stdout")
    output["summary"].setdefault("discord_webhook", "")

    return config


def default_config() -> dict:
    return _apply_defaults(
        {
            "engine": {
                "hub": {"latitude": HUB_LATITUDE, "longitude": HUB_LONGITUDE},
                "service_radius_miles": SERVICE_RADIUS_MILES,
            }
        }
    )


def load_config(path: str = "config/engine.yaml") -> dict:
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with config_path.open("r", encoding="utf-8") as handle:
        loaded = yaml.safe_load(handle) or {}

    if not isinstance(loaded, dict):
        raise ValueError("Top-level config must be a YAML mapping")

    _validate(loaded)
    return _apply_defaults(loaded)


def engine_config_from(config: dict) -> EngineConfig:
    engine = config["engine"]
    facility_scores = dict(DEFAULT_FACILITY_SCORES)
    for name, points in engine.get("facility_scores", {}).items():
        facility_scores[normalize_facility_type(name)] = points

    return EngineConfig(
        service_area=ServiceArea(
            latitude=float(engine["hub"]["latitude"]),
            longitude=float(engine["hub"]["longitude"]),
            radius_miles=float(engine["service_radius_miles"]),
        ),
        revenue_per_device=int(engine.get("revenue_per_device", DEFAULT_REVENUE_PER_DEVICE)),
        facility_scores=MappingProxyType(facility_scores),
    )
