from pathlib import Path

import pytest

from leadrouter.config import (
    DEFAULT_FACILITY_SCORES,
    EngineConfig,
    default_config,
    engine_config_from,
    load_config,
)
from leadrouter.geo import ServiceArea

VALID_CONFIG = """
engine:
  hub:
    latitude: 47.1853
    longitude: -122.2928
  service_radius_miles: 25
  facility_scores:
    Car Wash: 14
    hospital: 24
batch:
  min_score: 40
  sort_by: distance
output:
  csv:
    enabled: false
  summary:
    mode: stdout
"""


def test_load_config_valid(tmp_path: Path) -> None:
    cfg_path = tmp_path / "engine.yaml"
    cfg_path.write_text(VALID_CONFIG, encoding="utf-8")

    config = load_config(str(cfg_path))
    assert config["batch"]["min_score"] == 40
    assert config["batch"]["max_results"] == 100
    assert config["output"]["csv"]["path"] == "output/scored_leads.csv"
    assert config["output"]["report"]["enabled"] is True

    engine = engine_config_from(config)
    assert engine.service_area.radius_miles == 25
    assert engine.revenue_per_device == 250
    assert engine.facility_scores["car_wash"] == 14
    assert engine.facility_scores["hospital"] == 24
    assert engine.facility_scores["clinic"] == 22


def test_load_config_missing_required(tmp_path: Path) -> None:
    cfg_path = tmp_path / "bad.yaml"
    cfg_path.write_text("engine: {}\n", encoding="utf-8")

    with pytest.raises(ValueError):
        load_config(str(cfg_path))


@pytest.mark.parametrize(
    "body",
    [
        "batch: {}\n",
        "- just\n- a list\n",
        "engine:\n  hub: {latitude: 95, longitude: 0}\n  service_radius_miles: 20\n",
        "engine:\n  hub: {latitude: 47, longitude: -122}\n  service_radius_miles: far\n",
        "engine:\n  hub: {latitude: 47, longitude: -122}\n  service_radius_miles: 20\nbatch:\n  sort_by: name\n",
        "engine:\n  hub: {latitude: 47, longitude: -122}\n  service_radius_miles: 20\nbatch:\n  temperature_filter: TEPID\n",
        "engine:\n  hub: {latitude: 47, longitude: -122}\n  service_radius_miles: 20\noutput:\n  summary: {mode: slack}\n",
        "engine:\n  hub: {latitude: 47, longitude: -122}\n  service_radius_miles: 20\n  facility_scores: {hospital: high}\n",
    ],
)
def test_load_config_rejects_invalid(tmp_path: Path, body: str) -> None:
    cfg_path = tmp_path / "bad.yaml"
    cfg_path.write_text(body, encoding="utf-8")

    with pytest.raises(ValueError):
        load_config(str(cfg_path))


def test_load_config_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / "nope.yaml"))


def test_default_config_matches_service_hub() -> None:
    engine = engine_config_from(default_config())
    assert engine.service_area.latitude == 47.1853
    assert engine.service_area.longitude == -122.2928
    assert engine.service_area.radius_miles == 20


def test_shipped_config_loads() -> None:
    config = load_config(str(Path(__file__).resolve().parents[1] / "config" / "engine.yaml"))
    assert config["batch"]["sort_by"] == "score"
    assert engine_config_from(config).service_area.radius_miles == 20


def test_engine_config_defaults() -> None:
    engine = EngineConfig()
    assert engine.service_area == ServiceArea()
    assert engine.revenue_per_device == 250
    assert engine.default_facility_score == 12
    assert engine.facility_scores["hospital"] == 25
    assert dict(engine.facility_scores) == dict(DEFAULT_FACILITY_SCORES)
    with pytest.raises(TypeError):
        engine.facility_scores["hospital"] = 1
