import math
from dataclasses import replace
from datetime import datetime, timezone

import pytest

from leadrouter.batch import SORTERS, InvalidLeadInput, parse_options, process_batch, score_single
from leadrouter.geo import HUB_LATITUDE, HUB_LONGITUDE
from leadrouter.models import BatchOptions, Priority, Temperature
from leadrouter.scorer import LeadScorer

NOW = datetime(2026, 3, 2, 15, 30, tzinfo=timezone.utc)


def _north_of_hub(miles: float) -> float:
    return HUB_LATITUDE + math.degrees(miles / 3959)


def _record(identifier: str, **overrides) -> dict:
    record = {
        "id": identifier,
        "businessName": f"Business {identifier}",
        "address": "1 Meridian Ave",
        "facilityType": "commercial",
        "lat": HUB_LATITUDE,
        "lng": HUB_LONGITUDE,
        "source": "manual_input",
        "foundAt": "2026-03-01T08:00:00Z",
    }
    record.update(overrides)
    return record


def _hot_hospital(identifier: str = "hot", **overrides) -> dict:
    return _record(
        identifier,
        facilityType="hospital",
        daysPastDue=400,
        contactPerson="Dana",
        phone="253-555-0100",
        email="dana@hospital.test",
        source="compliance_monitor",
        **overrides,
    )


def test_rejects_empty_or_non_list_input() -> None:
    with pytest.raises(InvalidLeadInput):
        process_batch([])
    with pytest.raises(InvalidLeadInput):
        process_batch({"leads": []})
    with pytest.raises(InvalidLeadInput):
        process_batch("leads.json")


def test_rejects_bad_options() -> None:
    with pytest.raises(InvalidLeadInput):
        parse_options({"sortBy": "alphabetical"})
    with pytest.raises(InvalidLeadInput):
        parse_options({"temperatureFilter": "LUKEWARM"})
    with pytest.raises(InvalidLeadInput):
        parse_options({"maxResults": -1})
    with pytest.raises(InvalidLeadInput):
        parse_options({"minScore": "lots"})


def test_parse_options_defaults_and_aliases() -> None:
    assert parse_options(None) == BatchOptions()
    options = parse_options({"min_score": 50, "temperatureFilter": "hot", "sortBy": "Distance"})
    assert options.min_score == 50
    assert options.temperature_filter == Temperature.HOT
    assert options.sort_by == "distance"
    assert parse_options(options) == options


def test_lead_just_outside_radius_is_excluded() -> None:
    leads = [
        _hot_hospital("outside", lat=_north_of_hub(20.01)),
        _hot_hospital("inside", lat=_north_of_hub(19.99)),
    ]
    result = process_batch(leads, now=NOW)

    assert [lead.identifier for lead in result.leads] == ["inside"]
    assert result.stats.total_processed == 2
    assert result.stats.skipped == {"out_of_radius": 1}


def test_far_retail_lead_excluded_from_batch_but_scored_alone() -> None:
    far_lat = _north_of_hub(22)
    record = _record("far", facilityType="retail", lat=far_lat)
    result = process_batch([record, _record("near")], options={"minScore": 0}, now=NOW)
    assert [lead.identifier for lead in result.leads] == ["near"]

    single = score_single("Far Retail", "77 Outskirts Rd", far_lat, HUB_LONGITUDE, "retail", now=NOW)
    assert single.lead.scoring_breakdown.distance == 3
    assert single.lead.scoring_breakdown.competitive == 0
    assert single.lead.distance_miles == pytest.approx(22, abs=0.01)


def test_malformed_records_are_skipped() -> None:
    leads = [
        _record("no-lat", lat=None),
        {"id": "junk-coords", "lat": "north", "lng": "west"},
        "not a record",
        _hot_hospital(),
    ]
    result = process_batch(leads, now=NOW)

    assert [lead.identifier for lead in result.leads] == ["hot"]
    assert result.stats.total_processed == 4
    assert result.stats.skipped == {"malformed_record": 1, "missing_coordinates": 2}


def test_non_finite_and_out_of_range_coordinates_are_skipped() -> None:
    leads = [
        _hot_hospital("nan", lat="NaN", lng="NaN"),
        _hot_hospital("inf", lat=float("inf")),
        _hot_hospital("polar", lat=120.0),
        _hot_hospital(),
    ]
    result = process_batch(leads, now=NOW)

    assert [lead.identifier for lead in result.leads] == ["hot"]
    assert result.stats.total_processed == 4
    assert result.stats.skipped == {"malformed_record": 1, "missing_coordinates": 2}


def test_overflowing_optional_numbers_do_not_fail_the_batch() -> None:
    leads = [
        _record("huge", facilityType="hospital", daysPastDue="1e400", deviceCount=10**400),
        _hot_hospital(),
    ]
    result = process_batch(leads, options={"minScore": 0}, now=NOW, workers=2)

    by_id = {lead.identifier: lead for lead in result.leads}
    assert set(by_id) == {"huge", "hot"}
    assert by_id["huge"].days_past_due is None
    assert by_id["huge"].scoring_breakdown.compliance == 15
    assert result.stats.skipped == {}


def test_scoring_failure_only_skips_that_record(monkeypatch) -> None:
    original = LeadScorer.score

    def flaky_score(self, lead, now=None, distance=None):
        if lead.identifier == "boom":
            raise RuntimeError("bad record")
        return original(self, lead, now=now, distance=distance)

    monkeypatch.setattr(LeadScorer, "score", flaky_score)
    result = process_batch([_record("boom"), _hot_hospital()], now=NOW)

    assert [lead.identifier for lead in result.leads] == ["hot"]
    assert result.stats.skipped == {"scoring_error": 1}


def test_min_score_and_temperature_filter() -> None:
    leads = [_hot_hospital(), _record("cold")]

    result = process_batch(leads, options={"minScore": 60}, now=NOW)
    assert [lead.identifier for lead in result.leads] == ["hot"]
    assert result.stats.skipped == {"below_min_score": 1}

    result = process_batch(leads, options={"temperatureFilter": "COLD"}, now=NOW)
    assert [lead.identifier for lead in result.leads] == ["cold"]
    assert result.leads[0].temperature == Temperature.COLD


def test_stats_fold_over_full_kept_set() -> None:
    leads = [
        _hot_hospital("a"),
        _record("b", facilityType="restaurant", daysPastDue=200, phone="253-555-0101", email="b@diner.test"),
        _record("c"),
    ]
    result = process_batch(leads, options={"maxResults": 1}, now=NOW)
    scores = {lead_id: LeadScorer().score(lead_from(record), now=NOW).score for lead_id, record in zip("abc", leads)}

    assert len(result.leads) == 1
    assert result.leads[0].identifier == "a"
    assert result.stats.hot_leads == 1
    assert result.stats.warm_leads == 1
    assert result.stats.cold_leads == 1
    assert result.stats.urgent_leads == 1
    assert result.stats.total_estimated_revenue == 2500 + 750 + 500
    assert result.stats.avg_score == math.floor(sum(scores.values()) / 3 + 0.5)


def lead_from(record: dict):
    from leadrouter.models import RawLead

    return RawLead.from_dict(record)


def test_sort_by_score_descending() -> None:
    base = LeadScorer().score(lead_from(_record("x")), now=NOW)
    leads = [replace(base, identifier=str(score), score=score) for score in [40, 90, 60]]
    assert [lead.score for lead in SORTERS["score"](leads)] == [90, 60, 40]


def test_sort_orders() -> None:
    leads = [
        _record("far-cold", lat=_north_of_hub(12)),
        _hot_hospital("hot"),
        _record("warm", facilityType="manufacturing", daysPastDue=200, businessSize="enterprise", lat=_north_of_hub(4)),
    ]

    by_distance = process_batch(leads, options={"sortBy": "distance"}, now=NOW)
    assert [lead.identifier for lead in by_distance.leads] == ["hot", "warm", "far-cold"]

    by_value = process_batch(leads, options={"sortBy": "value"}, now=NOW)
    assert [lead.estimated_value for lead in by_value.leads] == [3000, 2500, 500]

    by_urgency = process_batch(leads, options={"sortBy": "urgency"}, now=NOW)
    assert by_urgency.leads[0].priority == Priority.URGENT
    assert by_urgency.leads[-1].priority == Priority.LOW

    by_score = process_batch(leads, now=NOW)
    scores = [lead.score for lead in by_score.leads]
    assert scores == sorted(scores, reverse=True)


def test_parallel_scoring_matches_sequential() -> None:
    leads = [_record(str(i), lat=_north_of_hub(i), daysPastDue=i * 40) for i in range(15)]
    sequential = process_batch(leads, options={"minScore": 0}, now=NOW)
    parallel = process_batch(leads, options={"minScore": 0}, now=NOW, workers=4)

    assert parallel.leads == sequential.leads
    assert replace(parallel.stats, processing_time_ms=0) == replace(sequential.stats, processing_time_ms=0)


def test_result_payload_shape() -> None:
    payload = process_batch([_hot_hospital()], now=NOW).to_dict()

    assert payload["success"] is True
    assert set(payload["stats"]) >= {
        "totalProcessed",
        "hotLeads",
        "warmLeads",
        "coldLeads",
        "avgScore",
        "totalEstimatedRevenue",
        "urgentLeads",
        "processingTime",
    }
    lead = payload["leads"][0]
    assert lead["temperature"] == "HOT"
    assert lead["scoringBreakdown"]["complianceScore"] == 35
    assert lead["routeOptimization"]["visitDuration"] == 60
    assert payload["processing"]["serviceRadius"] == 20
    assert payload["processing"]["centerPoint"] == {"lat": 47.1853, "lng": -122.2928}


def test_single_minimal_call() -> None:
    result = score_single("Joe's Diner", "210 S Meridian, Puyallup", HUB_LATITUDE, HUB_LONGITUDE, now=NOW)
    lead = result.lead

    assert lead.facility_type == "commercial"
    assert lead.scoring_breakdown.business_type == 16
    assert lead.device_count == 2
    assert lead.distance_miles == 0
    assert lead.score == lead.scoring_breakdown.total
    assert lead.source == "manual_input"
    assert result.analysis.estimated_value == "$500"
    assert result.analysis.distance.endswith("miles")
    assert result.analysis.next_action == "email within 2weeks"
    assert result.to_dict()["analysis"]["temperature"] == "COLD"


def test_single_call_formats_thousands() -> None:
    result = score_single("Mercy Clinic", "5 Hill St", HUB_LATITUDE, HUB_LONGITUDE, "hospital", now=NOW)
    assert result.analysis.estimated_value == "$2,500"


@pytest.mark.parametrize(
    "business, address, lat, lng",
    [
        (None, "1 Main", 47.1, -122.2),
        ("  ", "1 Main", 47.1, -122.2),
        ("Diner", "", 47.1, -122.2),
        ("Diner", "1 Main", None, -122.2),
        ("Diner", "1 Main", 47.1, ""),
        ("Diner", "1 Main", "north", -122.2),
        ("Diner", "1 Main", "nan", HUB_LONGITUDE),
        ("Diner", "1 Main", HUB_LATITUDE, "inf"),
        ("Diner", "1 Main", float("-inf"), HUB_LONGITUDE),
        ("Diner", "1 Main", 91, HUB_LONGITUDE),
        ("Diner", "1 Main", HUB_LATITUDE, -181),
    ],
)
def test_single_call_rejects_missing_fields(business, address, lat, lng) -> None:
    with pytest.raises(InvalidLeadInput):
        score_single(business, address, lat, lng)
