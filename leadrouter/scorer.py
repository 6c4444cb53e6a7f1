from __future__ import annotations

from datetime import datetime

from leadrouter.config import EngineConfig
from leadrouter.models import Priority, RawLead, ScoredLead, ScoringBreakdown, Temperature
from leadrouter.planner import plan_action
from leadrouter.router import optimize_route
from leadrouter.utils import normalize_facility_type, round_half_up, utc_now

HOT_THRESHOLD = 85
WARM_THRESHOLD = 60

# (days past due strictly greater than, points); first match wins
COMPLIANCE_BRACKETS = ((365, 35), (180, 32), (90, 28), (30, 24), (0, 20))
COMPLIANCE_CURRENT = 10
COMPLIANCE_UNKNOWN = 15

DEVICES_BY_SIZE = {"enterprise": 12, "large": 8, "medium": 4}
# (facility substring, devices); first match wins
DEVICES_BY_FACILITY = (("hospital", 10), ("manufacturing", 10), ("restaurant", 3), ("office", 3))
DEFAULT_DEVICES = 2

# (revenue strictly greater than, points)
REVENUE_BRACKETS = ((5000, 20), (3000, 17), (2000, 14), (1000, 11), (500, 8))
REVENUE_FLOOR = 5

# (distance at most, points)
DISTANCE_BRACKETS = ((3, 10), (7, 9), (12, 7), (18, 5), (25, 3))
DISTANCE_FLOOR = 1


def compliance_score(days_past_due: int | None) -> int:
    if days_past_due is None:
        return COMPLIANCE_UNKNOWN
    for limit, points in COMPLIANCE_BRACKETS:
        if days_past_due > limit:
            return points
    return COMPLIANCE_CURRENT


def business_type_score(facility_type: str, config: EngineConfig) -> int:
    return config.facility_scores.get(normalize_facility_type(facility_type), config.default_facility_score)


def estimate_devices(device_count: int | None, business_size: str | None, facility_type: str) -> int:
    if device_count is not None and device_count > 0:
        return device_count

    size = (business_size or "").strip().lower()
    if size in DEVICES_BY_SIZE:
        return DEVICES_BY_SIZE[size]

    normalized = normalize_facility_type(facility_type)
    for needle, devices in DEVICES_BY_FACILITY:
        if needle in normalized:
            return devices
    return DEFAULT_DEVICES


def revenue_score(estimated_revenue: int) -> int:
    for limit, points in REVENUE_BRACKETS:
        if estimated_revenue > limit:
            return points
    return REVENUE_FLOOR


def distance_score(distance: float) -> int:
    for limit, points in DISTANCE_BRACKETS:
        if distance <= limit:
            return points
    return DISTANCE_FLOOR


def contact_score(lead: RawLead) -> int:
    if lead.contact_person and lead.phone and lead.email:
        return 5
    if lead.phone and lead.email:
        return 4
    if lead.phone or lead.email:
        return 3
    if lead.website:
        return 2
    return 1


def urgency_score(source: str, days_past_due: int | None, facility_type: str) -> int:
    if source == "compliance_monitor" and days_past_due is not None and days_past_due > 90:
        return 3
    if source == "web_scraper" and "new_business" in normalize_facility_type(facility_type):
        return 2
    return 1


def competitive_score(distance: float, type_score: int) -> int:
    if distance <= 10 and type_score >= 20:
        return 2
    if distance <= 15:
        return 1
    return 0


def classify(score: int, days_past_due: int | None) -> tuple[Temperature, Priority]:
    overdue = days_past_due if days_past_due is not None else 0
    if score >= HOT_THRESHOLD:
        return Temperature.HOT, Priority.URGENT if overdue > 365 else Priority.HIGH
    if score >= WARM_THRESHOLD:
        return Temperature.WARM, Priority.HIGH if overdue > 180 else Priority.MEDIUM
    return Temperature.COLD, Priority.LOW


class LeadScorer:
    """Scores raw leads against one service area.

    Holds nothing but the immutable engine configuration, so a single
    instance can be shared across threads.
    """

    def __init__(self, config: EngineConfig | None = None) -> None:
        self.config = config or EngineConfig()

    def breakdown(self, lead: RawLead, distance: float) -> tuple[ScoringBreakdown, int, int]:
        type_points = business_type_score(lead.facility_type, self.config)
        devices = estimate_devices(lead.device_count, lead.business_size, lead.facility_type)
        estimated_revenue = devices * self.config.revenue_per_device

        breakdown = ScoringBreakdown(
            compliance=compliance_score(lead.days_past_due),
            business_type=type_points,
            revenue=revenue_score(estimated_revenue),
            distance=distance_score(distance),
            contact=contact_score(lead),
            urgency=urgency_score(lead.source, lead.days_past_due, lead.facility_type),
            competitive=competitive_score(distance, type_points),
        )
        return breakdown, devices, estimated_revenue

    def score(self, lead: RawLead, now: datetime | None = None, distance: float | None = None) -> ScoredLead:
        if not lead.has_coordinates:
            raise ValueError(f"Lead {lead.identifier!r} has no coordinates")
        if distance is None:
            distance = self.config.service_area.distance_from_hub(lead.latitude, lead.longitude)

        breakdown, devices, estimated_revenue = self.breakdown(lead, distance)
        total = round_half_up(breakdown.total)
        temperature, priority = classify(total, lead.days_past_due)

        return ScoredLead(
            identifier=lead.identifier,
            business_name=lead.business_name,
            address=lead.address,
            facility_type=lead.facility_type,
            source=lead.source,
            temperature=temperature,
            priority=priority,
            score=total,
            estimated_value=estimated_revenue,
            distance_miles=round(distance, 2),
            device_count=devices,
            scoring_breakdown=breakdown,
            action_plan=plan_action(temperature, priority, lead, distance),
            route_optimization=optimize_route(lead, distance),
            generated_at=(now or utc_now()).isoformat(),
            phone=lead.phone,
            email=lead.email,
            website=lead.website,
            compliance_status=lead.compliance_status,
            days_past_due=lead.days_past_due,
            contact_person=lead.contact_person,
            business_size=lead.business_size,
        )
