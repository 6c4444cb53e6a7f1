from __future__ import annotations

from leadrouter.models import RawLead, RouteInfo
from leadrouter.utils import normalize_facility_type, round_half_up

MINUTES_PER_MILE = 3
VISIT_DURATION_MINUTES = 60
DEFAULT_CLUSTER = "Central"
DEFAULT_VISIT_TIME = "10:00"

# evaluated in order, first match wins
CLUSTER_RULES = (
    ("North", lambda lat, lng: lat > 47.2 and lng > -122.25),
    ("South", lambda lat, lng: lat < 47.15 and lng > -122.25),
    ("West", lambda lat, lng: lng < -122.35),
    ("East", lambda lat, lng: lng > -122.15),
)

VISIT_TIME_RULES = (
    ("restaurant", "14:00"),
    ("hospital", "09:00"),
    ("office", "10:00"),
    ("industrial", "08:00"),
)


def assign_cluster(latitude: float, longitude: float) -> str:
    for name, matches in CLUSTER_RULES:
        if matches(latitude, longitude):
            return name
    return DEFAULT_CLUSTER


def optimal_visit_time(facility_type: str) -> str:
    normalized = normalize_facility_type(facility_type)
    for needle, visit_time in VISIT_TIME_RULES:
        if needle in normalized:
            return visit_time
    return DEFAULT_VISIT_TIME


def optimize_route(lead: RawLead, distance: float) -> RouteInfo:
    return RouteInfo(
        cluster=assign_cluster(lead.latitude, lead.longitude),
        optimal_visit_time=optimal_visit_time(lead.facility_type),
        travel_time_minutes=round_half_up(distance * MINUTES_PER_MILE),
        visit_duration_minutes=VISIT_DURATION_MINUTES,
    )
