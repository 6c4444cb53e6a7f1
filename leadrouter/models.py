from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping


class Temperature(str, Enum):
    HOT = "HOT"
    WARM = "WARM"
    COLD = "COLD"


class Priority(str, Enum):
    URGENT = "URGENT"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


PRIORITY_RANK = {
    Priority.URGENT: 4,
    Priority.HIGH: 3,
    Priority.MEDIUM: 2,
    Priority.LOW: 1,
}


def _pick(data: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return None


def _opt_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _opt_int(value: Any) -> int | None:
    number = _opt_float(value)
    return None if number is None else int(number)


def _opt_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    return number if math.isfinite(number) else None


@dataclass(frozen=True)
class RawLead:
    identifier: str
    business_name: str
    address: str
    facility_type: str
    latitude: float | None
    longitude: float | None
    source: str = "manual_input"
    found_at: str = ""
    phone: str | None = None
    email: str | None = None
    website: str | None = None
    device_count: int | None = None
    last_test_date: str | None = None
    test_due_date: str | None = None
    compliance_status: str | None = None
    days_past_due: int | None = None
    contact_person: str | None = None
    business_size: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RawLead":
        """Build a lead from an upstream record.

        Accepts the camelCase keys emitted by the compliance monitor and the
        web scraper as well as snake_case keys. Optional values that cannot be
        parsed are dropped instead of raising.
        """
        if not isinstance(data, Mapping):
            raise ValueError("Lead record must be a mapping")

        return cls(
            identifier=str(_pick(data, "id", "identifier") or ""),
            business_name=str(_pick(data, "businessName", "business_name") or ""),
            address=str(_pick(data, "address") or ""),
            facility_type=str(_pick(data, "facilityType", "facility_type") or ""),
            latitude=_opt_float(_pick(data, "lat", "latitude")),
            longitude=_opt_float(_pick(data, "lng", "longitude")),
            source=str(_pick(data, "source") or "manual_input"),
            found_at=str(_pick(data, "foundAt", "found_at") or ""),
            phone=_opt_str(_pick(data, "phone")),
            email=_opt_str(_pick(data, "email")),
            website=_opt_str(_pick(data, "website")),
            device_count=_opt_int(_pick(data, "deviceCount", "device_count")),
            last_test_date=_opt_str(_pick(data, "lastTestDate", "last_test_date")),
            test_due_date=_opt_str(_pick(data, "testDueDate", "test_due_date")),
            compliance_status=_opt_str(_pick(data, "complianceStatus", "compliance_status")),
            days_past_due=_opt_int(_pick(data, "daysPastDue", "days_past_due")),
            contact_person=_opt_str(_pick(data, "contactPerson", "contact_person")),
            business_size=_opt_str(_pick(data, "businessSize", "business_size")),
        )

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None


@dataclass(frozen=True)
class ScoringBreakdown:
    compliance: int
    business_type: int
    revenue: int
    distance: int
    contact: int
    urgency: int
    competitive: int

    @property
    def total(self) -> int:
        return (
            self.compliance
            + self.business_type
            + self.revenue
            + self.distance
            + self.contact
            + self.urgency
            + self.competitive
        )

    def to_dict(self) -> dict[str, int]:
        return {
            "complianceScore": self.compliance,
            "businessTypeScore": self.business_type,
            "revenueScore": self.revenue,
            "distanceScore": self.distance,
            "contactScore": self.contact,
            "urgencyScore": self.urgency,
            "competitiveScore": self.competitive,
        }


@dataclass(frozen=True)
class ActionPlan:
    contact_method: str
    timeframe: str
    message: str
    follow_up_schedule: tuple[str, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "contactMethod": self.contact_method,
            "timeframe": self.timeframe,
            "message": self.message,
            "followUpSchedule": list(self.follow_up_schedule),
        }


@dataclass(frozen=True)
class RouteInfo:
    cluster: str
    optimal_visit_time: str
    travel_time_minutes: int
    visit_duration_minutes: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "cluster": self.cluster,
            "optimalVisitTime": self.optimal_visit_time,
            "travelTime": self.travel_time_minutes,
            "visitDuration": self.visit_duration_minutes,
        }


@dataclass(frozen=True)
class ScoredLead:
    identifier: str
    business_name: str
    address: str
    facility_type: str
    source: str
    temperature: Temperature
    priority: Priority
    score: int
    estimated_value: int
    distance_miles: float
    device_count: int
    scoring_breakdown: ScoringBreakdown
    action_plan: ActionPlan
    route_optimization: RouteInfo
    generated_at: str
    phone: str | None = None
    email: str | None = None
    website: str | None = None
    compliance_status: str | None = None
    days_past_due: int | None = None
    contact_person: str | None = None
    business_size: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.identifier,
            "businessName": self.business_name,
            "address": self.address,
            "phone": self.phone,
            "email": self.email,
            "website": self.website,
            "facilityType": self.facility_type,
            "temperature": self.temperature.value,
            "score": self.score,
            "priority": self.priority.value,
            "estimatedValue": self.estimated_value,
            "distance": self.distance_miles,
            "complianceStatus": self.compliance_status,
            "daysPastDue": self.days_past_due,
            "deviceCount": self.device_count,
            "contactPerson": self.contact_person,
            "businessSize": self.business_size,
            "source": self.source,
            "generatedAt": self.generated_at,
            "scoringBreakdown": self.scoring_breakdown.to_dict(),
            "actionPlan": self.action_plan.to_dict(),
            "routeOptimization": self.route_optimization.to_dict(),
        }

    def to_row(self) -> list[str | int | float]:
        return [
            self.generated_at,
            self.identifier,
            self.business_name,
            self.address,
            self.facility_type,
            self.temperature.value,
            self.priority.value,
            self.score,
            self.estimated_value,
            self.distance_miles,
            self.route_optimization.cluster,
            self.action_plan.contact_method,
            self.action_plan.timeframe,
            self.phone or "",
            self.email or "",
            self.source,
        ]


SORT_KEYS = ("score", "distance", "value", "urgency")


@dataclass(frozen=True)
class BatchOptions:
    min_score: int = 30
    max_results: int = 100
    temperature_filter: Temperature | None = None
    sort_by: str = "score"


@dataclass(frozen=True)
class BatchStats:
    total_processed: int = 0
    hot_leads: int = 0
    warm_leads: int = 0
    cold_leads: int = 0
    avg_score: int = 0
    total_estimated_revenue: int = 0
    urgent_leads: int = 0
    processing_time_ms: int = 0
    skipped: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalProcessed": self.total_processed,
            "hotLeads": self.hot_leads,
            "warmLeads": self.warm_leads,
            "coldLeads": self.cold_leads,
            "avgScore": self.avg_score,
            "totalEstimatedRevenue": self.total_estimated_revenue,
            "urgentLeads": self.urgent_leads,
            "processingTime": self.processing_time_ms,
            "skipped": dict(self.skipped),
        }


@dataclass(frozen=True)
class BatchResult:
    stats: BatchStats
    leads: tuple[ScoredLead, ...]
    options: BatchOptions
    generated_at: str
    center: dict[str, float]
    service_radius_miles: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": True,
            "stats": self.stats.to_dict(),
            "leads": [lead.to_dict() for lead in self.leads],
            "processing": {
                "timestamp": self.generated_at,
                "serviceRadius": self.service_radius_miles,
                "centerPoint": dict(self.center),
                "criteria": {
                    "minScore": self.options.min_score,
                    "temperatureFilter": self.options.temperature_filter.value if self.options.temperature_filter else None,
                    "sortBy": self.options.sort_by,
                },
            },
        }


@dataclass(frozen=True)
class LeadAnalysis:
    temperature: Temperature
    priority: Priority
    recommendation: str
    next_action: str
    estimated_value: str
    distance: str

    def to_dict(self) -> dict[str, str]:
        return {
            "temperature": self.temperature.value,
            "priority": self.priority.value,
            "recommendation": self.recommendation,
            "nextAction": self.next_action,
            "estimatedValue": self.estimated_value,
            "distance": self.distance,
        }


@dataclass(frozen=True)
class SingleLeadResult:
    lead: ScoredLead
    analysis: LeadAnalysis

    def to_dict(self) -> dict[str, Any]:
        return {"success": True, "lead": self.lead.to_dict(), "analysis": self.analysis.to_dict()}
