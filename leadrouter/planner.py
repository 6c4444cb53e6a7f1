from __future__ import annotations

from leadrouter.models import ActionPlan, Priority, RawLead, Temperature

HOT_FOLLOW_UP = (
    "Day 1: Phone call",
    "Day 2: Site visit if no response",
    "Day 3: Follow-up email with compliance info",
)
WARM_FOLLOW_UP = (
    "Week 1: Initial contact",
    "Week 2: Follow-up call",
    "Week 4: Site visit offer",
)
COLD_FOLLOW_UP = (
    "Month 1: Educational email",
    "Month 3: Service reminder",
    "Month 6: Compliance check-in",
)


def _plan_hot(priority: Priority, lead: RawLead) -> ActionPlan:
    if lead.days_past_due is not None:
        overdue = f"is {lead.days_past_due} days overdue"
    else:
        overdue = "is overdue"
    return ActionPlan(
        contact_method="phone" if lead.phone else "visit",
        timeframe="24h" if priority == Priority.URGENT else "48h",
        message=(
            f"URGENT: {lead.business_name} {overdue} for backflow testing. "
            "Compliance violation - immediate action required."
        ),
        follow_up_schedule=HOT_FOLLOW_UP,
    )


def _plan_warm(priority: Priority, lead: RawLead) -> ActionPlan:
    return ActionPlan(
        contact_method="email" if lead.email else "phone",
        timeframe="48h" if priority == Priority.HIGH else "1week",
        message=(
            f"Professional backflow testing services available for {lead.business_name}. "
            "Ensure compliance and avoid penalties."
        ),
        follow_up_schedule=WARM_FOLLOW_UP,
    )


def _plan_cold(priority: Priority, lead: RawLead) -> ActionPlan:
    return ActionPlan(
        contact_method="email",
        timeframe="2weeks",
        message=f"Educational outreach about backflow testing requirements and benefits for {lead.business_name}.",
        follow_up_schedule=COLD_FOLLOW_UP,
    )


PLANNERS = {
    Temperature.HOT: _plan_hot,
    Temperature.WARM: _plan_warm,
    Temperature.COLD: _plan_cold,
}


def plan_action(temperature: Temperature, priority: Priority, lead: RawLead, distance: float) -> ActionPlan:
    # no plan uses distance yet
    try:
        planner = PLANNERS[Temperature(temperature)]
    except (KeyError, ValueError) as exc:
        raise ValueError(f"No action plan for temperature {temperature!r}") from exc
    return planner(Priority(priority), lead)
