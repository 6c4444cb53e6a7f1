from leadrouter.batch import InvalidLeadInput, process_batch, score_single
from leadrouter.geo import ServiceArea, distance_miles
from leadrouter.models import Priority, RawLead, ScoredLead, Temperature
from leadrouter.scorer import LeadScorer

__all__ = [
    "InvalidLeadInput",
    "LeadScorer",
    "Priority",
    "RawLead",
    "ScoredLead",
    "ServiceArea",
    "Temperature",
    "distance_miles",
    "process_batch",
    "score_single",
]
