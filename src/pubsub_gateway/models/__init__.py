"""
Response models and pull outcomes.
"""
from .results import AckFailed, NoMessages, PullResult, PullSucceeded
from .schemas import HealthResponse, SubscriberInfo, SubscriberListResponse

__all__ = [
    "AckFailed",
    "NoMessages",
    "PullResult",
    "PullSucceeded",
    "HealthResponse",
    "SubscriberInfo",
    "SubscriberListResponse",
]
