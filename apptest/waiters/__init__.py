from .base import (
    Attempt,
    Backoff,
    Clock,
    Outcome,
    Waiter,
    constant_backoff,
    exponential_backoff,
)
from .app import AppDeployedWaiter, classify_app_status
from .crd import CRDEstablishedWaiter

__all__ = [
    "Attempt",
    "Backoff",
    "Clock",
    "constant_backoff",
    "exponential_backoff",
    "Outcome",
    "Waiter",
    "AppDeployedWaiter",
    "classify_app_status",
    "CRDEstablishedWaiter",
]
