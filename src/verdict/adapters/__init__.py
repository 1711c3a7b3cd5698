"""Target adapters: the seam between the engine and the subjects under test."""

from verdict.adapters.base import (
    CancelToken,
    Deadline,
    DispatchingTargetAdapter,
    TargetAdapter,
    run_within_deadline,
)
from verdict.adapters.http import HTTPAdapterSettings, HTTPTargetAdapter
from verdict.adapters.simulated import SimulatedTargetAdapter


__all__ = [
    "CancelToken",
    "Deadline",
    "DispatchingTargetAdapter",
    "HTTPAdapterSettings",
    "HTTPTargetAdapter",
    "SimulatedTargetAdapter",
    "TargetAdapter",
    "run_within_deadline",
]
