"""Run metrics."""

from .aggregator import aggregate, nearest_rank, overall_status, response_time_stats, summarize


__all__ = [
    "aggregate",
    "nearest_rank",
    "overall_status",
    "response_time_stats",
    "summarize",
]
