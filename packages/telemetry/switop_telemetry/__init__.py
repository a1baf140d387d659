"""Telemetry stream ingestion, metric extraction and derived metrics."""

from .derived import (
    compute_memory_usage,
    compute_power,
    format_memory,
    format_swap,
    format_watts,
    parse_swap_used_mb,
    parse_vm_stat,
)
from .extractor import PATTERNS, MetricPattern, Token, extract, extract_all, tokenize
from .models import ClusterMetrics, MemoryUsage, Metric, PageCounts, PowerSummary, SampleRecord, SamplerState, Unit
from .sampler import LatestRecord, StreamSampler, build_command

__all__ = [
    "ClusterMetrics",
    "LatestRecord",
    "MemoryUsage",
    "Metric",
    "MetricPattern",
    "PATTERNS",
    "PageCounts",
    "PowerSummary",
    "SampleRecord",
    "SamplerState",
    "StreamSampler",
    "Token",
    "Unit",
    "build_command",
    "compute_memory_usage",
    "compute_power",
    "extract",
    "extract_all",
    "format_memory",
    "format_swap",
    "format_watts",
    "parse_swap_used_mb",
    "parse_vm_stat",
    "tokenize",
]
