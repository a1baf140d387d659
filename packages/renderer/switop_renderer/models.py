"""Typed renderer models."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from switop_telemetry.models import ClusterMetrics, MemoryUsage, PowerSummary


@dataclass(frozen=True)
class DashboardData:
    chip_info: str
    e_cluster: ClusterMetrics
    p_cluster: ClusterMetrics
    gpu: ClusterMetrics
    memory: MemoryUsage
    power: PowerSummary
    sequence: int
    timestamp: datetime


@dataclass(frozen=True)
class Frame:
    text: str
    sequence: int
