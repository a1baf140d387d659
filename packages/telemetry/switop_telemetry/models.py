"""Typed telemetry models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Unit(str, Enum):
    MHZ = "MHz"
    PERCENT = "%"
    MILLIWATT = "mW"


class SamplerState(str, Enum):
    STARTING = "Starting"
    STREAMING = "Streaming"
    TERMINATED = "Terminated"


@dataclass(frozen=True)
class SampleRecord:
    text: str
    sequence: int
    received_at: float


@dataclass(frozen=True)
class Metric:
    name: str
    value: float
    unit: Unit


@dataclass(frozen=True)
class ClusterMetrics:
    residency: Metric | None
    frequency: Metric | None


@dataclass(frozen=True)
class PowerSummary:
    cpu_w: float | None
    gpu_w: float | None
    ane_w: float | None
    combined_w: float


@dataclass(frozen=True)
class PageCounts:
    active: int = 0
    wired: int = 0
    compressed: int = 0
    cached: int = 0


@dataclass(frozen=True)
class MemoryUsage:
    used_gb: float
    total_gb: float
    reported_gb: float
    swap_used_mb: float
