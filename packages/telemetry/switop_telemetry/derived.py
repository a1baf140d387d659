"""Memory and power figures computed from already-extracted raw values."""

from __future__ import annotations

import re

from .models import Metric, MemoryUsage, PageCounts, PowerSummary


GIB = 1024 * 1024 * 1024

_VM_STAT_LABELS = {
    "Pages active:": "active",
    "Pages wired down:": "wired",
    "Pages stored in compressor:": "compressed",
    "File-backed pages:": "cached",
}
_SWAP_USED_RE = re.compile(r"used = (\d+\.\d+)M")


def _page_count(line: str) -> int:
    raw = line.split(":", 1)[1].strip().replace(".", "")
    try:
        return int(raw)
    except ValueError:
        return 0


def parse_vm_stat(text: str) -> PageCounts:
    counts = {"active": 0, "wired": 0, "compressed": 0, "cached": 0}
    for line in text.splitlines():
        for label, key in _VM_STAT_LABELS.items():
            if label in line:
                counts[key] = _page_count(line)
                break
    return PageCounts(**counts)


def parse_swap_used_mb(text: str) -> float:
    match = _SWAP_USED_RE.search(text)
    if match is None:
        return 0.0
    return float(match.group(1))


def compute_memory_usage(pages: PageCounts, page_size: int, total_bytes: int, swap_used_mb: float = 0.0) -> MemoryUsage:
    app_memory = (pages.active + pages.wired) * page_size
    used_memory = app_memory + pages.compressed * page_size + pages.cached * page_size
    used_gb = used_memory / GIB
    total_gb = total_bytes / GIB
    # Displayed figure is used minus total.
    return MemoryUsage(
        used_gb=used_gb,
        total_gb=total_gb,
        reported_gb=used_gb - total_gb,
        swap_used_mb=swap_used_mb,
    )


def _milliwatts(metric: Metric | None) -> float:
    return metric.value if metric is not None else 0.0


def _watts(metric: Metric | None) -> float | None:
    return metric.value / 1000.0 if metric is not None else None


def compute_power(cpu: Metric | None, gpu: Metric | None, ane: Metric | None) -> PowerSummary:
    total_mw = _milliwatts(cpu) + _milliwatts(gpu) + _milliwatts(ane)
    return PowerSummary(
        cpu_w=_watts(cpu),
        gpu_w=_watts(gpu),
        ane_w=_watts(ane),
        combined_w=total_mw / 1000.0,
    )


def format_watts(value: float | None) -> str:
    if value is None:
        return "N/A"
    return f"{value:.2f} W"


def format_memory(usage: MemoryUsage) -> str:
    return f"{usage.reported_gb:.2f} GB used of {usage.total_gb:.2f} GB"


def format_swap(usage: MemoryUsage) -> str:
    return f"{usage.swap_used_mb:.0f} MB"
