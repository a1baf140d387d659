"""Pattern search for known metrics inside free-form telemetry text.

Every metric has a fixed textual shape, ``<label>: <number> <unit>``. The
search runs over a whole record because related readings (for example a
cluster's frequency and its residency) sit on different lines of the same
sample.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Iterator

from .models import Metric, Unit


@dataclass(frozen=True)
class MetricPattern:
    name: str
    label: str
    unit: Unit

    @property
    def regex(self) -> re.Pattern[str]:
        return _compiled(self.label)


@dataclass(frozen=True)
class Token:
    label: str
    value: float
    unit: Unit


_REGEX_CACHE: dict[str, re.Pattern[str]] = {}

# label, ':' delimiter, value, unit
_LINE_RE = re.compile(
    r"^[ \t]*(?P<label>[A-Za-z][^:\n]*?):[ \t]*(?P<value>\d+(?:\.\d+)?)[ \t]*(?P<unit>MHz|mW|%)",
    re.MULTILINE,
)


def _compiled(label: str) -> re.Pattern[str]:
    regex = _REGEX_CACHE.get(label)
    if regex is None:
        regex = re.compile(r"(?<![\w-])" + re.escape(label) + r":[ \t]*(?P<value>[^\s%]*)")
        _REGEX_CACHE[label] = regex
    return regex


E_CLUSTER_FREQ = MetricPattern("e_cluster_freq", "E-Cluster HW active frequency", Unit.MHZ)
E_CLUSTER_RESIDENCY = MetricPattern("e_cluster_residency", "E-Cluster HW active residency", Unit.PERCENT)
P_CLUSTER_FREQ = MetricPattern("p_cluster_freq", "P-Cluster HW active frequency", Unit.MHZ)
P_CLUSTER_RESIDENCY = MetricPattern("p_cluster_residency", "P-Cluster HW active residency", Unit.PERCENT)
GPU_FREQ = MetricPattern("gpu_freq", "GPU HW active frequency", Unit.MHZ)
GPU_RESIDENCY = MetricPattern("gpu_residency", "GPU HW active residency", Unit.PERCENT)
CPU_POWER = MetricPattern("cpu_power", "CPU Power", Unit.MILLIWATT)
GPU_POWER = MetricPattern("gpu_power", "GPU Power", Unit.MILLIWATT)
ANE_POWER = MetricPattern("ane_power", "ANE Power", Unit.MILLIWATT)

PATTERNS: dict[str, MetricPattern] = {
    p.name: p
    for p in (
        E_CLUSTER_FREQ,
        E_CLUSTER_RESIDENCY,
        P_CLUSTER_FREQ,
        P_CLUSTER_RESIDENCY,
        GPU_FREQ,
        GPU_RESIDENCY,
        CPU_POWER,
        GPU_POWER,
        ANE_POWER,
    )
}


def _to_value(raw: str) -> float:
    try:
        value = float(raw)
    except ValueError:
        return 0.0
    if not math.isfinite(value) or value < 0:
        return 0.0
    return value


def extract(text: str, pattern: MetricPattern) -> Metric | None:
    """Return the first reading for ``pattern`` in ``text``.

    ``None`` means the label does not occur at all. A label followed by
    something that is not a number yields a zero reading.
    """
    match = pattern.regex.search(text)
    if match is None:
        return None
    return Metric(name=pattern.name, value=_to_value(match.group("value")), unit=pattern.unit)


def extract_all(text: str) -> dict[str, Metric | None]:
    return {name: extract(text, pattern) for name, pattern in PATTERNS.items()}


def tokenize(text: str) -> Iterator[Token]:
    """Yield every ``label: value unit`` line in ``text``, known label or not."""
    for match in _LINE_RE.finditer(text):
        yield Token(
            label=match.group("label").strip(),
            value=float(match.group("value")),
            unit=Unit(match.group("unit")),
        )
