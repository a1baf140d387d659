"""Text dashboard composer for one telemetry frame."""

from __future__ import annotations

from blessed import Terminal

from switop_telemetry.derived import format_memory, format_swap, format_watts
from switop_telemetry.models import ClusterMetrics, Metric

from .models import DashboardData, Frame


LABEL_WIDTH = 30
SECTION_RULE = "─" * 20
PLACEHOLDER = "N/A"


def format_metric(name: str, value: str) -> str:
    padding = max(0, LABEL_WIDTH - len(name))
    return f"{name}{' ' * padding}│ {value}"


def _fmt_residency(metric: Metric | None) -> str:
    if metric is None:
        return PLACEHOLDER
    return f"{metric.value:.2f}%"


def _fmt_frequency(metric: Metric | None) -> str:
    if metric is None:
        return PLACEHOLDER
    return f"{metric.value:.0f} MHz"


def format_cluster(cluster: ClusterMetrics) -> str:
    if cluster.residency is None and cluster.frequency is None:
        return PLACEHOLDER
    return f"{_fmt_residency(cluster.residency)} @ {_fmt_frequency(cluster.frequency)}"


class DashboardRenderer:
    """Lays out header, CPU, GPU, memory and power sections as plain lines.

    Styling comes from the ``blessed`` terminal; a terminal that does not
    style yields the same layout without escape sequences.
    """

    def __init__(self, term: Terminal | None = None) -> None:
        self.term = term or Terminal()

    def render(self, data: DashboardData) -> Frame:
        lines: list[str] = []
        lines.extend(self._header(data))
        lines.extend(self._section("CPU Metrics"))
        lines.append(format_metric("E-CORES Usage", format_cluster(data.e_cluster)))
        lines.append(format_metric("P-CORES Usage", format_cluster(data.p_cluster)))
        lines.append("")
        lines.extend(self._section("GPU Metrics"))
        lines.append(format_metric("GPU Usage", format_cluster(data.gpu)))
        lines.append("")
        lines.extend(self._section("Memory Metrics"))
        lines.append(format_metric("Memory Used", format_memory(data.memory)))
        lines.append(format_metric("Swap Used", format_swap(data.memory)))
        lines.append("")
        lines.extend(self._section("Power Metrics"))
        lines.append(format_metric("CPU Power", format_watts(data.power.cpu_w)))
        lines.append(format_metric("GPU Power", format_watts(data.power.gpu_w)))
        lines.append(format_metric("ANE Power", format_watts(data.power.ane_w)))
        lines.append(format_metric("Combined Power", format_watts(data.power.combined_w)))
        lines.append("")
        return Frame(text="\n".join(lines), sequence=data.sequence)

    def _header(self, data: DashboardData) -> list[str]:
        t = self.term
        return [
            t.bold_cyan("┌────────────────────────────────────────┐"),
            t.bold_cyan("│        System Performance Monitor      │"),
            t.bold_cyan("└────────────────────────────────────────┘"),
            "",
            t.bold_white("System: ") + data.chip_info,
            "",
            t.bold_red("Press Ctrl+C to exit"),
            "",
        ]

    def _section(self, title: str) -> list[str]:
        return [self.term.bold_yellow(f"┌─── {title} {SECTION_RULE}")]
