"""Dashboard runtime: ingestion thread, paced render loop and shutdown handling."""

from __future__ import annotations

import signal
import subprocess
import sys
import threading
from datetime import datetime
from typing import Any, Callable

from switop_core.config import AppConfig
from switop_core.errors import SamplerStartError
from switop_core.logging_setup import get_logger
from switop_core.static_info import StaticInfoProvider
from switop_display import TerminalDisplay
from switop_renderer import DashboardData, DashboardRenderer, Frame
from switop_telemetry import (
    ClusterMetrics,
    LatestRecord,
    SampleRecord,
    StreamSampler,
    build_command,
    compute_memory_usage,
    compute_power,
    extract_all,
    parse_swap_used_mb,
    parse_vm_stat,
)


class SnapshotBuilder:
    """Combines one record with fresh host queries into an immutable snapshot."""

    def __init__(self, provider: StaticInfoProvider, clock: Callable[[], datetime] = datetime.now) -> None:
        self.provider = provider
        self._clock = clock

    def build(self, record: SampleRecord) -> DashboardData:
        metrics = extract_all(record.text)
        vm_stat = self.provider.vm_stat()
        memory = compute_memory_usage(
            parse_vm_stat(vm_stat),
            page_size=self.provider.page_size(vm_stat),
            total_bytes=self.provider.physical_memory(),
            swap_used_mb=parse_swap_used_mb(self.provider.swap_usage()),
        )
        return DashboardData(
            chip_info=self.provider.chip_info(),
            e_cluster=ClusterMetrics(residency=metrics["e_cluster_residency"], frequency=metrics["e_cluster_freq"]),
            p_cluster=ClusterMetrics(residency=metrics["p_cluster_residency"], frequency=metrics["p_cluster_freq"]),
            gpu=ClusterMetrics(residency=metrics["gpu_residency"], frequency=metrics["gpu_freq"]),
            memory=memory,
            power=compute_power(metrics["cpu_power"], metrics["gpu_power"], metrics["ane_power"]),
            sequence=record.sequence,
            timestamp=self._clock(),
        )


class RenderLoop:
    """Draws the newest unseen record at most once per interval."""

    def __init__(
        self,
        slot: LatestRecord,
        builder: SnapshotBuilder,
        renderer: DashboardRenderer,
        display: TerminalDisplay,
        interval_s: float = 0.25,
    ) -> None:
        self.slot = slot
        self.builder = builder
        self.renderer = renderer
        self.display = display
        self.interval_s = interval_s

    def tick(self) -> Frame | None:
        record = self.slot.take()
        if record is None:
            return None
        frame = self.renderer.render(self.builder.build(record))
        self.display.draw(frame)
        return frame

    def run(self, cancel: threading.Event) -> None:
        while not cancel.is_set():
            self.tick()
            cancel.wait(self.interval_s)


class DashboardApp:
    def __init__(
        self,
        config: AppConfig,
        display: TerminalDisplay | None = None,
        provider: StaticInfoProvider | None = None,
        popen: Callable[..., Any] = subprocess.Popen,
        install_signals: bool = True,
    ) -> None:
        self.config = config
        self.display = display or TerminalDisplay()
        self.provider = provider or StaticInfoProvider(gpu_ttl_s=config.cache.gpu_ttl_s)
        self.cancel = threading.Event()
        self.slot = LatestRecord()
        self.logger = get_logger()
        self._popen = popen
        self._install_signals = install_signals
        self.sampler: StreamSampler | None = None

    def request_stop(self, signum: int | None = None, _frame: Any = None) -> None:
        if signum is not None:
            self.logger.info("received signal %s, shutting down", signum, extra={"event": "signal_received"})
        self.cancel.set()

    def _ingest(self, sampler: StreamSampler) -> None:
        try:
            sampler.run(self.cancel)
        finally:
            self.cancel.set()

    def _swap_signal_handlers(self) -> dict[int, Any]:
        previous: dict[int, Any] = {}
        if not self._install_signals:
            return previous
        for signum in (signal.SIGINT, signal.SIGTERM):
            previous[signum] = signal.signal(signum, self.request_stop)
        return previous

    def run(self) -> int:
        telemetry = self.config.telemetry
        sampler = StreamSampler(
            build_command(telemetry.command, telemetry.interval_ms, telemetry.samplers),
            sink=self.slot.publish,
            chunk_size=telemetry.chunk_size,
            popen=self._popen,
        )
        self.sampler = sampler
        loop = RenderLoop(
            self.slot,
            SnapshotBuilder(self.provider),
            DashboardRenderer(self.display.term),
            self.display,
            interval_s=self.config.render.refresh_ms / 1000.0,
        )

        previous_handlers = self._swap_signal_handlers()
        ingest: threading.Thread | None = None
        try:
            try:
                sampler.start()
            except SamplerStartError as exc:
                self.display.restore()
                print(f"Error: {exc}", file=sys.stderr)
                return 1

            ingest = threading.Thread(target=self._ingest, args=(sampler,), name="switop-ingest", daemon=True)
            ingest.start()
            loop.run(self.cancel)
        finally:
            self.cancel.set()
            sampler.stop()
            if ingest is not None:
                ingest.join(timeout=2.0)
            self.display.restore()
            for signum, handler in previous_handlers.items():
                signal.signal(signum, handler)

        self.logger.info(
            "dashboard stopped: %d records, %d frames, %d dropped",
            self.slot.published,
            self.display.frames_drawn,
            self.slot.dropped,
            extra={"event": "dashboard_stopped"},
        )
        return 0


def run_dashboard(config: AppConfig) -> int:
    return DashboardApp(config).run()
