import io
import os
import signal
import sys
import threading
import time
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "apps" / "terminal"))
sys.path.insert(0, str(ROOT / "packages" / "core"))
sys.path.insert(0, str(ROOT / "packages" / "telemetry"))
sys.path.insert(0, str(ROOT / "packages" / "renderer"))
sys.path.insert(0, str(ROOT / "packages" / "display"))

from blessed import Terminal

from switop_app.app import DashboardApp, RenderLoop, SnapshotBuilder
from switop_core.config import AppConfig
from switop_core.static_info import GPU_CORES_UNKNOWN, StaticInfoCache, StaticInfoProvider
from switop_display import TerminalDisplay
from switop_renderer import DashboardRenderer
from switop_telemetry import LatestRecord, SampleRecord, SamplerState


SAMPLE = (ROOT / "tests" / "samples" / "powermetrics_sample.txt").read_bytes()
VM_STAT = (ROOT / "tests" / "samples" / "vm_stat.txt").read_text(encoding="utf-8")

_OUTPUTS = {
    ("/usr/sbin/sysctl", ("-n", "machdep.cpu.brand_string")): "Apple M2\n",
    ("/usr/sbin/sysctl", ("-n", "hw.perflevel1.physicalcpu", "hw.perflevel0.physicalcpu")): "4\n4\n",
    ("/usr/sbin/sysctl", ("-n", "hw.memsize")): "34359738368\n",
    ("/usr/sbin/sysctl", ("-n", "vm.swapusage")): "total = 2048.00M  used = 512.00M  free = 1536.00M",
    ("/usr/sbin/system_profiler", ("SPDisplaysDataType",)): "Total Number of Cores: 10\n",
    ("/usr/bin/vm_stat", ()): VM_STAT,
}


def _provider():
    return StaticInfoProvider(
        runner=lambda path, args: _OUTPUTS.get((path, tuple(args)), ""),
        cache=StaticInfoCache(sentinel=GPU_CORES_UNKNOWN),
    )


def _display():
    return TerminalDisplay(term=Terminal(force_styling=None), stream=io.StringIO())


class _BlockingStdout:
    """Hands out scripted chunks, then blocks until the process is terminated."""

    def __init__(self, chunks, closed):
        self.chunks = list(chunks)
        self.terminated = closed
        self.closed = False

    def read(self, size):
        if self.chunks:
            return self.chunks.pop(0)
        self.terminated.wait(5.0)
        return b""

    def close(self):
        self.closed = True


class _FakeProcess:
    def __init__(self, chunks):
        self.closed = threading.Event()
        self.stdout = _BlockingStdout(chunks, self.closed)
        self.returncode = None

    def poll(self):
        return self.returncode

    def terminate(self):
        self.returncode = -15
        self.closed.set()

    def kill(self):
        self.terminate()

    def wait(self, timeout=None):
        return self.returncode


def _config(refresh_ms=50):
    cfg = AppConfig()
    cfg.render.refresh_ms = refresh_ms
    return cfg


def _wait_for(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return False


class SnapshotAndLoopTests(unittest.TestCase):
    def test_snapshot_from_record(self):
        record = SampleRecord(text=SAMPLE.decode("utf-8"), sequence=3, received_at=0.0)
        data = SnapshotBuilder(_provider()).build(record)
        self.assertEqual(data.chip_info, "Apple M2 (cores: 4E+4P+10GPU)")
        self.assertEqual(data.e_cluster.frequency.value, 1020.0)
        self.assertAlmostEqual(data.power.combined_w, 2.3)
        self.assertEqual(data.power.ane_w, 0.0)
        self.assertEqual(data.memory.total_gb, 32.0)
        self.assertEqual(data.memory.swap_used_mb, 512.0)
        self.assertEqual(data.sequence, 3)

    def test_partial_record_still_renders(self):
        record = SampleRecord(text="GPU Power: 250 mW\n", sequence=1, received_at=0.0)
        slot = LatestRecord()
        slot.publish(record)
        display = _display()
        loop = RenderLoop(slot, SnapshotBuilder(_provider()), DashboardRenderer(display.term), display)
        frame = loop.tick()
        self.assertIsNotNone(frame)
        self.assertIn("N/A", frame.text)
        self.assertIn("0.25 W", frame.text)
        self.assertIsNone(loop.tick())
        self.assertEqual(display.frames_drawn, 1)

    def test_only_newest_record_is_drawn(self):
        slot = LatestRecord()
        for seq in (1, 2, 3):
            slot.publish(SampleRecord(text=f"CPU Power: {seq}000 mW\n", sequence=seq, received_at=0.0))
        display = _display()
        loop = RenderLoop(slot, SnapshotBuilder(_provider()), DashboardRenderer(display.term), display)
        frame = loop.tick()
        self.assertEqual(frame.sequence, 3)
        self.assertIn("3.00 W", frame.text)


class DashboardAppTests(unittest.TestCase):
    def test_spawn_failure_exits_with_one(self):
        def _failing_popen(argv, **kwargs):
            raise PermissionError(13, "Permission denied", argv[0])

        display = _display()
        app = DashboardApp(_config(), display=display, provider=_provider(), popen=_failing_popen, install_signals=False)
        stderr = io.StringIO()
        original = sys.stderr
        sys.stderr = stderr
        try:
            code = app.run()
        finally:
            sys.stderr = original

        self.assertEqual(code, 1)
        self.assertEqual(app.sampler.state, SamplerState.TERMINATED)
        self.assertEqual(display.restore_count, 1)
        self.assertEqual(display.frames_drawn, 0)
        self.assertIn("failed to start telemetry source", stderr.getvalue())

    def test_interrupt_restores_cursor_once_and_exits_zero(self):
        process = _FakeProcess([SAMPLE])
        display = _display()
        app = DashboardApp(
            _config(),
            display=display,
            provider=_provider(),
            popen=lambda argv, **kwargs: process,
            install_signals=False,
        )
        result = {}
        runner = threading.Thread(target=lambda: result.setdefault("code", app.run()))
        runner.start()

        self.assertTrue(_wait_for(lambda: display.frames_drawn >= 1))
        app.request_stop(2)
        runner.join(5.0)

        self.assertFalse(runner.is_alive())
        self.assertEqual(result["code"], 0)
        self.assertEqual(display.restore_count, 1)
        self.assertEqual(process.returncode, -15)
        self.assertEqual(app.sampler.state, SamplerState.TERMINATED)

    def test_sigint_stops_dashboard_and_restores_handlers(self):
        process = _FakeProcess([SAMPLE])
        display = _display()
        app = DashboardApp(
            _config(),
            display=display,
            provider=_provider(),
            popen=lambda argv, **kwargs: process,
        )
        previous_int = signal.getsignal(signal.SIGINT)
        previous_term = signal.getsignal(signal.SIGTERM)
        timer = threading.Timer(0.3, os.kill, args=(os.getpid(), signal.SIGINT))
        timer.start()
        try:
            code = app.run()
        finally:
            timer.cancel()

        self.assertEqual(code, 0)
        self.assertEqual(display.restore_count, 1)
        self.assertEqual(process.returncode, -15)
        self.assertIs(signal.getsignal(signal.SIGINT), previous_int)
        self.assertIs(signal.getsignal(signal.SIGTERM), previous_term)

    def test_source_exit_ends_dashboard(self):
        class _EofStdout:
            def read(self, size):
                return b""

            def close(self):
                pass

        class _ExitedProcess(_FakeProcess):
            def __init__(self):
                super().__init__([])
                self.stdout = _EofStdout()
                self.returncode = 0

        display = _display()
        app = DashboardApp(
            _config(),
            display=display,
            provider=_provider(),
            popen=lambda argv, **kwargs: _ExitedProcess(),
            install_signals=False,
        )
        self.assertEqual(app.run(), 0)
        self.assertEqual(display.restore_count, 1)


if __name__ == "__main__":
    unittest.main()
