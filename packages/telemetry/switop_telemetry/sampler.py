"""Long-running telemetry subprocess ingestion and record delimiting."""

from __future__ import annotations

import subprocess
import threading
import time
from typing import Any, Callable, Sequence

from switop_core.errors import SamplerStartError
from switop_core.logging_setup import get_logger

from .models import SampleRecord, SamplerState


SAMPLE_CHUNK_SIZE = 4096
MAX_BUFFER_BYTES = 1 << 20

RecordSink = Callable[[SampleRecord], None]


def build_command(command: str, interval_ms: int, samplers: Sequence[str]) -> list[str]:
    return [command, "-i", str(int(interval_ms)), "--samplers", ",".join(samplers)]


class LatestRecord:
    """Single-slot holder for the freshest record.

    Publishing overwrites whatever is waiting; a reader sees each record at
    most once and skips anything that was overwritten before it looked.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._record: SampleRecord | None = None
        self._last_taken = 0
        self.published = 0
        self.dropped = 0

    def publish(self, record: SampleRecord) -> None:
        with self._lock:
            if self._record is not None and self._record.sequence > self._last_taken:
                self.dropped += 1
            self._record = record
            self.published += 1

    def take(self) -> SampleRecord | None:
        with self._lock:
            record = self._record
            if record is None or record.sequence <= self._last_taken:
                return None
            self._last_taken = record.sequence
            return record

    def peek(self) -> SampleRecord | None:
        with self._lock:
            return self._record


class StreamSampler:
    """Owns the telemetry subprocess and turns its stdout into Sample Records.

    ``run`` is meant for a dedicated ingestion thread: it only reads and
    appends, so the pipe is drained as fast as the source writes. A record is
    cut as soon as the accumulated bytes contain a line terminator; the whole
    buffer, including anything after that terminator, becomes the record and
    the buffer starts over empty.
    """

    def __init__(
        self,
        command: Sequence[str],
        sink: RecordSink,
        chunk_size: int = SAMPLE_CHUNK_SIZE,
        popen: Callable[..., Any] = subprocess.Popen,
        clock: Callable[[], float] = time.monotonic,
        max_buffer_bytes: int = MAX_BUFFER_BYTES,
    ) -> None:
        self.command = list(command)
        self.chunk_size = chunk_size
        self.max_buffer_bytes = max_buffer_bytes
        self._sink = sink
        self._popen = popen
        self._clock = clock
        self._process: Any | None = None
        self._buffer = bytearray()
        self._sequence = 0
        self._reading = False
        self._state = SamplerState.STARTING
        self._logger = get_logger()

    @property
    def state(self) -> SamplerState:
        return self._state

    @property
    def records_emitted(self) -> int:
        return self._sequence

    def start(self) -> None:
        self._state = SamplerState.STARTING
        try:
            self._process = self._popen(
                self.command,
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
                stdin=subprocess.DEVNULL,
                bufsize=0,
            )
        except OSError as exc:
            self._state = SamplerState.TERMINATED
            self._logger.error(
                "telemetry source failed to start: %s",
                exc,
                extra={"event": "sampler_start_error"},
            )
            raise SamplerStartError(self.command, str(exc)) from exc

        self._state = SamplerState.STREAMING
        self._logger.info("telemetry source started", extra={"event": "sampler_started"})

    def feed(self, chunk: bytes) -> SampleRecord | None:
        if not chunk:
            return None
        self._buffer.extend(chunk)

        # Earlier chunks had no terminator, so only the new one needs checking.
        if b"\n" not in chunk:
            if len(self._buffer) > self.max_buffer_bytes:
                self._logger.warning(
                    "discarding %d bytes without a line terminator",
                    len(self._buffer),
                    extra={"event": "sampler_buffer_overflow"},
                )
                self._buffer.clear()
            return None

        text = self._buffer.decode("utf-8", errors="replace")
        self._buffer.clear()
        self._sequence += 1
        record = SampleRecord(text=text, sequence=self._sequence, received_at=self._clock())
        self._sink(record)
        return record

    def run(self, cancel: threading.Event) -> None:
        if self._process is None or self._state is not SamplerState.STREAMING:
            raise RuntimeError("sampler is not streaming")

        stream = self._process.stdout
        self._reading = True
        try:
            while not cancel.is_set():
                chunk = stream.read(self.chunk_size)
                if not chunk:
                    break
                self.feed(chunk)
        finally:
            self._reading = False
            stream.close()
            self._state = SamplerState.TERMINATED
            self._logger.info(
                "telemetry stream ended after %d records",
                self._sequence,
                extra={"event": "sampler_terminated"},
            )

    def stop(self, grace_s: float = 2.0) -> None:
        process = self._process
        if process is not None and process.poll() is None:
            process.terminate()
            try:
                process.wait(timeout=grace_s)
            except subprocess.TimeoutExpired:
                process.kill()
                process.wait()
        # An active reader closes the pipe itself once it sees EOF.
        if process is not None and process.stdout is not None and not self._reading:
            process.stdout.close()
        self._state = SamplerState.TERMINATED
