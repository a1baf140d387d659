"""Slow-changing host facts (chip name, core counts, memory size) with TTL caching."""

from __future__ import annotations

import mmap
import re
import time
from dataclasses import dataclass
from typing import Any, Callable

import psutil

from .commands import run_command
from .logging_setup import get_logger


SYSCTL_PATH = "/usr/sbin/sysctl"
VM_STAT_PATH = "/usr/bin/vm_stat"
SYSTEM_PROFILER_PATH = "/usr/sbin/system_profiler"

GPU_CORES_KEY = "gpu_cores"
GPU_CORES_TTL_S = 300.0
GPU_CORES_UNKNOWN = -1

_GPU_CORES_RE = re.compile(r"Total Number of Cores:\s*(\d+)")
_PAGE_SIZE_RE = re.compile(r"page size of (\d+) bytes")

CommandRunner = Callable[[str, list[str]], str]


@dataclass(frozen=True)
class CacheEntry:
    value: Any
    fetched_at: float


class StaticInfoCache:
    """Keyed values that are re-fetched only once they are older than a TTL.

    A fetch that returns ``None`` or raises keeps whatever was cached before,
    including its timestamp, so the next call tries again.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic, sentinel: Any = None) -> None:
        self._clock = clock
        self._sentinel = sentinel
        self._entries: dict[str, CacheEntry] = {}

    def entry(self, key: str) -> CacheEntry | None:
        return self._entries.get(key)

    def get_or_refresh(self, key: str, ttl_s: float, fetch: Callable[[], Any]) -> Any:
        entry = self._entries.get(key)
        now = self._clock()
        if entry is not None and now - entry.fetched_at <= ttl_s:
            return entry.value

        try:
            value = fetch()
        except Exception:
            get_logger().warning("static info fetch failed for %s", key, exc_info=True, extra={"event": "cache_fetch_error"})
            value = None

        if value is None:
            return entry.value if entry is not None else self._sentinel

        self._entries[key] = CacheEntry(value=value, fetched_at=now)
        return value


@dataclass(frozen=True)
class CoreCounts:
    efficiency: int
    performance: int
    gpu: int
    logical: int


def _parse_int(text: str) -> int | None:
    try:
        return int(text.strip())
    except ValueError:
        return None


def parse_gpu_cores(text: str) -> int | None:
    match = _GPU_CORES_RE.search(text)
    if match is None:
        return None
    return int(match.group(1))


def parse_page_size(vm_stat_text: str) -> int | None:
    match = _PAGE_SIZE_RE.search(vm_stat_text)
    if match is None:
        return None
    return int(match.group(1))


class StaticInfoProvider:
    """One-shot host queries; only the expensive GPU query goes through the cache."""

    def __init__(
        self,
        runner: CommandRunner | None = None,
        cache: StaticInfoCache | None = None,
        gpu_ttl_s: float = GPU_CORES_TTL_S,
    ) -> None:
        self._run = runner or (lambda path, args: run_command(path, args))
        self.cache = cache or StaticInfoCache(sentinel=GPU_CORES_UNKNOWN)
        self.gpu_ttl_s = gpu_ttl_s

    def chip_brand(self) -> str:
        brand = self._run(SYSCTL_PATH, ["-n", "machdep.cpu.brand_string"]).strip()
        return brand or "Unknown chip"

    def _fetch_gpu_cores(self) -> int | None:
        return parse_gpu_cores(self._run(SYSTEM_PROFILER_PATH, ["SPDisplaysDataType"]))

    def gpu_cores(self) -> int:
        return int(self.cache.get_or_refresh(GPU_CORES_KEY, self.gpu_ttl_s, self._fetch_gpu_cores))

    def core_counts(self) -> CoreCounts:
        output = self._run(SYSCTL_PATH, ["-n", "hw.perflevel1.physicalcpu", "hw.perflevel0.physicalcpu"])
        lines = output.splitlines()
        e_cores = _parse_int(lines[0]) if len(lines) > 0 else None
        p_cores = _parse_int(lines[1]) if len(lines) > 1 else None
        return CoreCounts(
            efficiency=e_cores or 0,
            performance=p_cores or 0,
            gpu=self.gpu_cores(),
            logical=int(psutil.cpu_count(logical=True) or 0),
        )

    def chip_info(self) -> str:
        counts = self.core_counts()
        return f"{self.chip_brand()} (cores: {counts.efficiency}E+{counts.performance}P+{counts.gpu}GPU)"

    def physical_memory(self) -> int:
        value = _parse_int(self._run(SYSCTL_PATH, ["-n", "hw.memsize"]))
        if value:
            return value
        return int(psutil.virtual_memory().total)

    def vm_stat(self) -> str:
        return self._run(VM_STAT_PATH, [])

    def page_size(self, vm_stat_text: str | None = None) -> int:
        text = self.vm_stat() if vm_stat_text is None else vm_stat_text
        return parse_page_size(text) or mmap.PAGESIZE

    def swap_usage(self) -> str:
        return self._run(SYSCTL_PATH, ["-n", "vm.swapusage"])
