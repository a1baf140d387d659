"""Doctor payload describing the host and the effective configuration."""

from __future__ import annotations

import os
import platform
from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .config import AppConfig, config_path
from .static_info import StaticInfoProvider


def _telemetry_source_status(command: str) -> dict[str, Any]:
    path = Path(command)
    return {
        "command": command,
        "exists": path.exists(),
        "executable": path.exists() and os.access(path, os.X_OK),
        # powermetrics refuses to run without root.
        "running_as_root": hasattr(os, "geteuid") and os.geteuid() == 0,
    }


def build_doctor_payload(cfg: AppConfig, provider: StaticInfoProvider | None = None) -> dict[str, Any]:
    provider = provider or StaticInfoProvider(gpu_ttl_s=cfg.cache.gpu_ttl_s)
    counts = provider.core_counts()
    vm_stat = provider.vm_stat()
    return {
        "ts_utc": datetime.now(timezone.utc).isoformat(),
        "platform": platform.platform(),
        "python": platform.python_version(),
        "config_path": str(config_path()),
        "config": asdict(cfg),
        "telemetry_source": _telemetry_source_status(cfg.telemetry.command),
        "host": {
            "chip": provider.chip_brand(),
            "cores": asdict(counts),
            "physical_memory_bytes": provider.physical_memory(),
            "page_size_bytes": provider.page_size(vm_stat),
            "swap_usage": provider.swap_usage().strip() or None,
        },
    }
