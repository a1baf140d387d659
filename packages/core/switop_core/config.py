"""Settings schema and load/save helpers."""

from __future__ import annotations

import json
import platform
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any


CONFIG_VERSION = 1
DEFAULT_SAMPLERS = ("cpu_power", "gpu_power")


@dataclass
class TelemetryConfig:
    command: str = "/usr/bin/powermetrics"
    interval_ms: int = 1000
    samplers: list[str] = field(default_factory=lambda: list(DEFAULT_SAMPLERS))
    chunk_size: int = 4096


@dataclass
class RenderConfig:
    refresh_ms: int = 250


@dataclass
class CacheConfig:
    gpu_ttl_s: float = 300.0


@dataclass
class DiagnosticsConfig:
    log_file: str | None = None
    log_level: str = "INFO"
    keep_log_files: int = 7


@dataclass
class AppConfig:
    config_version: int = CONFIG_VERSION
    telemetry: TelemetryConfig = field(default_factory=TelemetryConfig)
    render: RenderConfig = field(default_factory=RenderConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    diagnostics: DiagnosticsConfig = field(default_factory=DiagnosticsConfig)


def config_path() -> Path:
    if platform.system() == "Darwin":
        return Path.home() / "Library" / "Application Support" / "switop" / "config.json"
    return Path.home() / ".config" / "switop" / "config.json"


def _merge(dataclass_type, raw: Any):
    defaults = dataclass_type()  # type: ignore[misc]
    if not isinstance(raw, dict):
        return defaults
    for k, v in raw.items():
        if hasattr(defaults, k):
            setattr(defaults, k, v)
    return defaults


def _as_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _as_float(value: Any, default: float) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _as_samplers(value: Any) -> list[str]:
    if isinstance(value, str):
        value = value.split(",")
    if not isinstance(value, (list, tuple)):
        return list(DEFAULT_SAMPLERS)
    samplers = [str(s).strip() for s in value if str(s).strip()]
    return samplers or list(DEFAULT_SAMPLERS)


def _normalize_telemetry(cfg: AppConfig) -> None:
    defaults = TelemetryConfig()
    if not isinstance(cfg.telemetry.command, str) or not cfg.telemetry.command.strip():
        cfg.telemetry.command = defaults.command
    interval = _as_int(cfg.telemetry.interval_ms, defaults.interval_ms)
    cfg.telemetry.interval_ms = max(100, min(10000, interval))
    chunk = _as_int(cfg.telemetry.chunk_size, defaults.chunk_size)
    cfg.telemetry.chunk_size = max(256, min(1 << 20, chunk))
    cfg.telemetry.samplers = _as_samplers(cfg.telemetry.samplers)


def _normalize_render(cfg: AppConfig) -> None:
    refresh = _as_int(cfg.render.refresh_ms, RenderConfig().refresh_ms)
    cfg.render.refresh_ms = max(50, min(5000, refresh))


def _normalize_cache(cfg: AppConfig) -> None:
    ttl = _as_float(cfg.cache.gpu_ttl_s, CacheConfig().gpu_ttl_s)
    cfg.cache.gpu_ttl_s = max(1.0, ttl)


def _normalize_diagnostics(cfg: AppConfig) -> None:
    defaults = DiagnosticsConfig()
    level = str(cfg.diagnostics.log_level).upper()
    cfg.diagnostics.log_level = level if level in ("DEBUG", "INFO", "WARNING", "ERROR") else defaults.log_level
    if not isinstance(cfg.diagnostics.log_file, str) or not cfg.diagnostics.log_file.strip():
        cfg.diagnostics.log_file = None
    keep = _as_int(cfg.diagnostics.keep_log_files, defaults.keep_log_files)
    cfg.diagnostics.keep_log_files = max(2, keep)


def normalize(cfg: AppConfig) -> AppConfig:
    cfg.config_version = CONFIG_VERSION
    _normalize_telemetry(cfg)
    _normalize_render(cfg)
    _normalize_cache(cfg)
    _normalize_diagnostics(cfg)
    return cfg


def load_config(path: Path | None = None) -> AppConfig:
    path = path or config_path()
    if not path.exists():
        return AppConfig()

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return AppConfig()
    if not isinstance(raw, dict):
        return AppConfig()

    cfg = AppConfig(
        telemetry=_merge(TelemetryConfig, raw.get("telemetry")),
        render=_merge(RenderConfig, raw.get("render")),
        cache=_merge(CacheConfig, raw.get("cache")),
        diagnostics=_merge(DiagnosticsConfig, raw.get("diagnostics")),
    )
    return normalize(cfg)


def save_config(cfg: AppConfig, path: Path | None = None) -> Path:
    cfg.config_version = CONFIG_VERSION
    path = path or config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(asdict(cfg), indent=2, sort_keys=True), encoding="utf-8")
    return path
