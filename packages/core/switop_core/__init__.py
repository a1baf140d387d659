"""Core services: settings, logging, one-shot commands, static host info, diagnostics."""

from .commands import run_command
from .config import AppConfig, load_config, save_config
from .diagnostics import build_doctor_payload
from .errors import SamplerStartError, SwitopError
from .static_info import CacheEntry, CoreCounts, StaticInfoCache, StaticInfoProvider

__all__ = [
    "AppConfig",
    "CacheEntry",
    "CoreCounts",
    "SamplerStartError",
    "StaticInfoCache",
    "StaticInfoProvider",
    "SwitopError",
    "build_doctor_payload",
    "load_config",
    "run_command",
    "save_config",
]
