"""System-wide lifecycle: update/restart, version check, host info."""

from .models import VersionInfo, SystemInfo, CpuInfo, DiskInfo, MemoryInfo
from .versions import LATEST_VERSION_KEY, VersionChecker, parse_version, strip_prefix
from .info import SystemInfoReader
from .controller import SystemLifecycleController

__all__ = [
    "CpuInfo",
    "DiskInfo",
    "LATEST_VERSION_KEY",
    "MemoryInfo",
    "SystemInfo",
    "SystemInfoReader",
    "SystemLifecycleController",
    "VersionChecker",
    "VersionInfo",
    "parse_version",
    "strip_prefix",
]
