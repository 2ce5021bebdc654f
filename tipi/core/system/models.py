"""
System models

VersionInfo is what get_version() returns; SystemInfo mirrors the host
metrics snapshot the runner writes to state/system-info.json.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


@dataclass(frozen=True)
class VersionInfo:
    """Current build version and latest published version (None when unknown)"""

    current: str
    latest: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"current": self.current, "latest": self.latest}


class CpuInfo(BaseModel):
    model_config = ConfigDict(extra="ignore")

    load: float = 0


class DiskInfo(BaseModel):
    model_config = ConfigDict(extra="ignore")

    total: float = 0
    used: float = 0
    available: float = 0


class MemoryInfo(BaseModel):
    model_config = ConfigDict(extra="ignore")

    total: float = 0
    available: float = 0
    used: float = 0


class SystemInfo(BaseModel):
    """Host resource snapshot; missing sections default to zeros"""

    model_config = ConfigDict(extra="ignore")

    cpu: CpuInfo = Field(default_factory=CpuInfo)
    disk: DiskInfo = Field(default_factory=DiskInfo)
    memory: MemoryInfo = Field(default_factory=MemoryInfo)
