"""Host resource snapshot reader."""

import logging
from pathlib import Path
from typing import Union

from pydantic import ValidationError

from tipi.core.errors import UpstreamUnavailable

from .models import SystemInfo

logger = logging.getLogger(__name__)


class SystemInfoReader:
    """Reads the system-info.json snapshot maintained by the runner"""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def read(self) -> SystemInfo:
        """
        Parse the current snapshot

        Raises:
            UpstreamUnavailable: file missing or not a valid snapshot
        """
        try:
            raw = self.path.read_text(encoding="utf-8")
        except OSError as e:
            logger.warning(f"System info not readable at {self.path}: {e}")
            raise UpstreamUnavailable("system info", str(e))

        try:
            return SystemInfo.model_validate_json(raw)
        except ValidationError as e:
            logger.error(f"Error parsing system info {self.path}: {e}")
            raise UpstreamUnavailable("system info", "malformed snapshot")
