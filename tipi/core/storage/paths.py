# tipi/core/storage/paths.py
from __future__ import annotations
from pathlib import Path
from typing import Optional, Union


def tipi_home() -> Path:
    """Default root folder (~/.tipi)"""
    return Path.home() / ".tipi"


def state_dir(root: Union[str, Path]) -> Path:
    """Runtime state shared with the external runner"""
    return Path(root) / "state"


def events_dir(root: Union[str, Path]) -> Path:
    """Spool directory the runner consumes dispatched events from"""
    return state_dir(root) / "events"


def system_info_path(root: Union[str, Path]) -> Path:
    """Host metrics snapshot written by the runner"""
    return state_dir(root) / "system-info.json"


def store_db_path(root: Union[str, Path], override: Optional[Union[str, Path]] = None) -> Path:
    """Status Store database file"""
    if override:
        return Path(override).expanduser()
    return Path(root) / "store" / "status.sqlite"


def cache_db_path(root: Union[str, Path]) -> Path:
    """SQLite cache file (used when Redis is unavailable)"""
    return Path(root) / "store" / "cache.sqlite"


def ensure_parent(path: Union[str, Path]) -> Path:
    """Create the parent directory of path and return it as a Path"""
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    return p
