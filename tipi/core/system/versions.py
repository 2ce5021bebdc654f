"""
Version check

Resolves the latest published version from release metadata, pinned in
the Ephemeral Cache under LATEST_VERSION_KEY. Lookup failures degrade to
"latest unknown"; they are logged and never raised to callers.
"""

import logging
from typing import Optional

import requests
from packaging.version import InvalidVersion, Version

from tipi.core.cache import ICache
from tipi.core.errors import UpstreamUnavailable

from .models import VersionInfo

logger = logging.getLogger(__name__)

LATEST_VERSION_KEY = "latestVersion"


def parse_version(value: str) -> Version:
    """
    Parse a version string for ordering and equality

    Build metadata ('+abc') is dropped: 3.4.1+abc equals 3.4.1.

    Raises:
        InvalidVersion: value is not a version
    """
    return Version(Version(strip_prefix(value)).public)


def strip_prefix(value: str) -> str:
    """'v1.2.3' -> '1.2.3'"""
    value = value.strip()
    if value[:1] in ("v", "V"):
        return value[1:]
    return value


class VersionChecker:
    """Looks up and caches the latest release version"""

    def __init__(
        self,
        cache: ICache,
        current_version: str,
        release_url: str,
        timeout: float = 5.0,
        cache_ttl_seconds: int = 3600,
        session: Optional[requests.Session] = None,
    ):
        self.cache = cache
        self.current_version = current_version
        self.release_url = release_url
        self.timeout = timeout
        self.cache_ttl_seconds = cache_ttl_seconds
        self.http = session or requests.Session()

    def get_version(self) -> VersionInfo:
        """
        Get current and latest version

        Returns:
            VersionInfo; latest is None when the lookup failed
        """
        latest = self.cache.get(LATEST_VERSION_KEY)
        if latest is None:
            try:
                latest = self.fetch_latest()
            except UpstreamUnavailable as e:
                logger.error(f"Error while fetching latest version: {e}")
                return VersionInfo(current=self.current_version, latest=None)
            self.cache.set(LATEST_VERSION_KEY, latest, self.cache_ttl_seconds)
            logger.info(f"Latest version resolved: {latest}")

        return VersionInfo(current=self.current_version, latest=latest)

    def fetch_latest(self) -> str:
        """
        Single release-metadata lookup (no retries)

        Raises:
            UpstreamUnavailable: network error, HTTP error or unusable payload
        """
        try:
            response = self.http.get(
                self.release_url,
                timeout=self.timeout,
                headers={"Accept": "application/vnd.github+json"},
            )
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.Timeout:
            raise UpstreamUnavailable(self.release_url, f"timeout ({self.timeout}s exceeded)")
        except requests.exceptions.RequestException as e:
            raise UpstreamUnavailable(self.release_url, str(e))
        except ValueError as e:
            raise UpstreamUnavailable(self.release_url, f"invalid JSON: {e}")

        name = None
        if isinstance(data, dict):
            name = data.get("name") or data.get("tag_name")
        if not isinstance(name, str) or not name.strip():
            raise UpstreamUnavailable(self.release_url, "release has no version name")

        latest = strip_prefix(name)
        try:
            Version(latest)
        except InvalidVersion:
            raise UpstreamUnavailable(self.release_url, f"not a semantic version: {name!r}")
        return latest
