"""
Host allow-lists and site settings used by the extraction strategies.

Source sites rotate their mirror domains regularly, so the host families live
here instead of inside the strategies. A JSON file can replace the defaults:

    {
        "drive_hosts": ["hubdrive.wales"],
        "stream_hosts": ["hdstream4u.com", "hubstream.art"],
        "site_suffixes": [" - HDHub4u"]
    }

Resolution order: explicit path → MEDIA_EXTRACTOR_HOSTS_FILE → built-in
defaults. MEDIA_EXTRACTOR_EXTRA_<FAMILY>_HOSTS (comma separated) appends hosts
to a family without touching the file.
"""

import json
import os
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, Field, ValidationError

from .exceptions import ConfigError
from .logger import get_module_logger

logger = get_module_logger("config")

HOSTS_FILE_ENV = "MEDIA_EXTRACTOR_HOSTS_FILE"
EXTRA_HOSTS_ENV = "MEDIA_EXTRACTOR_EXTRA_{family}_HOSTS"

HOST_FAMILIES = ("drive", "cdn", "intermediary", "stream")


class HostConfig(BaseModel):
    """Host families and site settings consulted by the strategies."""
    drive_hosts: list[str] = Field(default_factory=lambda: ["hubdrive.wales"])
    cdn_hosts: list[str] = Field(default_factory=lambda: ["hubcdn.fans"])
    intermediary_hosts: list[str] = Field(default_factory=lambda: ["techyboy4u.com"])
    stream_hosts: list[str] = Field(default_factory=lambda: ["hdstream4u.com", "hubstream.art"])

    # Stripped from the end of the page title
    site_suffixes: list[str] = Field(default_factory=lambda: [" - HDHub4u"])
    # Checked in priority order; first non-empty text wins
    title_selectors: list[str] = Field(
        default_factory=lambda: ["h1", ".entry-title", ".post-title", "title"]
    )
    max_sibling_scan: int = 10

    @property
    def download_hosts(self) -> list[str]:
        """Hosts whose links are accepted by the deep-anchor scans."""
        return self.drive_hosts + self.cdn_hosts + self.intermediary_hosts

    @property
    def direct_marker_hosts(self) -> list[str]:
        """Hosts whose presence marks a page as carrying direct downloads."""
        return self.drive_hosts + self.stream_hosts + self.cdn_hosts

    def hosts(self, family: str) -> list[str]:
        """Return the host list for a family name ("drive", "cdn", ...)."""
        if family not in HOST_FAMILIES:
            raise KeyError(f"Unknown host family: {family}")
        return getattr(self, f"{family}_hosts")


def href_matches(href: Optional[str], hosts: list[str]) -> bool:
    """True when the href contains any of the host substrings."""
    if not href:
        return False
    return any(host in href for host in hosts)


def _apply_env_extras(config: HostConfig) -> HostConfig:
    for family in HOST_FAMILIES:
        raw = os.getenv(EXTRA_HOSTS_ENV.format(family=family.upper()), "")
        extras = [h.strip() for h in raw.split(",") if h.strip()]
        if not extras:
            continue
        current = config.hosts(family)
        merged = current + [h for h in extras if h not in current]
        config = config.model_copy(update={f"{family}_hosts": merged})
        logger.debug(f"Added {len(extras)} extra {family} hosts from environment")
    return config


def load_config(path: Optional[Union[str, Path]] = None) -> HostConfig:
    """
    Load the host configuration.

    Args:
        path: Optional JSON file. Falls back to MEDIA_EXTRACTOR_HOSTS_FILE.

    Returns:
        HostConfig with environment extras applied

    Raises:
        ConfigError: if the file cannot be read or does not validate
    """
    path = path or os.getenv(HOSTS_FILE_ENV)
    if not path:
        return _apply_env_extras(HostConfig())

    config_file = Path(path)
    try:
        data = json.loads(config_file.read_text())
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Cannot read host config: {e}", path=str(config_file))

    try:
        config = HostConfig(**data)
    except (TypeError, ValidationError) as e:
        raise ConfigError(f"Invalid host config: {e}", path=str(config_file))

    logger.info(f"Loaded host config from {config_file}")
    return _apply_env_extras(config)


_default_config: Optional[HostConfig] = None


def get_default_config() -> HostConfig:
    """Get or create the default configuration instance."""
    global _default_config
    if _default_config is None:
        _default_config = load_config()
    return _default_config
