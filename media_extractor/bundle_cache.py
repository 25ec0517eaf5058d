"""
File-based cache of extracted bundles, keyed by source URL.

Sits outside the extraction core: MediaExtractor never reads it. The CLI uses
it to skip re-extracting pages it has already processed, and cached bundles
can be inspected or hand-edited as plain JSON.
"""

import hashlib
import json
from datetime import datetime
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from .logger import get_module_logger
from .schemas import ContentBundle

logger = get_module_logger("bundle_cache")


class BundleCache:
    """
    JSON-file cache for ContentBundle results.

    One file per page, named after the sanitised source URL or, without a
    URL, a hash of the document head.
    """

    def __init__(self, cache_dir: Optional[str] = None):
        if cache_dir is None:
            cache_dir = Path.cwd() / "bundle_cache"

        self.cache_dir = Path(cache_dir)
        self.cache_dir.mkdir(parents=True, exist_ok=True)

        logger.info(f"Bundle cache initialized at: {self.cache_dir}")

    def _generate_cache_key(self, html: str, source_url: Optional[str] = None) -> str:
        if source_url:
            stripped = source_url.split("://", 1)[-1].rstrip("/")
            safe = "".join(c if c.isalnum() or c in '-_.' else '_' for c in stripped)
            # Long slugs are cut and disambiguated with a hash of the full URL
            if len(safe) > 120:
                digest = hashlib.md5(source_url.encode('utf-8')).hexdigest()[:8]
                safe = f"{safe[:111]}_{digest}"
            return safe

        # Listing pages share their chrome, so only the head is hashed
        html_sample = html[:10000]
        return hashlib.md5(html_sample.encode('utf-8', errors='replace')).hexdigest()[:12]

    def _path(self, html: str, source_url: Optional[str]) -> Path:
        return self.cache_dir / f"{self._generate_cache_key(html, source_url)}.json"

    def get(self, html: str = "", source_url: Optional[str] = None) -> Optional[ContentBundle]:
        """Cached bundle for the page, or None on a miss or unreadable entry."""
        cache_file = self._path(html, source_url)
        if not cache_file.exists():
            logger.debug(f"Cache miss for key: {cache_file.stem}")
            return None

        try:
            data = json.loads(cache_file.read_text())
            bundle = ContentBundle.model_validate(data["bundle"])
        except (OSError, KeyError, json.JSONDecodeError, ValidationError) as e:
            logger.warning(f"Failed to load cached bundle {cache_file.name}: {e}")
            return None

        logger.info(f"Cache hit for key: {cache_file.stem}")
        return bundle

    def put(self, bundle: ContentBundle, html: str = "",
            source_url: Optional[str] = None) -> str:
        """Store a bundle; returns the cache key used."""
        cache_file = self._path(html, source_url)
        cache_data = {
            "cache_key": cache_file.stem,
            "source_url": source_url,
            "created_at": datetime.now().isoformat(),
            "bundle": bundle.to_dict(),
        }
        cache_file.write_text(json.dumps(cache_data, indent=2, ensure_ascii=False))
        logger.info(f"Cached bundle with key: {cache_file.stem}")
        return cache_file.stem

    def exists(self, html: str = "", source_url: Optional[str] = None) -> bool:
        return self._path(html, source_url).exists()

    def delete(self, html: str = "", source_url: Optional[str] = None) -> bool:
        cache_file = self._path(html, source_url)
        if cache_file.exists():
            cache_file.unlink()
            logger.info(f"Deleted cache for key: {cache_file.stem}")
            return True
        return False

    def clear(self) -> int:
        """Clear all cached bundles. Returns count of deleted files."""
        count = 0
        for cache_file in self.cache_dir.glob("*.json"):
            cache_file.unlink()
            count += 1
        logger.info(f"Cleared {count} cached bundles")
        return count

    def list_cached(self) -> list[dict]:
        entries = []
        for cache_file in sorted(self.cache_dir.glob("*.json")):
            try:
                data = json.loads(cache_file.read_text())
            except (OSError, json.JSONDecodeError) as e:
                logger.warning(f"Skipping unreadable cache file {cache_file.name}: {e}")
                continue
            entries.append({
                "cache_key": data.get("cache_key"),
                "source_url": data.get("source_url"),
                "created_at": data.get("created_at"),
                "file": str(cache_file),
            })
        return entries
