"""NuGet v3 flat container fetcher over HTTP, with local feed support inherited."""
import logging
from pathlib import Path
from typing import Dict, Optional

import requests

from domain.errors import PackageFetchError
from domain.hash_constants import BLOCK_SIZE
from domain.package_fetcher import is_remote_feed
from domain.package_identity import PackageId, Version, normalize_version
from infrastructure.file_system_package_fetcher import FileSystemPackageFetcher

logger = logging.getLogger(__name__)

PACKAGE_BASE_ADDRESS_TYPE = "PackageBaseAddress/3.0.0"


class HttpPackageFetcher(FileSystemPackageFetcher):
    """
    Resolves remote feeds through the NuGet v3 flat container.

    A feed URL ending in index.json is read as a service index and its
    PackageBaseAddress resource is used; any other URL is taken as the flat
    container base address itself.
    """

    def __init__(self, download_dir: Path, session: Optional[requests.Session] = None, timeout: float = 30):
        super().__init__(download_dir)
        self.session = session or requests.Session()
        self.timeout = timeout
        self._base_addresses: Dict[str, str] = {}

    def list_feed(self, package_id: PackageId, feed: str) -> Dict[Version, str]:
        if not is_remote_feed(feed):
            return super().list_feed(package_id, feed)

        base = self._get_base_address(package_id, feed)
        url = f"{base}{package_id}/index.json"
        response = self._get(package_id, url)
        if response.status_code == 404:
            return {}
        if response.status_code != 200:
            raise PackageFetchError(str(package_id), f"{url} returned HTTP {response.status_code}")

        found: Dict[Version, str] = {}
        for raw in response.json().get("versions", []):
            version = self._try_parse_version(raw)
            if version is None:
                continue
            version_name = normalize_version(version).lower()
            found.setdefault(version, f"{base}{package_id}/{version_name}/{package_id}.{version_name}.nupkg")
        return found

    def fetch(self, source: str, target: Path) -> None:
        if not is_remote_feed(source):
            super().fetch(source, target)
            return

        try:
            with self.session.get(source, stream=True, timeout=self.timeout) as response:
                if response.status_code != 200:
                    raise PackageFetchError(target.name, f"{source} returned HTTP {response.status_code}")
                with open(target, 'wb') as f:
                    for chunk in response.iter_content(chunk_size=BLOCK_SIZE):
                        if chunk:
                            f.write(chunk)
        except requests.RequestException as e:
            raise PackageFetchError(target.name, f"Failed to download {source}: {e}") from e

    def _get_base_address(self, package_id: PackageId, feed: str) -> str:
        cached = self._base_addresses.get(feed)
        if cached is not None:
            return cached

        base = feed
        if feed.rstrip("/").endswith("index.json"):
            response = self._get(package_id, feed)
            if response.status_code != 200:
                raise PackageFetchError(str(package_id), f"Service index {feed} returned HTTP {response.status_code}")
            base = None
            for resource in response.json().get("resources", []):
                if str(resource.get("@type", "")).startswith(PACKAGE_BASE_ADDRESS_TYPE):
                    base = resource.get("@id")
                    break
            if not base:
                raise PackageFetchError(str(package_id), f"Service index {feed} has no {PACKAGE_BASE_ADDRESS_TYPE} resource")

        if not base.endswith("/"):
            base += "/"
        self._base_addresses[feed] = base
        return base

    def _get(self, package_id: PackageId, url: str) -> requests.Response:
        logger.debug("GET %s", url)
        try:
            return self.session.get(url, headers={"Accept": "application/json"}, timeout=self.timeout)
        except requests.RequestException as e:
            raise PackageFetchError(str(package_id), f"Failed to reach {url}: {e}") from e
