import logging
import shutil
from pathlib import Path
from typing import Dict, List, Optional

from domain.errors import PackageFetchError
from domain.hash_constants import PACKAGE_FILE_EXTENSION
from domain.package_archive import is_package_metadata_entry
from domain.package_fetcher import PackageFetcher, PackageLocation, is_remote_feed
from domain.package_identity import PackageId, Version, VersionRange, normalize_version, parse_version
from domain.zip_util import ZipUtil

logger = logging.getLogger(__name__)


class FileSystemPackageFetcher(PackageFetcher):
    """
    Fetches packages from local feed folders.

    Both feed layouts are understood: flat (<feed>/<id>.<version>.nupkg)
    and hierarchical (<feed>/<id>/<version>/<id>.<version>.nupkg).
    """

    def __init__(self, download_dir: Path):
        super().__init__(download_dir)
        self.zip_util = ZipUtil()

    def download(
        self,
        package_id: PackageId,
        version_range: Optional[VersionRange],
        location: PackageLocation
    ) -> Path:
        version_range = version_range or VersionRange.all()
        feeds = location.source_feeds()
        if not feeds:
            raise PackageFetchError(str(package_id), f"No package sources configured for {package_id}")

        candidates = self.find_candidates(package_id, feeds)
        version = version_range.find_best_match(candidates.keys())
        if version is None:
            raise PackageFetchError(
                str(package_id),
                f"Version {version_range} of package {package_id} is not found in NuGet feeds {', '.join(feeds)}"
            )

        target = self.download_dir / f"{package_id}.{normalize_version(version).lower()}{PACKAGE_FILE_EXTENSION}"
        target.parent.mkdir(parents=True, exist_ok=True)
        logger.info("Downloading %s %s from %s", package_id, version, candidates[version])
        self.fetch(candidates[version], target)
        return target

    def find_candidates(self, package_id: PackageId, feeds: List[str]) -> Dict[Version, str]:
        """Map every available version to the first source that offers it."""
        candidates: Dict[Version, str] = {}
        for feed in feeds:
            for version, source in self.list_feed(package_id, feed).items():
                candidates.setdefault(version, source)
        return candidates

    def list_feed(self, package_id: PackageId, feed: str) -> Dict[Version, str]:
        if is_remote_feed(feed):
            logger.debug("Skipping remote feed %s", feed)
            return {}

        feed_path = Path(feed)
        if not feed_path.is_dir():
            logger.warning("Package source %s does not exist", feed)
            return {}

        found: Dict[Version, str] = {}
        prefix = f"{package_id}."
        for entry in feed_path.glob(f"*{PACKAGE_FILE_EXTENSION}"):
            name = entry.name.lower()
            if not name.startswith(prefix):
                continue
            version = self._try_parse_version(name[len(prefix):-len(PACKAGE_FILE_EXTENSION)])
            if version is not None:
                found.setdefault(version, str(entry))

        package_folder = self._find_child(feed_path, str(package_id))
        if package_folder is not None:
            for version_folder in package_folder.iterdir():
                version = self._try_parse_version(version_folder.name)
                if version is None or not version_folder.is_dir():
                    continue
                for entry in version_folder.glob(f"*{PACKAGE_FILE_EXTENSION}"):
                    found.setdefault(version, str(entry))
                    break

        return found

    def fetch(self, source: str, target: Path) -> None:
        try:
            shutil.copyfile(source, target)
        except OSError as e:
            raise PackageFetchError(target.name, f"Failed to copy package from {source}: {e}") from e

    def extract(self, package_path: Path, destination_dir: Path) -> List[str]:
        return self.zip_util.extract_zip(
            Path(package_path),
            Path(destination_dir),
            include=lambda name: not is_package_metadata_entry(name)
        )

    @staticmethod
    def _find_child(directory: Path, name: str) -> Optional[Path]:
        for child in directory.iterdir():
            if child.is_dir() and child.name.lower() == name:
                return child
        return None

    @staticmethod
    def _try_parse_version(value: str) -> Optional[Version]:
        try:
            return parse_version(value)
        except ValueError:
            return None
