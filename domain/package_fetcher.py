from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional
from xml.etree import ElementTree

from .package_identity import PackageId, VersionRange

NUGET_CONFIG_NAMES = ("nuget.config", "NuGet.Config", "NuGet.config")


@dataclass(frozen=True)
class PackageLocation:
    """Where packages may come from; handed to the fetcher untouched."""
    nuget_config: Optional[Path] = None
    root_config_directory: Optional[Path] = None
    additional_feeds: List[str] = field(default_factory=list)

    def _config_file(self) -> Optional[Path]:
        if self.nuget_config is not None:
            return Path(self.nuget_config)
        if self.root_config_directory is not None:
            for name in NUGET_CONFIG_NAMES:
                candidate = Path(self.root_config_directory) / name
                if candidate.is_file():
                    return candidate
        return None

    def source_feeds(self) -> List[str]:
        """Package sources from the config file followed by the additional feeds."""
        feeds = []
        config_file = self._config_file()
        if config_file is not None:
            feeds.extend(read_package_sources(config_file))
        for feed in self.additional_feeds:
            if feed not in feeds:
                feeds.append(feed)
        return feeds


def is_remote_feed(feed: str) -> bool:
    return feed.lower().startswith(("http://", "https://"))


def read_package_sources(config_file: Path) -> List[str]:
    """
    Read <packageSources> from a NuGet.Config file.

    Relative local sources resolve against the config file's directory;
    a <clear/> element drops the sources declared before it.
    """
    try:
        root = ElementTree.parse(config_file).getroot()
    except (ElementTree.ParseError, OSError) as e:
        raise ValueError(f"Cannot read package sources from {config_file}: {e}") from e

    sources: List[str] = []
    package_sources = root.find("packageSources")
    if package_sources is None:
        return sources

    for element in package_sources:
        if element.tag == "clear":
            sources.clear()
        elif element.tag == "add" and element.get("value"):
            value = element.get("value")
            if not is_remote_feed(value) and not Path(value).is_absolute():
                value = str((config_file.parent / value).resolve())
            sources.append(value)
    return sources


class PackageFetcher(ABC):
    """Abstract base class for package fetchers."""

    def __init__(self, download_dir: Path):
        """Initialize with the directory downloaded archives are written to."""
        self.download_dir = Path(download_dir)

    @abstractmethod
    def download(
        self,
        package_id: PackageId,
        version_range: Optional[VersionRange],
        location: PackageLocation
    ) -> Path:
        """
        Download the best version of package_id satisfying version_range.

        Args:
            package_id: The package to fetch
            version_range: Constraint on versions; None selects the highest stable version
            location: Candidate sources

        Returns:
            Path to the downloaded package archive

        Raises:
            PackageFetchError: If no source has a matching version or a source fails
        """
        pass

    @abstractmethod
    def extract(self, package_path: Path, destination_dir: Path) -> List[str]:
        """
        Expand a downloaded archive into destination_dir.

        Returns:
            Relative paths of the extracted files
        """
        pass
