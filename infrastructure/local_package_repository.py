import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from domain.hash_constants import HASH_FILE_EXTENSION, PACKAGE_FILE_EXTENSION
from domain.package_archive import NUSPEC_EXTENSION, NuspecReader, is_package_metadata_entry
from domain.package_identity import PackageId, Version, normalize_version


class VersionFolderPathResolver:
    """Resolves the <root>/<id>/<version>/ layout of extracted packages."""

    def __init__(self, root: Path):
        self.root = Path(root)

    @staticmethod
    def _names(package_id: PackageId, version: Version):
        return str(package_id).lower(), normalize_version(version).lower()

    def get_install_path(self, package_id: PackageId, version: Version) -> Path:
        package_name, version_name = self._names(package_id, version)
        return self.root / package_name / version_name

    def get_hash_path(self, package_id: PackageId, version: Version) -> Path:
        package_name, version_name = self._names(package_id, version)
        return self.get_install_path(package_id, version) / f"{package_name}.{version_name}{HASH_FILE_EXTENSION}"


@dataclass
class LocalPackageInfo:
    package_id: PackageId
    version: Version
    expanded_path: Path
    files: List[str] = field(default_factory=list)

    def get_nuspec_reader(self) -> Optional[NuspecReader]:
        nuspecs = sorted(self.expanded_path.glob(f"*{NUSPEC_EXTENSION}"))
        if not nuspecs:
            return None
        return NuspecReader(nuspecs[0].read_bytes())


class LocalPackageRepository:
    """Read-only view over packages already extracted below a root directory."""

    def __init__(self, root: Path):
        self.root = Path(root)
        self.path_resolver = VersionFolderPathResolver(self.root)

    def find_package(self, package_id: PackageId, version: Version) -> Optional[LocalPackageInfo]:
        """
        A package counts as present once its hash file exists, since the hash
        is written before extraction and the extraction fills in the rest.
        """
        hash_path = self.path_resolver.get_hash_path(package_id, version)
        if not hash_path.is_file():
            return None

        install_path = self.path_resolver.get_install_path(package_id, version)
        return LocalPackageInfo(
            package_id=package_id,
            version=version,
            expanded_path=install_path,
            files=self._collect_files(install_path),
        )

    def _collect_files(self, directory: Path) -> List[str]:
        files = []
        for root, _, filenames in os.walk(directory):
            for filename in filenames:
                relative_path = (Path(root) / filename).relative_to(directory).as_posix()
                if self._is_package_file(relative_path):
                    files.append(relative_path)
        return sorted(files)

    @staticmethod
    def _is_package_file(relative_path: str) -> bool:
        if is_package_metadata_entry(relative_path):
            return False
        if "/" in relative_path:
            return True
        lowered = relative_path.lower()
        return not lowered.endswith((NUSPEC_EXTENSION, HASH_FILE_EXTENSION, PACKAGE_FILE_EXTENSION, ".nupkg.metadata"))
