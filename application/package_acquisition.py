import logging
from pathlib import Path
from typing import Optional

from application.dtos import AcquiredPackage
from domain.errors import PackageMetadataError, ToolPackageConflictError
from domain.package_archive import PackageArchiveReader, calculate_metadata_hash
from domain.package_fetcher import PackageFetcher, PackageLocation
from domain.package_identity import PackageId, VersionRange, normalize_version
from infrastructure.local_package_repository import VersionFolderPathResolver

logger = logging.getLogger(__name__)


class PackageAcquisition:
    """Downloads a package, records its metadata hash and extracts it."""

    def __init__(self, fetcher: PackageFetcher, destination_root: Path):
        self.fetcher = fetcher
        self.destination_root = Path(destination_root)
        self.path_resolver = VersionFolderPathResolver(self.destination_root)

    def acquire(
        self,
        location: PackageLocation,
        package_id: PackageId,
        version_range: Optional[VersionRange] = None
    ) -> AcquiredPackage:
        """
        Acquire package_id into <destination_root>/<id>/<version>/.

        The hash of the package's nuspec is written before extraction starts.

        Raises:
            PackageFetchError: Propagated unchanged from the fetcher
            PackageMetadataError: If the nuspec is missing, malformed or disagrees with the request
            ToolPackageConflictError: If the package collides with existing store content
        """
        package_path = Path(self.fetcher.download(package_id, version_range, location))

        with PackageArchiveReader(package_path) as reader:
            nuspec = reader.get_nuspec()
            nuspec_reader = reader.get_nuspec_reader()
            declared_id = nuspec_reader.get_id()
            version = nuspec_reader.get_version()

        if declared_id.lower() != str(package_id):
            raise PackageMetadataError(
                f"Package {package_path.name} declares id '{declared_id}' instead of '{package_id}'"
            )
        if version_range is not None and not version_range.is_unconstrained and not version_range.satisfies(version):
            raise PackageMetadataError(
                f"Package {package_path.name} declares version {version} outside of {version_range}"
            )

        package_hash = calculate_metadata_hash(nuspec)
        self._write_hash(package_id, version, package_hash)

        extracted_path = self.path_resolver.get_install_path(package_id, version)
        files = self.fetcher.extract(package_path, extracted_path)

        if package_path.is_dir():
            raise ToolPackageConflictError(str(package_id), normalize_version(version))

        logger.info("Extracted %s %s (%s files) to %s", package_id, version, len(files), extracted_path)
        return AcquiredPackage(
            version=version,
            package_path=package_path,
            extracted_path=extracted_path,
            files=list(files),
        )

    def _write_hash(self, package_id: PackageId, version, package_hash: str) -> None:
        hash_path = self.path_resolver.get_hash_path(package_id, version)
        if hash_path.is_file():
            existing = hash_path.read_text(encoding='ascii').strip()
            if existing != package_hash:
                raise ToolPackageConflictError(
                    str(package_id),
                    normalize_version(version),
                    reason="a package with different content is already extracted"
                )

        hash_path.parent.mkdir(parents=True, exist_ok=True)
        hash_path.write_text(package_hash, encoding='ascii')
