import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Callable, Optional

from application.asset_manifest_builder import AssetManifestBuilder
from application.config import InstallerConfig
from application.dtos import InstalledToolPackage
from application.package_acquisition import PackageAcquisition
from domain.errors import ToolPackageConflictError
from domain.package_fetcher import PackageFetcher, PackageLocation
from domain.package_identity import PackageId, VersionRange, normalize_version
from domain.tool_package_store import ToolPackageStore
from infrastructure.file_access_retrier import FileAccessRetrier
from infrastructure.http_package_fetcher import HttpPackageFetcher

logger = logging.getLogger(__name__)


class InstallToolPackage:
    """Orchestrates acquiring a tool package and writing its asset manifest."""

    def __init__(
        self,
        store: ToolPackageStore,
        config: InstallerConfig,
        fetcher_factory: Optional[Callable[[Path], PackageFetcher]] = None,
        manifest_builder: Optional[AssetManifestBuilder] = None,
        retrier: Optional[FileAccessRetrier] = None
    ):
        if store is None:
            raise ValueError("store is required")
        self.store = store
        self.config = config
        self.fetcher_factory = fetcher_factory or self._default_fetcher
        self.manifest_builder = manifest_builder or AssetManifestBuilder(
            config.load_runtime_graph(),
            config.target_framework,
            config.runtime_identifier
        )
        self.retrier = retrier or FileAccessRetrier(
            max_retries=config.move_retry_attempts,
            initial_delay=config.move_retry_initial_delay
        )

    def _default_fetcher(self, download_dir: Path) -> PackageFetcher:
        return HttpPackageFetcher(download_dir, timeout=self.config.http_timeout)

    def install(
        self,
        location: PackageLocation,
        package_id: PackageId,
        version_range: Optional[VersionRange] = None,
        is_global_tool: bool = False
    ) -> InstalledToolPackage:
        """
        Install a tool package globally (staged, then moved into the store)
        or locally (left in the local download directory).
        """
        if is_global_tool:
            download_dir = self.store.get_random_staging_directory()
            asset_dir = download_dir
        else:
            download_dir = self.config.local_download_dir
            asset_dir = Path(tempfile.mkdtemp(prefix="tool_assets_"))

        logger.info("Installing %s %s (%s)", package_id, version_range or "*", "global" if is_global_tool else "local")

        try:
            download_dir.mkdir(parents=True, exist_ok=True)
            acquisition = PackageAcquisition(self.fetcher_factory(download_dir), download_dir)
            acquired = acquisition.acquire(location, package_id, version_range)
            version = acquired.version
            self.manifest_builder.build(package_id, version, download_dir, asset_dir)

            if is_global_tool:
                package_directory = self._move_into_store(package_id, version, download_dir)
                return InstalledToolPackage(
                    package_id=package_id,
                    version=version,
                    package_directory=package_directory,
                    assets_json_parent_directory=package_directory
                )
        except Exception:
            if is_global_tool:
                shutil.rmtree(download_dir, ignore_errors=True)
            else:
                shutil.rmtree(asset_dir, ignore_errors=True)
            raise

        return InstalledToolPackage(
            package_id=package_id,
            version=version,
            package_directory=download_dir,
            assets_json_parent_directory=asset_dir
        )

    def _move_into_store(self, package_id: PackageId, version, staging_dir: Path) -> Path:
        package_directory = self.store.get_package_directory(package_id, version)
        if package_directory.exists():
            raise ToolPackageConflictError(
                str(package_id),
                normalize_version(version),
                reason=f"{package_directory} already exists"
            )

        self.store.get_root_package_directory(package_id).mkdir(parents=True, exist_ok=True)
        # Rename only: a failed attempt leaves the staged tree where it was.
        self.retrier.retry_on_move_access_failure(
            lambda: os.replace(staging_dir, package_directory)
        )
        logger.info("Moved %s %s into %s", package_id, version, package_directory)
        return package_directory
