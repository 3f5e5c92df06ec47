import logging
from pathlib import Path

from domain.asset_manifest import DOTNET_TOOL_PACKAGE_TYPE, AssetManifest
from domain.asset_selection import select_best_group
from domain.content_model import ContentItemCollection, ManagedCodeConventions
from domain.errors import StoreConsistencyError
from domain.frameworks import TargetFramework, parse_framework
from domain.package_identity import PackageId, Version, normalize_version
from domain.runtime_graph import RuntimeGraph
from infrastructure.local_package_repository import LocalPackageRepository

logger = logging.getLogger(__name__)


class AssetManifestBuilder:
    """Writes project.assets.json for one extracted package."""

    def __init__(self, runtime_graph: RuntimeGraph, target_framework: str, runtime_identifier: str):
        framework = parse_framework(target_framework)
        if framework is None or framework.is_any:
            raise ValueError(f"Unsupported target framework: {target_framework}")
        self.target_framework: TargetFramework = framework
        self.runtime_identifier = runtime_identifier
        self.conventions = ManagedCodeConventions(runtime_graph)

    def build(self, package_id: PackageId, version: Version, package_root: Path, asset_directory: Path) -> Path:
        """
        Select the package's assets for the configured target and persist them.

        Args:
            package_id: Package that was acquired
            version: Resolved version of the package
            package_root: Root the package was extracted below (<root>/<id>/<version>/)
            asset_directory: Directory receiving project.assets.json

        Returns:
            Path of the written manifest

        Raises:
            StoreConsistencyError: If the package is not present below package_root
        """
        package = LocalPackageRepository(package_root).find_package(package_id, version)
        if package is None:
            raise StoreConsistencyError(
                f"Package {package_id} {version} was not found in {package_root} after it was acquired"
            )

        nuspec_reader = package.get_nuspec_reader()
        package_types = nuspec_reader.get_package_types() if nuspec_reader else [DOTNET_TOOL_PACKAGE_TYPE]

        manifest = AssetManifest(
            package_id=str(package_id),
            version=normalize_version(version),
            target_framework=self.target_framework.short_folder_name,
            runtime_identifier=self.runtime_identifier,
            package_types=package_types,
        )

        if DOTNET_TOOL_PACKAGE_TYPE in package_types:
            collection = ContentItemCollection(self.conventions.path_properties).load(package.files)
            criteria = [self.conventions.for_framework_and_runtime(self.target_framework, self.runtime_identifier)]
            group = select_best_group(criteria, collection, self.conventions.tools_assemblies)
            if not group:
                logger.warning("No tool assets of %s %s match %s", package_id, version, manifest.target_name)
            manifest.tools_assemblies = list(group.items)

        path = manifest.write(Path(asset_directory))
        logger.info("Wrote asset manifest for %s %s to %s", package_id, version, path)
        return path
