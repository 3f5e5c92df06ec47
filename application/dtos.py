from dataclasses import dataclass, field
from pathlib import Path
from typing import List

from domain.asset_manifest import AssetManifest
from domain.package_identity import PackageId, Version


@dataclass
class AcquiredPackage:
    version: Version
    package_path: Path
    extracted_path: Path
    files: List[str] = field(default_factory=list)


@dataclass
class InstalledToolPackage:
    package_id: PackageId
    version: Version
    package_directory: Path
    assets_json_parent_directory: Path

    def read_manifest(self) -> AssetManifest:
        return AssetManifest.read(self.assets_json_parent_directory)

    @property
    def tools_assemblies(self) -> List[str]:
        return [item.path for item in self.read_manifest().tools_assemblies]
