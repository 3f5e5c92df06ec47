import uuid
from pathlib import Path

from domain.package_identity import PackageId, Version, normalize_version
from domain.tool_package_store import ToolPackageStore

STAGING_FOLDER_NAME = ".stage"


class FileSystemToolPackageStore(ToolPackageStore):
    def __init__(self, root: Path):
        self.root = Path(root)

    def get_random_staging_directory(self) -> Path:
        return self.root / STAGING_FOLDER_NAME / uuid.uuid4().hex

    def get_package_directory(self, package_id: PackageId, version: Version) -> Path:
        return self.get_root_package_directory(package_id) / normalize_version(version).lower()

    def get_root_package_directory(self, package_id: PackageId) -> Path:
        return self.root / str(package_id)
