from abc import ABC, abstractmethod
from pathlib import Path

from .package_identity import PackageId, Version


class ToolPackageStore(ABC):
    """
    Abstract store interface for installed tool packages.

    This interface defines where packages are staged and where each
    installed package version lives permanently.
    """

    @abstractmethod
    def get_random_staging_directory(self) -> Path:
        """
        Return a fresh, unused staging directory path.

        The directory is not created; callers create it when they need it.
        """
        pass

    @abstractmethod
    def get_package_directory(self, package_id: PackageId, version: Version) -> Path:
        """
        Permanent directory of one installed package version.
        """
        pass

    @abstractmethod
    def get_root_package_directory(self, package_id: PackageId) -> Path:
        """
        Directory holding every installed version of package_id.
        """
        pass
