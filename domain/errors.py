"""Error kinds raised by the tool package pipeline."""
from typing import Optional


class ToolPackageError(Exception):
    """Base class for every tool package failure."""


class PackageFetchError(ToolPackageError):
    """The package source was unreachable or did not have the package."""

    def __init__(self, package_id: str, message: str):
        super().__init__(message)
        self.package_id = package_id


class ToolPackageConflictError(ToolPackageError):
    """The package collides with content already present in the store."""

    def __init__(self, package_id: str, version: str, reason: Optional[str] = None):
        message = f"The tool package could not be restored: {package_id} {version} conflicts with existing content"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)
        self.package_id = package_id
        self.version = version


class PackageMetadataError(ToolPackageError):
    """The package's declared metadata could not be read."""


class StoreConsistencyError(ToolPackageError):
    """A package that was just acquired cannot be found in the store."""


class MoveContentionError(ToolPackageError):
    """Relocating staged content kept failing on file access errors."""
