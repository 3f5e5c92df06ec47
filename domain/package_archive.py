"""Reading package archives (.nupkg) and their nuspec metadata."""
import base64
import hashlib
import zipfile
from pathlib import Path
from typing import List, Optional
from xml.etree import ElementTree

from .asset_manifest import DOTNET_TOOL_PACKAGE_TYPE
from .errors import PackageMetadataError
from .hash_constants import HASH_ALGORITHM
from .package_identity import Version, parse_version

NUSPEC_EXTENSION = ".nuspec"

_METADATA_FILES = ("[content_types].xml", ".signature.p7s")
_METADATA_FOLDERS = ("_rels/", "package/")


def is_package_metadata_entry(name: str) -> bool:
    """True for archive bookkeeping entries that never belong to package content."""
    lowered = name.replace("\\", "/").lower()
    if lowered in _METADATA_FILES:
        return True
    return lowered.startswith(_METADATA_FOLDERS)


def calculate_metadata_hash(nuspec: bytes) -> str:
    """Base64 digest of the nuspec, the integrity hash kept beside an extracted package."""
    hasher = hashlib.new(HASH_ALGORITHM)
    hasher.update(nuspec)
    return base64.b64encode(hasher.digest()).decode('ascii')


def _local_name(tag: str) -> str:
    return tag.rsplit('}', 1)[-1]


class NuspecReader:
    """Reads the fields of a nuspec document regardless of its XML namespace."""

    def __init__(self, nuspec: bytes):
        try:
            self.root = ElementTree.fromstring(nuspec)
        except ElementTree.ParseError as e:
            raise PackageMetadataError(f"Package metadata is not valid XML: {e}") from e

        self.metadata = None
        for child in self.root:
            if _local_name(child.tag) == "metadata":
                self.metadata = child
                break
        if self.metadata is None:
            raise PackageMetadataError("Package metadata has no <metadata> element")

    def _text(self, name: str) -> Optional[str]:
        for child in self.metadata:
            if _local_name(child.tag) == name and child.text and child.text.strip():
                return child.text.strip()
        return None

    def get_id(self) -> str:
        package_id = self._text("id")
        if not package_id:
            raise PackageMetadataError("Package metadata does not declare an id")
        return package_id

    def get_version(self) -> Version:
        raw = self._text("version")
        if not raw:
            raise PackageMetadataError("Package metadata does not declare a version")
        try:
            return parse_version(raw)
        except ValueError as e:
            raise PackageMetadataError(f"Package metadata declares an invalid version '{raw}'") from e

    def get_package_types(self) -> List[str]:
        """Declared package types; packages that declare none are treated as tools."""
        types = []
        for child in self.metadata:
            if _local_name(child.tag) != "packageTypes":
                continue
            for package_type in child:
                name = package_type.get("name")
                if name:
                    types.append(name)
        return types or [DOTNET_TOOL_PACKAGE_TYPE]


class PackageArchiveReader:
    """Opens a .nupkg zip archive; use as a context manager."""

    def __init__(self, package_path: Path):
        self.package_path = Path(package_path)
        try:
            self._zip = zipfile.ZipFile(self.package_path, 'r')
        except (zipfile.BadZipFile, OSError) as e:
            raise PackageMetadataError(f"Package {self.package_path.name} cannot be opened: {e}") from e

    def __enter__(self) -> "PackageArchiveReader":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def close(self) -> None:
        self._zip.close()

    def get_nuspec(self) -> bytes:
        for name in self._zip.namelist():
            if "/" not in name and name.lower().endswith(NUSPEC_EXTENSION):
                return self._zip.read(name)
        raise PackageMetadataError(f"Package {self.package_path.name} does not contain a nuspec")

    def get_nuspec_reader(self) -> NuspecReader:
        return NuspecReader(self.get_nuspec())

    def get_files(self) -> List[str]:
        return [
            name for name in self._zip.namelist()
            if not name.endswith("/") and not is_package_metadata_entry(name)
        ]
