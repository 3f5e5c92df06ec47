"""Persisted asset manifest (project.assets.json)."""
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List

from .asset_selection import AssetItem

ASSETS_FILE_NAME = "project.assets.json"
ASSETS_FORMAT_VERSION = 3
DOTNET_TOOL_PACKAGE_TYPE = "DotnetTool"


@dataclass
class AssetManifest:
    """Which files of one package apply to one framework/runtime target."""
    package_id: str
    version: str
    target_framework: str
    runtime_identifier: str
    package_types: List[str] = field(default_factory=lambda: [DOTNET_TOOL_PACKAGE_TYPE])
    tools_assemblies: List[AssetItem] = field(default_factory=list)

    @property
    def target_name(self) -> str:
        if self.runtime_identifier:
            return f"{self.target_framework}/{self.runtime_identifier}"
        return self.target_framework

    @property
    def library_name(self) -> str:
        return f"{self.package_id}/{self.version}"

    def to_dict(self) -> Dict[str, Any]:
        library = {
            "type": "package",
            "packageType": list(self.package_types),
            "tools": {item.path: dict(item.properties) for item in self.tools_assemblies},
        }
        return {
            "version": ASSETS_FORMAT_VERSION,
            "targets": {self.target_name: {self.library_name: library}},
            "libraries": {},
            "projectFileDependencyGroups": {},
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AssetManifest":
        targets = data.get("targets") or {}
        if len(targets) != 1:
            raise ValueError(f"Expected exactly one target, found {len(targets)}")
        target_name, libraries = next(iter(targets.items()))
        if not libraries or len(libraries) != 1:
            raise ValueError(f"Expected exactly one library in target {target_name}")
        library_name, library = next(iter(libraries.items()))

        target_framework, _, runtime_identifier = target_name.partition("/")
        package_id, _, version = library_name.partition("/")
        tools = [AssetItem(path, dict(properties or {})) for path, properties in (library.get("tools") or {}).items()]

        return cls(
            package_id=package_id,
            version=version,
            target_framework=target_framework,
            runtime_identifier=runtime_identifier,
            package_types=list(library.get("packageType") or []),
            tools_assemblies=tools,
        )

    def write(self, directory: Path) -> Path:
        """Write the manifest into directory and return the file path."""
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / ASSETS_FILE_NAME
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(self.to_dict(), f, indent=2)
        return path

    @classmethod
    def read(cls, directory: Path) -> "AssetManifest":
        with open(directory / ASSETS_FILE_NAME, 'r', encoding='utf-8') as f:
            return cls.from_dict(json.load(f))
