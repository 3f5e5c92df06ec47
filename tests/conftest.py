import json
import zipfile
from pathlib import Path
from typing import Dict, Iterable, Optional

import pytest

from domain.runtime_graph import RuntimeGraph

NUSPEC_NAMESPACE = "http://schemas.microsoft.com/packaging/2013/05/nuspec.xsd"


def build_nuspec(package_id: str, version: str, package_types: Iterable[str] = ("DotnetTool",)) -> bytes:
    types_xml = "".join(f'<packageType name="{name}" />' for name in package_types)
    if types_xml:
        types_xml = f"<packageTypes>{types_xml}</packageTypes>"
    return (
        '<?xml version="1.0" encoding="utf-8"?>'
        f'<package xmlns="{NUSPEC_NAMESPACE}">'
        f'<metadata><id>{package_id}</id><version>{version}</version>'
        '<authors>test</authors><description>test package</description>'
        f'{types_xml}</metadata></package>'
    ).encode("utf-8")


def write_nupkg(
    directory: Path,
    package_id: str,
    version: str,
    files: Dict[str, bytes],
    package_types: Iterable[str] = ("DotnetTool",),
    nuspec: Optional[bytes] = None,
    file_name: Optional[str] = None
) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / (file_name or f"{package_id}.{version}.nupkg")
    with zipfile.ZipFile(path, "w", zipfile.ZIP_DEFLATED) as zf:
        zf.writestr("[Content_Types].xml", b"<Types />")
        zf.writestr("_rels/.rels", b"<Relationships />")
        zf.writestr("package/services/metadata/core-properties/abc.psmdcp", b"<coreProperties />")
        zf.writestr(f"{package_id}.nuspec", nuspec if nuspec is not None else build_nuspec(package_id, version, package_types))
        for name, content in files.items():
            zf.writestr(name, content)
    return path


@pytest.fixture
def nupkg_factory():
    """Returns write_nupkg(directory, package_id, version, files, ...)."""
    return write_nupkg


@pytest.fixture
def nuspec_factory():
    return build_nuspec


@pytest.fixture
def runtime_graph():
    """Small synthetic graph: linux-x64 -> linux -> unix -> any, win-x64 -> win -> any."""
    return RuntimeGraph.from_dict({
        "runtimes": {
            "any": {"#import": []},
            "unix": {"#import": ["any"]},
            "linux": {"#import": ["unix"]},
            "linux-x64": {"#import": ["linux"]},
            "win": {"#import": ["any"]},
            "win-x64": {"#import": ["win"]},
        }
    })


@pytest.fixture
def runtime_graph_file(tmp_path, runtime_graph):
    path = tmp_path / "runtime.json"
    path.write_text(json.dumps({
        "runtimes": {rid: {"#import": parents} for rid, parents in runtime_graph.imports.items()}
    }))
    return path
