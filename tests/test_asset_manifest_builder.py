import pytest

from application.asset_manifest_builder import AssetManifestBuilder
from domain.asset_manifest import ASSETS_FILE_NAME, AssetManifest
from domain.errors import StoreConsistencyError
from domain.package_identity import PackageId, Version


@pytest.fixture
def extract_package(tmp_path, nuspec_factory):
    """Lays out <root>/<id>/<version>/ the way package acquisition leaves it."""
    def extract(package_id, version, files, package_types=("DotnetTool",)):
        root = tmp_path / "packages"
        directory = root / package_id / version
        directory.mkdir(parents=True)
        (directory / f"{package_id}.{version}.nupkg.sha512").write_text("hash")
        (directory / f"{package_id}.nuspec").write_bytes(nuspec_factory(package_id, version, package_types))
        for name in files:
            path = directory / name
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(b"content")
        return root
    return extract


class TestAssetManifestBuilder:
    def test_selects_nearest_framework(self, tmp_path, runtime_graph, extract_package):
        root = extract_package("demo.tool", "1.2.0", [
            "tools/net8.0/any/demo.dll",
            "tools/net6.0/any/demo.dll",
        ])
        builder = AssetManifestBuilder(runtime_graph, "net8.0", "linux-x64")

        path = builder.build(PackageId("demo.tool"), Version("1.2.0"), root, tmp_path / "assets")

        assert path == tmp_path / "assets" / ASSETS_FILE_NAME
        manifest = AssetManifest.read(tmp_path / "assets")
        assert manifest.package_id == "demo.tool"
        assert manifest.version == "1.2.0"
        assert manifest.target_name == "net8.0/linux-x64"
        assert manifest.package_types == ["DotnetTool"]
        assert [item.path for item in manifest.tools_assemblies] == ["tools/net8.0/any/demo.dll"]

    def test_runtime_specific_assets_preferred(self, tmp_path, runtime_graph, extract_package):
        root = extract_package("demo.tool", "1.2.0", [
            "tools/net8.0/any/demo.dll",
            "tools/net8.0/linux-x64/demo",
            "tools/net8.0/win-x64/demo.exe",
        ])
        builder = AssetManifestBuilder(runtime_graph, "net8.0", "linux-x64")

        builder.build(PackageId("demo.tool"), Version("1.2.0"), root, tmp_path / "assets")

        manifest = AssetManifest.read(tmp_path / "assets")
        assert [item.path for item in manifest.tools_assemblies] == ["tools/net8.0/linux-x64/demo"]

    def test_no_matching_assets_writes_empty_tools(self, tmp_path, runtime_graph, extract_package):
        root = extract_package("demo.tool", "1.2.0", ["lib/net8.0/demo.dll", "tools/net9.0/any/demo.dll"])
        builder = AssetManifestBuilder(runtime_graph, "net8.0", "linux-x64")

        builder.build(PackageId("demo.tool"), Version("1.2.0"), root, tmp_path / "assets")

        manifest = AssetManifest.read(tmp_path / "assets")
        assert manifest.tools_assemblies == []
        assert manifest.to_dict()["targets"]["net8.0/linux-x64"]["demo.tool/1.2.0"]["tools"] == {}

    def test_non_tool_package_has_no_tool_assets(self, tmp_path, runtime_graph, extract_package):
        root = extract_package("demo.lib", "2.0.0", ["tools/net8.0/any/demo.dll"], package_types=["Dependency"])
        builder = AssetManifestBuilder(runtime_graph, "net8.0", "linux-x64")

        builder.build(PackageId("demo.lib"), Version("2.0.0"), root, tmp_path / "assets")

        manifest = AssetManifest.read(tmp_path / "assets")
        assert manifest.package_types == ["Dependency"]
        assert manifest.tools_assemblies == []

    def test_bookkeeping_files_are_not_assets(self, tmp_path, runtime_graph, extract_package):
        root = extract_package("demo.tool", "1.2.0", ["tools/net8.0/any/demo.dll"])
        builder = AssetManifestBuilder(runtime_graph, "net8.0", "")

        builder.build(PackageId("demo.tool"), Version("1.2.0"), root, tmp_path / "assets")

        manifest = AssetManifest.read(tmp_path / "assets")
        assert manifest.target_name == "net8.0"
        assert [item.path for item in manifest.tools_assemblies] == ["tools/net8.0/any/demo.dll"]

    def test_missing_package_is_store_inconsistency(self, tmp_path, runtime_graph):
        builder = AssetManifestBuilder(runtime_graph, "net8.0", "linux-x64")

        with pytest.raises(StoreConsistencyError, match="demo.tool"):
            builder.build(PackageId("demo.tool"), Version("1.2.0"), tmp_path / "packages", tmp_path / "assets")

        assert not (tmp_path / "assets" / ASSETS_FILE_NAME).exists()

    @pytest.mark.parametrize("framework", ["any", "banana", ""])
    def test_unsupported_framework(self, runtime_graph, framework):
        with pytest.raises(ValueError, match="Unsupported target framework"):
            AssetManifestBuilder(runtime_graph, framework, "linux-x64")
