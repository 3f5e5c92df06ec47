import pytest
from domain.package_fetcher import PackageLocation, is_remote_feed, read_package_sources

CONFIG = """<?xml version="1.0" encoding="utf-8"?>
<configuration>
  <packageSources>
    {sources}
  </packageSources>
</configuration>
"""


def _write_config(directory, sources, name="nuget.config"):
    path = directory / name
    path.write_text(CONFIG.format(sources=sources))
    return path


class TestReadPackageSources:
    def test_reads_remote_and_relative_sources(self, tmp_path):
        config = _write_config(tmp_path, """
            <add key="nuget.org" value="https://api.nuget.org/v3/index.json" />
            <add key="local" value="feed" />
        """)

        assert read_package_sources(config) == [
            "https://api.nuget.org/v3/index.json",
            str((tmp_path / "feed").resolve()),
        ]

    def test_clear_drops_earlier_sources(self, tmp_path):
        config = _write_config(tmp_path, """
            <add key="a" value="https://a.example/v3/index.json" />
            <clear />
            <add key="b" value="https://b.example/v3/index.json" />
        """)

        assert read_package_sources(config) == ["https://b.example/v3/index.json"]

    def test_no_package_sources(self, tmp_path):
        config = tmp_path / "nuget.config"
        config.write_text("<configuration />")

        assert read_package_sources(config) == []

    def test_invalid_config(self, tmp_path):
        config = tmp_path / "nuget.config"
        config.write_text("<configuration>")

        with pytest.raises(ValueError, match="Cannot read package sources"):
            read_package_sources(config)


class TestPackageLocation:
    def test_explicit_config_then_additional_feeds(self, tmp_path):
        config = _write_config(tmp_path, '<add key="a" value="https://a.example/v3/index.json" />')
        location = PackageLocation(
            nuget_config=config,
            additional_feeds=["https://a.example/v3/index.json", "/srv/feed"],
        )

        assert location.source_feeds() == ["https://a.example/v3/index.json", "/srv/feed"]

    def test_config_found_in_root_directory(self, tmp_path):
        _write_config(tmp_path, '<add key="a" value="https://a.example/v3/index.json" />', name="NuGet.Config")

        location = PackageLocation(root_config_directory=tmp_path)

        assert location.source_feeds() == ["https://a.example/v3/index.json"]

    def test_no_sources(self, tmp_path):
        assert PackageLocation(root_config_directory=tmp_path).source_feeds() == []


def test_is_remote_feed():
    assert is_remote_feed("https://api.nuget.org/v3/index.json")
    assert is_remote_feed("HTTP://feed.local/")
    assert not is_remote_feed("/srv/feed")
