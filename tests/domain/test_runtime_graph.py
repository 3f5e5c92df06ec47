import json

import pytest
from domain.runtime_graph import RuntimeGraph


class TestRuntimeGraph:
    def test_expand_is_breadth_first(self, runtime_graph):
        assert runtime_graph.expand("linux-x64") == ("linux-x64", "linux", "unix", "any")

    def test_unknown_identifier_expands_to_itself(self, runtime_graph):
        assert runtime_graph.expand("freebsd-x64") == ("freebsd-x64",)

    def test_compatibility(self, runtime_graph):
        assert runtime_graph.are_compatible("linux-x64", "any")
        assert runtime_graph.are_compatible("linux-x64", "linux-x64")
        assert not runtime_graph.are_compatible("linux-x64", "win")
        assert not runtime_graph.are_compatible("any", "linux-x64")

    def test_distance(self, runtime_graph):
        assert runtime_graph.distance("linux-x64", "linux-x64") == 0
        assert runtime_graph.distance("linux-x64", "any") == 3
        assert runtime_graph.distance("linux-x64", "win") == 4

    def test_diamond_imports_are_visited_once(self):
        graph = RuntimeGraph.from_dict({
            "runtimes": {
                "any": {},
                "unix": {"#import": ["any"]},
                "linux": {"#import": ["unix"]},
                "unix-x64": {"#import": ["unix"]},
                "linux-x64": {"#import": ["linux", "unix-x64"]},
            }
        })

        assert graph.expand("linux-x64") == ("linux-x64", "linux", "unix-x64", "unix", "any")

    def test_from_file(self, runtime_graph_file):
        graph = RuntimeGraph.from_file(runtime_graph_file)
        assert graph.are_compatible("win-x64", "any")

    def test_invalid_document(self, tmp_path):
        path = tmp_path / "runtime.json"
        path.write_text(json.dumps({"runtimes": []}))

        with pytest.raises(ValueError):
            RuntimeGraph.from_file(path)

    def test_bundled_graph(self):
        graph = RuntimeGraph.load_default()

        assert graph.are_compatible("linux-x64", "any")
        assert graph.are_compatible("osx-arm64", "unix")
        assert graph.are_compatible("win-x64", "win")
        assert graph.expand("linux-musl-x64")[:3] == ("linux-musl-x64", "linux-musl", "linux-x64")
