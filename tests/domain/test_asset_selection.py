import pytest
from domain.asset_selection import AssetGroup, AssetItem, select_best_group
from domain.content_model import ContentItemCollection, ManagedCodeConventions, SelectionCriteria, SelectionCriteriaEntry
from domain.frameworks import parse_framework


@pytest.fixture
def conventions(runtime_graph):
    return ManagedCodeConventions(runtime_graph)


def _criteria(conventions, framework="net8.0", rid="linux-x64"):
    return conventions.for_framework_and_runtime(parse_framework(framework), rid)


class TestSelectBestGroup:
    def test_selects_nearest_framework(self, conventions):
        collection = ContentItemCollection().load([
            "tools/net8.0/any/demo.dll",
            "tools/net6.0/any/demo.dll",
        ])

        group = select_best_group([_criteria(conventions)], collection, conventions.tools_assemblies)

        assert group.paths == ("tools/net8.0/any/demo.dll",)

    def test_first_matching_criteria_wins(self, conventions):
        collection = ContentItemCollection().load([
            "tools/net6.0/any/demo.dll",
            "tools/net8.0/any/demo.dll",
        ])
        first = _criteria(conventions, "net6.0")
        fallback = _criteria(conventions, "net8.0")

        group = select_best_group([first, fallback], collection, conventions.tools_assemblies)

        assert group.paths == ("tools/net6.0/any/demo.dll",)
        assert group.criteria is first

    def test_falls_through_to_later_criteria(self, conventions):
        collection = ContentItemCollection().load(["tools/net8.0/any/demo.dll"])
        unmatched = SelectionCriteria((SelectionCriteriaEntry.of(tfm=parse_framework("net6.0"), rid=None),))
        fallback = _criteria(conventions, "net8.0")

        group = select_best_group([unmatched, fallback], collection, conventions.tools_assemblies)

        assert group.paths == ("tools/net8.0/any/demo.dll",)
        assert group.criteria is fallback

    def test_no_match_returns_empty_group(self, conventions):
        collection = ContentItemCollection().load(["lib/net8.0/demo.dll", "tools/net9.0/any/demo.dll"])

        group = select_best_group([_criteria(conventions)], collection, conventions.tools_assemblies)

        assert not group
        assert group == AssetGroup.empty()
        assert group.paths == ()

    def test_no_criteria_returns_empty_group(self, conventions):
        collection = ContentItemCollection().load(["tools/net8.0/any/demo.dll"])

        assert not select_best_group([], collection, conventions.tools_assemblies)

    def test_only_locale_and_related_are_preserved(self, conventions):
        collection = ContentItemCollection().load([
            "tools/net8.0/any/demo.dll",
            "tools/net8.0/any/demo.pdb",
            "tools/net8.0/any/fr/demo.resources.dll",
        ])

        group = select_best_group([_criteria(conventions)], collection, conventions.tools_assemblies)

        assert group.items == (
            AssetItem("tools/net8.0/any/demo.dll", {"related": ".pdb"}),
            AssetItem("tools/net8.0/any/demo.pdb", {}),
            AssetItem("tools/net8.0/any/fr/demo.resources.dll", {"locale": "fr"}),
        )

    def test_additional_action_runs_for_every_item(self, conventions):
        collection = ContentItemCollection().load([
            "tools/net8.0/any/demo.dll",
            "tools/net8.0/any/demo.runtimeconfig.json",
        ])
        seen = []

        def tag(item):
            seen.append(item.path)
            item.properties["tagged"] = "true"

        group = select_best_group(
            [_criteria(conventions)], collection, conventions.tools_assemblies, additional_action=tag
        )

        assert seen == list(group.paths)
        assert all(item.properties["tagged"] == "true" for item in group.items)

    def test_selection_is_deterministic(self, conventions):
        paths = [
            "tools/net6.0/any/demo.dll",
            "tools/net8.0/linux-x64/demo.dll",
            "tools/net8.0/any/demo.dll",
            "tools/net8.0/linux-x64/demo.pdb",
        ]

        results = {
            select_best_group(
                [_criteria(conventions)], ContentItemCollection().load(paths), conventions.tools_assemblies
            ).paths
            for _ in range(5)
        }

        assert results == {("tools/net8.0/linux-x64/demo.dll", "tools/net8.0/linux-x64/demo.pdb")}
