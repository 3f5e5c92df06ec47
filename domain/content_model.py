"""
Content model for package files.

Package files are loaded into ContentItems, grouped by pattern sets such as
``tools/{tfm}/{rid}/{any?}`` and matched against SelectionCriteria to find
the group that best fits a target framework and runtime identifier.
"""
import posixpath
import re
from collections import defaultdict
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from .frameworks import compare_nearest, is_compatible, parse_framework
from .runtime_graph import RuntimeGraph

ASSEMBLY_EXTENSIONS = (".dll", ".exe", ".winmd")
SATELLITE_SUFFIX = ".resources.dll"

_TOKEN_RE = re.compile(r'\{([a-z]+)(\?)?\}')
_CULTURE_RE = re.compile(r'^[a-z]{2,3}(-[a-z0-9]{2,8})*$', re.IGNORECASE)

# Package layout folders, never culture names.
LAYOUT_FOLDERS = frozenset({
    "lib", "ref", "tools", "runtimes", "native", "build", "buildtransitive",
    "content", "contentfiles", "analyzers", "any",
})


@dataclass(frozen=True)
class ContentItem:
    """One package file plus the properties parsed from its path."""
    path: str
    properties: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "properties", MappingProxyType(dict(self.properties)))


@dataclass
class ContentItemGroup:
    properties: Dict[str, Any]
    items: List[ContentItem] = field(default_factory=list)


@dataclass(frozen=True)
class ContentPropertyDefinition:
    """How a path token is parsed, tested against criteria and ranked."""
    name: str
    parser: Callable[[str], Optional[Any]] = lambda value: value
    compatibility_test: Optional[Callable[[Any, Any], bool]] = None
    compare_test: Optional[Callable[[Any, Any, Any], int]] = None

    def try_parse(self, value: str) -> Optional[Any]:
        if not value:
            return None
        return self.parser(value)

    def is_criteria_satisfied(self, criteria_value: Any, candidate_value: Any) -> bool:
        if self.compatibility_test is None:
            return criteria_value == candidate_value
        return self.compatibility_test(criteria_value, candidate_value)

    def compare(self, criteria_value: Any, best_value: Any, candidate_value: Any) -> int:
        if self.compare_test is None:
            return 0
        return self.compare_test(criteria_value, best_value, candidate_value)


class PatternDefinition:
    """
    A path pattern like ``tools/{tfm}/{rid}/{any?}``.

    ``{any}`` swallows the rest of the path, every other token matches one
    path segment. A trailing ``?`` makes the token optional.
    """

    def __init__(self, pattern: str):
        self.pattern = pattern
        self.tokens: List[str] = []
        self._regex = re.compile(self._compile(pattern), re.IGNORECASE)

    def _compile(self, pattern: str) -> str:
        parts = []
        position = 0
        for token in _TOKEN_RE.finditer(pattern):
            parts.append(re.escape(pattern[position:token.start()]))
            name, optional = token.group(1), token.group(2)
            self.tokens.append(name)
            body = '.+' if name == "any" else '[^/]+'
            group = f'(?P<{name}>{body})'
            parts.append(f'(?:{group})?' if optional else group)
            position = token.end()
        parts.append(re.escape(pattern[position:]))
        return ''.join(parts)

    def match(self, path: str, definitions: Mapping[str, ContentPropertyDefinition]) -> Optional[Dict[str, Any]]:
        """Return the parsed token values, or None if the path does not fit."""
        found = self._regex.fullmatch(path)
        if not found:
            return None

        properties = {}
        for name in self.tokens:
            raw = found.group(name)
            if raw is None:
                continue
            definition = definitions.get(name)
            value = definition.try_parse(raw) if definition else raw
            if value is None:
                return None
            properties[name] = value
        return properties

    def __repr__(self) -> str:
        return f"PatternDefinition({self.pattern!r})"


@dataclass
class PatternSet:
    properties: Mapping[str, ContentPropertyDefinition]
    group_patterns: List[PatternDefinition]
    path_patterns: List[PatternDefinition]


@dataclass(frozen=True)
class SelectionCriteriaEntry:
    """Required property values; a None value means the property must be absent."""
    properties: Tuple[Tuple[str, Any], ...]

    @classmethod
    def of(cls, **properties: Any) -> "SelectionCriteriaEntry":
        return cls(tuple(properties.items()))


@dataclass(frozen=True)
class SelectionCriteria:
    """Ordered fallback preference, most specific entry first."""
    entries: Tuple[SelectionCriteriaEntry, ...]


PathPropertyExtractor = Callable[[str, Mapping[str, List[str]]], Optional[str]]


def item_locale_property(excluded_names: Iterable[str] = ()) -> PathPropertyExtractor:
    """
    Build the locale extractor for satellite assemblies.

    A ``*.resources.dll`` gets its parent folder as locale when that folder
    looks like a culture name, is neither a layout folder, a framework nor
    one of excluded_names, and the main assembly sits one level up.
    """
    excluded = LAYOUT_FOLDERS | {name.lower() for name in excluded_names}

    def item_locale(path: str, siblings: Mapping[str, List[str]]) -> Optional[str]:
        if not path.lower().endswith(SATELLITE_SUFFIX):
            return None
        culture_dir = posixpath.dirname(path)
        culture = posixpath.basename(culture_dir)
        if not culture or culture.lower() in excluded or parse_framework(culture) is not None:
            return None
        if not _CULTURE_RE.match(culture):
            return None

        main_stem = posixpath.basename(path)[:-len(SATELLITE_SUFFIX)].lower()
        for sibling in siblings.get(posixpath.dirname(culture_dir), []):
            stem, extension = posixpath.splitext(sibling)
            if stem.lower() == main_stem and extension.lower() in ASSEMBLY_EXTENSIONS:
                return culture
        return None

    return item_locale


def _item_related(path: str, siblings: Mapping[str, List[str]]) -> Optional[str]:
    directory, name = posixpath.split(path)
    stem, extension = posixpath.splitext(name)
    if extension.lower() not in ASSEMBLY_EXTENSIONS:
        return None

    related = set()
    for sibling in siblings.get(directory, []):
        if sibling == name:
            continue
        sibling_stem, sibling_extension = posixpath.splitext(sibling)
        if sibling_extension and sibling_stem.lower() == stem.lower():
            related.add(sibling_extension.lower())
    if not related:
        return None
    return ";".join(sorted(related))


DEFAULT_PATH_PROPERTIES: Dict[str, PathPropertyExtractor] = {
    "locale": item_locale_property(),
    "related": _item_related,
}


def _normalize_path(path: str) -> str:
    normalized = path.replace("\\", "/")
    while normalized.startswith("./"):
        normalized = normalized[2:]
    return normalized.lstrip("/")


class ContentItemCollection:
    """Index over the files of one package."""

    def __init__(self, path_properties: Optional[Mapping[str, Callable]] = None):
        self.path_properties = dict(DEFAULT_PATH_PROPERTIES if path_properties is None else path_properties)
        self.items: List[ContentItem] = []

    def load(self, paths: Iterable[str]) -> "ContentItemCollection":
        normalized = [_normalize_path(p) for p in paths]
        normalized = [p for p in normalized if p and not p.endswith("/")]

        siblings: Dict[str, List[str]] = defaultdict(list)
        for path in normalized:
            directory, name = posixpath.split(path)
            siblings[directory].append(name)

        items = []
        for path in normalized:
            properties = {}
            for name, extractor in self.path_properties.items():
                value = extractor(path, siblings)
                if value:
                    properties[name] = value
            items.append(ContentItem(path, properties))

        self.items = items
        return self

    def find_item_groups(self, pattern_set: PatternSet) -> List[ContentItemGroup]:
        """Group items by the values their group pattern captured, in path order."""
        groups: Dict[Tuple, ContentItemGroup] = {}
        for item in self.items:
            group_properties = self._match_first(pattern_set.group_patterns, item.path, pattern_set.properties)
            if group_properties is None:
                continue
            group_properties.pop("any", None)

            item_properties = self._match_first(pattern_set.path_patterns, item.path, pattern_set.properties)
            if item_properties is None:
                continue

            key = tuple(sorted(group_properties.items(), key=lambda pair: pair[0]))
            group = groups.get(key)
            if group is None:
                group = ContentItemGroup(properties=group_properties)
                groups[key] = group

            merged = dict(item.properties)
            merged.update(item_properties)
            group.items.append(ContentItem(item.path, merged))

        return list(groups.values())

    def find_best_item_group(
        self,
        criteria: SelectionCriteria,
        *pattern_sets: PatternSet
    ) -> Optional[ContentItemGroup]:
        """
        Walk the criteria entries in order and return the nearest compatible
        group for the first entry that has any, or None.
        """
        for pattern_set in pattern_sets:
            definitions = pattern_set.properties
            groups = self.find_item_groups(pattern_set)

            for entry in criteria.entries:
                best_group = None
                for group in groups:
                    if not self._satisfies(entry, group, definitions):
                        continue
                    if best_group is None or self._compare(entry, best_group, group, definitions) > 0:
                        best_group = group

                if best_group is not None:
                    return best_group

        return None

    @staticmethod
    def _match_first(
        patterns: List[PatternDefinition],
        path: str,
        definitions: Mapping[str, ContentPropertyDefinition]
    ) -> Optional[Dict[str, Any]]:
        for pattern in patterns:
            properties = pattern.match(path, definitions)
            if properties is not None:
                return properties
        return None

    @staticmethod
    def _satisfies(
        entry: SelectionCriteriaEntry,
        group: ContentItemGroup,
        definitions: Mapping[str, ContentPropertyDefinition]
    ) -> bool:
        for name, criteria_value in entry.properties:
            if criteria_value is None:
                if name in group.properties:
                    return False
                continue
            if name not in group.properties or name not in definitions:
                return False
            if not definitions[name].is_criteria_satisfied(criteria_value, group.properties[name]):
                return False
        return True

    @staticmethod
    def _compare(
        entry: SelectionCriteriaEntry,
        best_group: ContentItemGroup,
        candidate_group: ContentItemGroup,
        definitions: Mapping[str, ContentPropertyDefinition]
    ) -> int:
        for name, criteria_value in entry.properties:
            if criteria_value is None:
                continue
            comparison = definitions[name].compare(
                criteria_value,
                best_group.properties[name],
                candidate_group.properties[name]
            )
            if comparison != 0:
                return comparison
        return 0


class ManagedCodeConventions:
    """Property definitions, pattern sets and criteria built over a runtime graph."""

    def __init__(self, runtime_graph: RuntimeGraph):
        self.runtime_graph = runtime_graph
        self.properties: Dict[str, ContentPropertyDefinition] = {
            "tfm": ContentPropertyDefinition(
                "tfm",
                parser=parse_framework,
                compatibility_test=is_compatible,
                compare_test=compare_nearest,
            ),
            "rid": ContentPropertyDefinition(
                "rid",
                compatibility_test=runtime_graph.are_compatible,
                compare_test=self._compare_runtimes,
            ),
            "any": ContentPropertyDefinition("any"),
        }
        self.path_properties: Dict[str, PathPropertyExtractor] = {
            "locale": item_locale_property(runtime_graph.imports),
            "related": _item_related,
        }

        tools_pattern = "tools/{tfm}/{rid}/{any?}"
        self.tools_assemblies = PatternSet(
            properties=self.properties,
            group_patterns=[PatternDefinition(tools_pattern)],
            path_patterns=[PatternDefinition(tools_pattern)],
        )

    def _compare_runtimes(self, criteria_rid: str, best_rid: str, candidate_rid: str) -> int:
        return self.runtime_graph.distance(criteria_rid, best_rid) - self.runtime_graph.distance(criteria_rid, candidate_rid)

    def for_framework_and_runtime(self, framework, runtime_identifier: Optional[str]) -> SelectionCriteria:
        """Runtime-specific assets first, then runtime-agnostic ones."""
        entries = []
        if runtime_identifier:
            entries.append(SelectionCriteriaEntry.of(tfm=framework, rid=runtime_identifier))
        entries.append(SelectionCriteriaEntry.of(tfm=framework, rid=None))
        return SelectionCriteria(tuple(entries))
