"""Selects the single asset group that applies to a framework and runtime."""
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional, Sequence, Tuple

from .content_model import ContentItemCollection, PatternSet, SelectionCriteria

logger = logging.getLogger(__name__)

# Item properties carried over into the manifest.
PRESERVED_PROPERTIES = ("locale", "related")


@dataclass
class AssetItem:
    path: str
    properties: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class AssetGroup:
    """Items picked from one shelf, plus the criteria that picked them."""
    items: Tuple[AssetItem, ...] = ()
    criteria: Optional[SelectionCriteria] = None

    @classmethod
    def empty(cls) -> "AssetGroup":
        return cls()

    @property
    def paths(self) -> Tuple[str, ...]:
        return tuple(item.path for item in self.items)

    def __bool__(self) -> bool:
        return bool(self.items)


def select_best_group(
    ordered_criteria: Sequence[SelectionCriteria],
    collection: ContentItemCollection,
    *pattern_sets: PatternSet,
    additional_action: Optional[Callable[[AssetItem], None]] = None
) -> AssetGroup:
    """
    Take the first criteria that matches one or more items.

    Later criteria are never consulted once a group is found, so groups are
    never merged across criteria. Returns an empty group when nothing matches.
    """
    for criteria in ordered_criteria:
        group = collection.find_best_item_group(criteria, *pattern_sets)
        if group is None:
            continue

        items = []
        for item in group.items:
            new_item = AssetItem(item.path)
            for name in PRESERVED_PROPERTIES:
                if name in item.properties:
                    new_item.properties[name] = str(item.properties[name])
            if additional_action is not None:
                additional_action(new_item)
            items.append(new_item)

        logger.debug("Selected %s asset(s) for group %s", len(items), group.properties)
        return AssetGroup(tuple(items), criteria)

    return AssetGroup.empty()
