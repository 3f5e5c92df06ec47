"""Runtime identifier compatibility graph."""
import json
import logging
from collections import deque
from pathlib import Path
from typing import Any, Dict, List, Tuple

logger = logging.getLogger(__name__)

DEFAULT_RUNTIME_GRAPH_PATH = Path(__file__).with_name("runtime.json")


class RuntimeGraph:
    """
    Maps each runtime identifier to the identifiers it imports.

    A runtime identifier is compatible with itself and with everything it
    reaches through its imports; nearer imports are preferred.
    """

    def __init__(self, imports: Dict[str, List[str]]):
        self.imports = {rid: list(parents) for rid, parents in imports.items()}
        self._expansions: Dict[str, Tuple[str, ...]] = {}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RuntimeGraph":
        runtimes = data.get("runtimes", {})
        if not isinstance(runtimes, dict):
            raise ValueError("Runtime graph must contain a 'runtimes' object")
        imports = {}
        for rid, entry in runtimes.items():
            parents = (entry or {}).get("#import", [])
            imports[rid] = [str(parent) for parent in parents]
        return cls(imports)

    @classmethod
    def from_file(cls, path: Path) -> "RuntimeGraph":
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        graph = cls.from_dict(data)
        logger.debug("Loaded runtime graph with %s identifiers from %s", len(graph.imports), path)
        return graph

    @classmethod
    def load_default(cls) -> "RuntimeGraph":
        return cls.from_file(DEFAULT_RUNTIME_GRAPH_PATH)

    def expand(self, runtime_identifier: str) -> Tuple[str, ...]:
        """Breadth-first list of compatible identifiers, nearest first."""
        cached = self._expansions.get(runtime_identifier)
        if cached is not None:
            return cached

        seen = [runtime_identifier]
        queue = deque([runtime_identifier])
        while queue:
            current = queue.popleft()
            for parent in self.imports.get(current, []):
                if parent not in seen:
                    seen.append(parent)
                    queue.append(parent)

        expansion = tuple(seen)
        self._expansions[runtime_identifier] = expansion
        return expansion

    def are_compatible(self, criteria_rid: str, candidate_rid: str) -> bool:
        return candidate_rid in self.expand(criteria_rid)

    def distance(self, criteria_rid: str, candidate_rid: str) -> int:
        expansion = self.expand(criteria_rid)
        if candidate_rid not in expansion:
            return len(expansion)
        return expansion.index(candidate_rid)
