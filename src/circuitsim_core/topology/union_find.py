# src/circuitsim_core/topology/union_find.py
import logging
from typing import Dict, List

logger = logging.getLogger(__name__)


class DisjointSet:
    """
    Index-based union-find over a dense range of element ids [0, size).

    The representative of every set is its smallest member index, so the final
    partition and its representatives depend only on which pairs were joined,
    never on the order of the joins.
    """

    def __init__(self, size: int):
        if size < 0:
            raise ValueError("DisjointSet size must be non-negative.")
        self._parent: List[int] = list(range(size))

    def __len__(self) -> int:
        return len(self._parent)

    def find(self, element: int) -> int:
        """Returns the representative of `element`, compressing the path on the way."""
        root = element
        while self._parent[root] != root:
            root = self._parent[root]
        while self._parent[element] != root:
            self._parent[element], element = root, self._parent[element]
        return root

    def union(self, a: int, b: int) -> int:
        """Merges the sets holding `a` and `b`; returns the surviving representative."""
        root_a, root_b = self.find(a), self.find(b)
        if root_a == root_b:
            return root_a
        keep, absorb = (root_a, root_b) if root_a < root_b else (root_b, root_a)
        self._parent[absorb] = keep
        return keep

    def connected(self, a: int, b: int) -> bool:
        return self.find(a) == self.find(b)

    def groups(self) -> Dict[int, List[int]]:
        """Maps each representative to its members, both in ascending order."""
        result: Dict[int, List[int]] = {}
        for element in range(len(self._parent)):
            result.setdefault(self.find(element), []).append(element)
        return result
