# src/circuitsim_core/topology/__init__.py
from .union_find import DisjointSet
from .builder import GROUND_INDEX, TopologyBuilder, TopologyResult

__all__ = ["DisjointSet", "GROUND_INDEX", "TopologyBuilder", "TopologyResult"]
