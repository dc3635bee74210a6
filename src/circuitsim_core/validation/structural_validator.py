# src/circuitsim_core/validation/structural_validator.py
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, List, Sequence

import networkx as nx

from ..components.base_enums import ComponentKind
from ..data_structures import Component, Wire
from .issue_codes import StructuralIssueCode
from .issues import ValidationIssue, ValidationIssueLevel, make_issue

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from ..topology.builder import TopologyResult


class StructuralValidator:
    """
    Pre-flight checks run before any matrix is assembled.

    Collects, in order: the topology builder's findings (empty circuit, no wires,
    missing or isolated ground), a missing independent source, and sources whose
    positive terminal cannot reach ground because of open switches. The caller
    fails the analysis on the first ERROR issue.
    """

    def __init__(self, components: Sequence[Component], wires: Sequence[Wire], topology: TopologyResult):
        self.components = list(components)
        self.wires = list(wires)
        self.topology = topology
        self.issues: List[ValidationIssue] = []

    def validate(self) -> List[ValidationIssue]:
        self.issues = list(self.topology.issues)
        if not self.components:
            return self.issues

        sources = [c for c in self.components if c.kind.is_source]
        if not sources:
            self._add_issue(ValidationIssueLevel.ERROR, StructuralIssueCode.NO_SOURCE)
        elif self.topology.has_ground:
            self._check_closed_loops(sources)

        errors = sum(1 for i in self.issues if i.is_error)
        logger.debug(f"Structural validation found {errors} error(s) in {len(self.issues)} issue(s).")
        return self.issues

    def _add_issue(self, level: ValidationIssueLevel, code_enum: StructuralIssueCode, component_id=None, **kwargs):
        self.issues.append(make_issue(level, code_enum, component_id=component_id, **kwargs))

    def _check_closed_loops(self, sources: List[Component]) -> None:
        open_switches = [
            c for c in self.components
            if c.kind is ComponentKind.SWITCH and not c.is_switch_closed
        ]
        # Without open switches the wires alone decide connectivity.
        if not open_switches:
            return

        graph = self._build_conduction_graph()
        ground_ports = {
            ref.key for c in self.components if c.kind is ComponentKind.GROUND for ref in c.port_refs
        }
        open_ids = sorted(c.id for c in open_switches)
        for source in sources:
            if len(source.ports) < 2:
                continue
            positive = source.port_refs[0].key
            reachable = nx.node_connected_component(graph, positive)
            if reachable.isdisjoint(ground_ports):
                logger.info(f"Source '{source.id}' has no closed loop to ground; open switches: {open_ids}.")
                self._add_issue(
                    ValidationIssueLevel.ERROR, StructuralIssueCode.OPEN_LOOP,
                    component_id=source.id, source_id=source.id, open_switches=open_ids
                )

    def _build_conduction_graph(self) -> nx.Graph:
        """Ports joined by wires and by elements current can flow through."""
        graph = nx.Graph()
        for comp in self.components:
            graph.add_nodes_from(ref.key for ref in comp.port_refs)
        for wire in self.wires:
            a, b = wire.endpoints
            if graph.has_node(a.key) and graph.has_node(b.key):
                graph.add_edge(a.key, b.key)
        for comp in self.components:
            # Current through a source must return through the external circuit.
            if comp.kind.is_source or comp.kind.is_logic_gate:
                continue
            if comp.kind is ComponentKind.SWITCH and not comp.is_switch_closed:
                continue
            refs = [ref.key for ref in comp.port_refs]
            for i, a in enumerate(refs):
                for b in refs[i + 1:]:
                    graph.add_edge(a, b)
        return graph
