# src/circuitsim_core/topology/builder.py
"""
Turns a flat component/wire snapshot into electrical nodes.

Every port starts as its own singleton set in a `DisjointSet`; each wire joins
the sets of its two endpoints. The ports of all ground components are joined as
well, so a circuit has at most one ground node no matter how many ground symbols
the editor placed. The smallest port index in a set is its representative, and
the key of that port ("componentId:portId") becomes the node id.

Non-ground nodes are numbered 0..N-1 in ascending order of their representative,
which makes the numbering independent of wire order. The ground node carries the
sentinel index -1. Nodes whose ports all belong to logic gates get no index: they
are not part of the MNA system, and an unstamped row would make it singular.

Structural problems (empty circuit, no wires, no ground, isolated ground) are
recorded as `ValidationIssue`s on the result rather than raised, so callers decide
how to report them.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from ..components.base_enums import ComponentKind
from ..data_structures import Component, ElectricalNode, PortRef, Wire
from ..validation.issue_codes import StructuralIssueCode
from ..validation.issues import ValidationIssue, ValidationIssueLevel, first_error, make_issue
from .union_find import DisjointSet

logger = logging.getLogger(__name__)

GROUND_INDEX = -1


@dataclass(frozen=True)
class TopologyResult:
    """
    The node partition of one snapshot. Rebuilt from scratch for every request.
    """
    nodes: Tuple[ElectricalNode, ...]
    port_to_node: Dict[PortRef, str]
    ground_node_id: Optional[str]
    issues: List[ValidationIssue] = field(default_factory=list)

    def __post_init__(self):
        object.__setattr__(self, '_by_id', {n.id: n for n in self.nodes})

    @property
    def num_nodes(self) -> int:
        """Number of non-ground nodes, i.e. node rows of the MNA system."""
        return sum(1 for n in self.nodes if not n.is_ground and n.index is not None)

    @property
    def has_ground(self) -> bool:
        return self.ground_node_id is not None

    @property
    def is_valid(self) -> bool:
        return first_error(self.issues) is None

    def node(self, node_id: str) -> ElectricalNode:
        return self._by_id[node_id]

    def node_of(self, component_id: str, port_id: str) -> ElectricalNode:
        return self._by_id[self.port_to_node[PortRef(component_id, port_id)]]

    def index_of(self, component_id: str, port_id: str) -> int:
        """Unknown-vector index of the port's node, -1 for ground, None if unsolved."""
        return self.node_of(component_id, port_id).index

    def terminal_indices(self, component: Component) -> Tuple[int, int]:
        """Node indices of the first two ports of a two-terminal component."""
        return (
            self.index_of(component.id, component.ports[0]),
            self.index_of(component.id, component.ports[1]),
        )

    def indexed_nodes(self) -> List[ElectricalNode]:
        """Non-ground nodes in unknown-vector order."""
        return sorted((n for n in self.nodes if not n.is_ground and n.index is not None), key=lambda n: n.index)

    def node_voltages_from_solution(self, x: Sequence[float]) -> Dict[str, float]:
        """Maps every node id to its voltage; ground is 0 V."""
        voltages = {n.id: float(x[n.index]) for n in self.indexed_nodes()}
        if self.ground_node_id is not None:
            voltages[self.ground_node_id] = 0.0
        return voltages

    def port_voltages(self, node_voltages: Mapping[str, float]) -> Dict[str, float]:
        """
        Spreads node voltages onto every member port, keyed "componentId:portId".
        Ports of unsolved nodes are left out.
        """
        return {
            port.key: float(node_voltages[node_id])
            for port, node_id in self.port_to_node.items()
            if node_id in node_voltages
        }


class TopologyBuilder:
    """Builds a `TopologyResult` from a component/wire snapshot."""

    def build(self, components: Sequence[Component], wires: Sequence[Wire]) -> TopologyResult:
        issues: List[ValidationIssue] = []

        if not components:
            issues.append(make_issue(ValidationIssueLevel.ERROR, StructuralIssueCode.EMPTY_CIRCUIT))
            return TopologyResult(nodes=(), port_to_node={}, ground_node_id=None, issues=issues)

        seen_ids = set()
        for comp in components:
            if comp.id in seen_ids:
                issues.append(make_issue(
                    ValidationIssueLevel.ERROR, StructuralIssueCode.DUPLICATE_COMPONENT_ID,
                    component_id=comp.id, duplicate_id=comp.id
                ))
            seen_ids.add(comp.id)

        ports: List[PortRef] = [ref for comp in components for ref in comp.port_refs]
        port_index: Dict[PortRef, int] = {}
        for ref in ports:
            port_index.setdefault(ref, len(port_index))
        ordered_ports = sorted(port_index, key=port_index.get)

        dsu = DisjointSet(len(ordered_ports))

        if not wires and len(components) >= 2:
            issues.append(make_issue(
                ValidationIssueLevel.ERROR, StructuralIssueCode.NO_WIRES, component_count=len(components)
            ))

        for wire in wires:
            a, b = wire.endpoints
            missing = [str(p) for p in (a, b) if p not in port_index]
            if missing:
                logger.warning(f"Wire '{wire.id}' references unknown port(s) {missing}; ignoring it.")
                issues.append(make_issue(
                    ValidationIssueLevel.WARNING, StructuralIssueCode.WIRE_UNKNOWN_PORT,
                    wire_id=wire.id, port=missing[0]
                ))
                continue
            dsu.union(port_index[a], port_index[b])

        ground_components = [c for c in components if c.kind is ComponentKind.GROUND]
        ground_port_indices = [port_index[ref] for c in ground_components for ref in c.port_refs]
        for idx in ground_port_indices[1:]:
            dsu.union(ground_port_indices[0], idx)
        ground_root = dsu.find(ground_port_indices[0]) if ground_port_indices else None

        analog_ids = {c.id for c in components if c.kind.is_analog}
        nodes: List[ElectricalNode] = []
        port_to_node: Dict[PortRef, str] = {}
        next_index = 0
        for root, members in sorted(dsu.groups().items()):
            node_id = ordered_ports[root].key
            is_ground = root == ground_root
            member_refs = frozenset(ordered_ports[m] for m in members)
            index: Optional[int] = GROUND_INDEX
            if not is_ground:
                index = None
                if any(ref.component_id in analog_ids for ref in member_refs):
                    index = next_index
                    next_index += 1
            nodes.append(ElectricalNode(id=node_id, ports=member_refs, is_ground=is_ground, index=index))
            for ref in member_refs:
                port_to_node[ref] = node_id

        ground_node_id = ordered_ports[ground_root].key if ground_root is not None else None

        if ground_node_id is None:
            issues.append(make_issue(ValidationIssueLevel.ERROR, StructuralIssueCode.GROUND_MISSING))
        else:
            ground_ids = {c.id for c in ground_components}
            ground_node = next(n for n in nodes if n.is_ground)
            if ground_node.component_ids() <= ground_ids:
                issues.append(make_issue(
                    ValidationIssueLevel.ERROR, StructuralIssueCode.GROUND_ISOLATED,
                    ground_ids=sorted(ground_ids)
                ))

        logger.debug(
            f"Topology built: {len(ordered_ports)} ports merged into {len(nodes)} nodes "
            f"({next_index} non-ground), ground node: {ground_node_id}."
        )
        return TopologyResult(
            nodes=tuple(nodes),
            port_to_node=port_to_node,
            ground_node_id=ground_node_id,
            issues=issues,
        )
