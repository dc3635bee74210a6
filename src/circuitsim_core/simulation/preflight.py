# src/circuitsim_core/simulation/preflight.py
import logging
from typing import List, Sequence, Tuple

from ..data_structures import Component, Wire
from ..topology.builder import TopologyBuilder, TopologyResult
from ..validation.issues import ValidationIssue, first_error, warnings_of
from ..validation.structural_validator import StructuralValidator
from .exceptions import StructuralError

logger = logging.getLogger(__name__)


def build_checked_topology(
    components: Sequence[Component], wires: Sequence[Wire], analysis: str
) -> Tuple[TopologyResult, List[ValidationIssue]]:
    """
    Builds the topology and runs the structural checks. Fails fast, before any
    matrix exists, on the first ERROR issue.

    Returns:
        The topology and the WARNING issues found along the way.

    Raises:
        StructuralError: For the first blocking issue.
    """
    topology = TopologyBuilder().build(components, wires)
    issues = StructuralValidator(components, wires, topology).validate()
    blocking = first_error(issues)
    if blocking is not None:
        logger.info(f"{analysis} analysis blocked: {blocking}")
        raise StructuralError.from_issue(blocking, analysis=analysis)
    return topology, warnings_of(issues)
