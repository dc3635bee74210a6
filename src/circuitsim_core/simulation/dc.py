# src/circuitsim_core/simulation/dc.py
import logging
from typing import Dict, List, Optional, Sequence

import numpy as np

from ..components.base_enums import StampBehavior
from ..errors import Diagnosable
from ..data_structures import Component, Wire
from ..validation.issue_codes import StructuralIssueCode
from ..validation.issues import ValidationIssue, ValidationIssueLevel, make_issue
from .config import AnalysisOptions
from .exceptions import SingularMatrixError
from .linear_solver import solve
from .mna import MnaAssembler
from .preflight import build_checked_topology
from .results import AnalysisResult

logger = logging.getLogger(__name__)

ANALYSIS_NAME = "DC"


class DCAnalyzer:
    """
    One-shot DC operating-point analysis.

    Topology and stamps are rebuilt from scratch on every `analyze` call. Diodes
    and LEDs start OFF; after each solve their states are re-evaluated and the
    system re-solved until the assignment stops changing or
    `options.max_diode_iterations` solves have been made. In the latter case the
    last solution is returned with `converged=False` and a warning.
    """

    def __init__(self, components: Sequence[Component], wires: Sequence[Wire],
                 options: Optional[AnalysisOptions] = None):
        self.components = list(components)
        self.wires = list(wires)
        self.options = options or AnalysisOptions()

    def analyze(self) -> AnalysisResult:
        """Runs the analysis. Never raises; failures come back as `success=False`."""
        logger.info(f"Starting DC analysis of {len(self.components)} component(s), {len(self.wires)} wire(s).")
        try:
            result = self._analyze()
        except Exception as e:
            if isinstance(e, Diagnosable):
                logger.error(f"DC analysis failed: {e}")
            else:
                logger.critical(f"Unexpected error during DC analysis: {e}", exc_info=True)
            return AnalysisResult.failure(e)
        logger.info(
            f"DC analysis finished in {result.iterations} iteration(s), converged={result.converged}."
        )
        return result

    def _analyze(self) -> AnalysisResult:
        self.options.validate()
        topology, warnings = build_checked_topology(self.components, self.wires, ANALYSIS_NAME)
        assembler = MnaAssembler(topology, self.components, self.options)

        diode_states: Dict[str, bool] = {s.component_id: False for s in assembler.stamps_of(StampBehavior.DIODE)}
        converged = False
        iterations = 0
        x = np.zeros(assembler.size)
        while iterations < self.options.max_diode_iterations:
            iterations += 1
            A, b, _ = assembler.assemble(diode_states)
            try:
                x = solve(A, b, self.options.singular_epsilon)
            except SingularMatrixError as e:
                e.analysis = ANALYSIS_NAME
                raise
            next_states = assembler.next_diode_states(x, diode_states)
            if next_states == diode_states:
                converged = True
                break
            logger.debug(f"Diode states changed on iteration {iterations}: {next_states}")
            if iterations < self.options.max_diode_iterations:
                diode_states = next_states

        warnings = list(warnings)
        if not converged:
            unsettled = sorted(k for k in diode_states if diode_states[k] != next_states[k])
            warnings.append(self._convergence_warning(iterations, unsettled))

        node_voltages = topology.node_voltages_from_solution(x)
        return AnalysisResult(
            success=True,
            node_voltages=node_voltages,
            branch_currents=assembler.branch_currents(x),
            port_voltages=topology.port_voltages(node_voltages),
            diode_states=dict(diode_states),
            converged=converged,
            iterations=iterations,
            warnings=warnings,
        )

    @staticmethod
    def _convergence_warning(iterations: int, unsettled: List[str]) -> ValidationIssue:
        logger.warning(
            f"Diode ON/OFF states did not settle after {iterations} iteration(s); "
            f"returning the last solution as an approximation."
        )
        return make_issue(
            ValidationIssueLevel.WARNING, StructuralIssueCode.DIODE_NOT_CONVERGED,
            iterations=iterations, components=unsettled,
        )


def run_dc_analysis(components: Sequence[Component], wires: Sequence[Wire],
                    options: Optional[AnalysisOptions] = None) -> AnalysisResult:
    """Convenience wrapper around `DCAnalyzer(...).analyze()`."""
    return DCAnalyzer(components, wires, options).analyze()
