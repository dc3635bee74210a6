# src/circuitsim_core/simulation/ac.py
"""
AC magnitude/phase sweep.

At every sweep frequency the circuit is solved as a complex-valued MNA system:
resistive elements keep their conductance, capacitors become admittances jwC,
inductors keep their auxiliary current with the constraint V(n1) - V(n2) = jwL*i,
DC sources are shorted (0 V), AC sources drive the phasor amplitude at their
phase, and diodes/LEDs are linearised as a fixed small-signal resistance.
"""
import logging
import math
from typing import Any, Dict, Mapping, Optional, Sequence, Union

import numpy as np

from ..components.base_enums import ComponentKind, StampBehavior
from ..components.elements import ac_params, resolve_value
from ..constants import DIODE_SMALL_SIGNAL_RESISTANCE, OPEN_CIRCUIT_RESISTANCE
from ..data_structures import Component, Wire
from ..errors import Diagnosable
from .config import DEFAULT_SWEEP_CONFIG, AnalysisOptions, parse_sweep_config
from .exceptions import ConfigurationError, SingularMatrixError
from .linear_solver import solve
from .mna import ComponentStamp, MnaAssembler
from .preflight import build_checked_topology
from .results import ACSweepResult, PhasorSeries
from .stamps import stamp_conductance, stamp_gmin, stamp_voltage_source, stamp_zero_current

logger = logging.getLogger(__name__)

ANALYSIS_NAME = "AC sweep"

_IMPEDANCE_KINDS = (ComponentKind.RESISTOR, ComponentKind.CAPACITOR, ComponentKind.INDUCTOR)


def source_phasor(component: Component) -> complex:
    """Phasor of an AC source: amplitude at its phase angle."""
    params = ac_params(component)
    return resolve_value(component) * complex(math.cos(params.phase), math.sin(params.phase))


def element_impedance(stamp: ComponentStamp, omega: float) -> complex:
    """Impedance of a resistor, capacitor or inductor at angular frequency omega."""
    if stamp.kind is ComponentKind.RESISTOR:
        return complex(stamp.value)
    if stamp.kind is ComponentKind.CAPACITOR:
        if omega == 0.0:
            return complex(math.inf, 0.0)
        return 1.0 / (1j * omega * stamp.value)
    if stamp.kind is ComponentKind.INDUCTOR:
        return 1j * omega * stamp.value
    raise ValueError(f"No impedance model for '{stamp.kind}'.")


class ACSweepAnalyzer:
    """
    Solves the complex MNA system across a list of frequencies.

    `frequencies` may be an explicit array of Hz values or a raw sweep
    configuration understood by `parse_sweep_config`; the default is a decade
    sweep from 1 Hz to 1 MHz with ten points per decade.
    """

    def __init__(self, components: Sequence[Component], wires: Sequence[Wire],
                 frequencies: Optional[Union[Sequence[float], np.ndarray, Mapping[str, Any]]] = None,
                 options: Optional[AnalysisOptions] = None):
        self.components = list(components)
        self.wires = list(wires)
        self.frequencies = frequencies
        self.options = options or AnalysisOptions()

    def analyze(self) -> ACSweepResult:
        """Runs the sweep. Never raises; failures come back as `success=False`."""
        try:
            return self._analyze()
        except Exception as e:
            if isinstance(e, Diagnosable):
                logger.error(f"AC sweep failed: {e}")
            else:
                logger.critical(f"Unexpected error during AC sweep: {e}", exc_info=True)
            return ACSweepResult.failure(e)

    def _resolve_frequencies(self) -> np.ndarray:
        raw = self.frequencies
        if raw is None:
            raw = DEFAULT_SWEEP_CONFIG
        try:
            if isinstance(raw, Mapping):
                freqs = parse_sweep_config(dict(raw))
            else:
                freqs = np.asarray(raw, dtype=float).ravel()
        except ValueError as e:
            raise ConfigurationError(details=f"Invalid frequency sweep: {e}", user_input=raw) from e
        if freqs.size == 0:
            raise ConfigurationError(details="The frequency sweep is empty.", user_input=raw)
        if not np.all(np.isfinite(freqs)) or np.any(freqs < 0.0):
            raise ConfigurationError(details="Sweep frequencies must be finite and non-negative.", user_input=raw)
        return freqs

    def _analyze(self) -> ACSweepResult:
        self.options.validate()
        freqs = self._resolve_frequencies()
        topology, _ = build_checked_topology(self.components, self.wires, ANALYSIS_NAME)
        assembler = MnaAssembler(topology, self.components, self.options)
        stamps = assembler.stamps
        node_ids = [n.id for n in topology.indexed_nodes()]
        logger.info(f"Starting AC sweep over {freqs.size} frequencies ({freqs[0]:.4g} Hz .. {freqs[-1]:.4g} Hz).")

        node_values = np.zeros((len(node_ids), freqs.size), dtype=complex)
        current_values: Dict[str, np.ndarray] = {s.component_id: np.zeros(freqs.size, dtype=complex) for s in stamps}
        impedance_values: Dict[str, np.ndarray] = {
            s.component_id: np.zeros(freqs.size, dtype=complex) for s in stamps if s.kind in _IMPEDANCE_KINDS
        }

        for k, freq in enumerate(freqs):
            omega = 2.0 * math.pi * float(freq)
            A, b = self._assemble(assembler, omega)
            try:
                x = solve(A, b, self.options.singular_epsilon)
            except SingularMatrixError as e:
                e.analysis = ANALYSIS_NAME
                e.frequency = float(freq)
                raise
            node_values[:, k] = x[:topology.num_nodes]
            for stamp in stamps:
                current_values[stamp.component_id][k] = self._branch_current(x, stamp, omega)
                if stamp.component_id in impedance_values:
                    impedance_values[stamp.component_id][k] = element_impedance(stamp, omega)

        node_voltages = {nid: PhasorSeries(node_values[i]) for i, nid in enumerate(node_ids)}
        if topology.ground_node_id is not None:
            node_voltages[topology.ground_node_id] = PhasorSeries(np.zeros(freqs.size, dtype=complex))
        logger.info("AC sweep finished.")
        return ACSweepResult(
            success=True,
            frequencies=freqs,
            node_voltages=node_voltages,
            branch_currents={cid: PhasorSeries(v) for cid, v in current_values.items()},
            impedances={cid: PhasorSeries(v) for cid, v in impedance_values.items()},
        )

    def _assemble(self, assembler: MnaAssembler, omega: float):
        A = np.zeros((assembler.size, assembler.size), dtype=complex)
        b = np.zeros(assembler.size, dtype=complex)
        for stamp in assembler.stamps:
            n1, n2, aux = stamp.node1, stamp.node2, stamp.aux_index
            if stamp.behavior is StampBehavior.CONDUCTANCE:
                stamp_conductance(A, n1, n2, 1.0 / stamp.value)
            elif stamp.behavior is StampBehavior.LEAK:
                stamp_conductance(A, n1, n2, 1.0 / OPEN_CIRCUIT_RESISTANCE)
            elif stamp.kind is ComponentKind.CAPACITOR:
                # Open in the DC stamp list, an admittance here.
                stamp_conductance(A, n1, n2, 1j * omega * stamp.value)
            elif stamp.behavior is StampBehavior.INDUCTOR:
                stamp_voltage_source(A, b, n1, n2, aux, 0.0, series_impedance=1j * omega * stamp.value)
            elif stamp.behavior is StampBehavior.VOLTAGE_SOURCE:
                phasor = source_phasor(stamp.component) if stamp.kind is ComponentKind.AC_SOURCE else 0.0
                stamp_voltage_source(A, b, n1, n2, aux, phasor)
            elif stamp.behavior is StampBehavior.DIODE:
                stamp_zero_current(A, b, aux)
                stamp_conductance(A, n1, n2, 1.0 / DIODE_SMALL_SIGNAL_RESISTANCE)
        stamp_gmin(A, assembler.num_nodes, self.options.gmin)
        return A, b

    @staticmethod
    def _branch_current(x: np.ndarray, stamp: ComponentStamp, omega: float) -> complex:
        v1 = x[stamp.node1] if stamp.node1 >= 0 else 0.0
        v2 = x[stamp.node2] if stamp.node2 >= 0 else 0.0
        if stamp.behavior is StampBehavior.DIODE:
            return (v1 - v2) / DIODE_SMALL_SIGNAL_RESISTANCE
        if stamp.aux_index is not None:
            return x[stamp.aux_index]
        if stamp.behavior is StampBehavior.CONDUCTANCE:
            return (v1 - v2) / stamp.value
        if stamp.kind is ComponentKind.CAPACITOR:
            return 1j * omega * stamp.value * (v1 - v2)
        return 0j


def run_ac_sweep(components: Sequence[Component], wires: Sequence[Wire],
                 frequencies=None, options: Optional[AnalysisOptions] = None) -> ACSweepResult:
    """Convenience wrapper around `ACSweepAnalyzer(...).analyze()`."""
    return ACSweepAnalyzer(components, wires, frequencies, options).analyze()
