# src/circuitsim_core/simulation/mna.py
"""
Assembly of the real-valued MNA system for DC and transient analysis.

Unknown vector layout: node voltages 0..N-1 (ground excluded), followed by one
auxiliary current per element that needs it (independent sources, inductors,
diodes and LEDs). Diodes keep their auxiliary variable in both states: ON is the
forward drop behind `diode_on_resistance`, OFF is a 0 V branch behind
`diode_off_resistance`, so the system size does not change when a diode switches
and the OFF leakage current is read straight from the solution.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, NamedTuple, Optional, Sequence

import numpy as np

from ..components.base_enums import ComponentKind, StampBehavior
from ..components.elements import (
    check_two_terminal,
    forward_voltage,
    needs_auxiliary_current,
    resolve_value,
    series_resistance,
    source_dc_value,
    stamp_behavior,
)
from ..constants import DIODE_REVERSE_CURRENT_THRESHOLD, OPEN_CIRCUIT_RESISTANCE
from ..data_structures import Component
from ..topology.builder import TopologyResult
from .config import AnalysisOptions
from .state import TransientState
from .stamps import (
    STAMP_REGISTRY,
    register_stamp,
    stamp_conductance,
    stamp_current_injection,
    stamp_gmin,
    stamp_voltage_source,
)
from .waveforms import source_voltage_at

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ComponentStamp:
    """
    Derived per-component record: how it is stamped, its node indices (-1 is
    ground), its effective value and, if any, its auxiliary current index.
    """
    component_id: str
    kind: ComponentKind
    behavior: StampBehavior
    node1: int
    node2: int
    value: float
    aux_index: Optional[int] = None
    component: Optional[Component] = field(default=None, compare=False, repr=False)


class MnaSystem(NamedTuple):
    A: np.ndarray
    b: np.ndarray
    stamp_index: Dict[str, ComponentStamp]


@dataclass(frozen=True)
class StampContext:
    """Everything a stamp routine may read besides the stamp itself."""
    options: AnalysisOptions
    diode_states: Mapping[str, bool]
    time_step: Optional[float] = None
    time: float = 0.0
    state: Optional[TransientState] = None

    @property
    def is_transient(self) -> bool:
        return self.time_step is not None


def _node_voltage(x: np.ndarray, index: int) -> float:
    return 0.0 if index < 0 else float(x[index])


# --- Stamp routines, one per StampBehavior ---

@register_stamp(StampBehavior.CONDUCTANCE)
def _stamp_resistive(A, b, stamp: ComponentStamp, ctx: StampContext) -> None:
    stamp_conductance(A, stamp.node1, stamp.node2, 1.0 / stamp.value)


@register_stamp(StampBehavior.LEAK)
def _stamp_leak(A, b, stamp: ComponentStamp, ctx: StampContext) -> None:
    stamp_conductance(A, stamp.node1, stamp.node2, 1.0 / OPEN_CIRCUIT_RESISTANCE)


@register_stamp(StampBehavior.OPEN)
@register_stamp(StampBehavior.NONE)
def _stamp_nothing(A, b, stamp: ComponentStamp, ctx: StampContext) -> None:
    pass


@register_stamp(StampBehavior.VOLTAGE_SOURCE)
def _stamp_source(A, b, stamp: ComponentStamp, ctx: StampContext) -> None:
    voltage = stamp.value
    if ctx.is_transient and stamp.kind is ComponentKind.AC_SOURCE:
        voltage = source_voltage_at(stamp.component, ctx.time)
    stamp_voltage_source(A, b, stamp.node1, stamp.node2, stamp.aux_index, voltage)


@register_stamp(StampBehavior.CAPACITOR)
def _stamp_capacitor_companion(A, b, stamp: ComponentStamp, ctx: StampContext) -> None:
    # Backward Euler: i = C/dt * (v - v_prev), a conductance plus a history source.
    geq = stamp.value / ctx.time_step
    v_prev = ctx.state.capacitor_voltages.get(stamp.component_id, 0.0)
    stamp_conductance(A, stamp.node1, stamp.node2, geq)
    stamp_current_injection(b, stamp.node1, stamp.node2, geq * v_prev)


@register_stamp(StampBehavior.INDUCTOR)
def _stamp_inductor(A, b, stamp: ComponentStamp, ctx: StampContext) -> None:
    if not ctx.is_transient:
        # DC short: a 0 V source.
        stamp_voltage_source(A, b, stamp.node1, stamp.node2, stamp.aux_index, 0.0)
        return
    # Backward Euler: v = L/dt * (i - i_prev), i.e. V(n1) - V(n2) - Req*i = -Req*i_prev.
    req = stamp.value / ctx.time_step
    i_prev = ctx.state.inductor_currents.get(stamp.component_id, 0.0)
    stamp_voltage_source(A, b, stamp.node1, stamp.node2, stamp.aux_index, -req * i_prev, series_impedance=req)


@register_stamp(StampBehavior.DIODE)
def _stamp_diode(A, b, stamp: ComponentStamp, ctx: StampContext) -> None:
    if ctx.diode_states.get(stamp.component_id, False):
        stamp_voltage_source(
            A, b, stamp.node1, stamp.node2, stamp.aux_index, stamp.value,
            series_impedance=ctx.options.diode_on_resistance,
        )
    else:
        stamp_voltage_source(
            A, b, stamp.node1, stamp.node2, stamp.aux_index, 0.0,
            series_impedance=ctx.options.diode_off_resistance,
        )


class MnaAssembler:
    """
    Builds the stamp list for one topology and assembles the MNA system on demand.

    The stamp list is fixed at construction. Each `assemble` call starts from a
    zero matrix, so nothing from a previous solve leaks into the next one.
    """

    def __init__(
        self,
        topology: TopologyResult,
        components: Sequence[Component],
        options: Optional[AnalysisOptions] = None,
        transient: bool = False,
    ):
        self.topology = topology
        self.options = options or AnalysisOptions()
        self.transient = transient
        self.num_nodes = topology.num_nodes
        self.stamps: List[ComponentStamp] = self._build_stamps(components)
        self.num_aux = sum(1 for s in self.stamps if s.aux_index is not None)
        self.size = self.num_nodes + self.num_aux
        logger.debug(
            f"MNA assembler ready: {self.num_nodes} node(s) + {self.num_aux} auxiliary current(s), "
            f"{len(self.stamps)} stamp(s), transient={transient}."
        )

    @property
    def stamp_index(self) -> Dict[str, ComponentStamp]:
        return {s.component_id: s for s in self.stamps}

    def stamps_of(self, behavior: StampBehavior) -> List[ComponentStamp]:
        return [s for s in self.stamps if s.behavior is behavior]

    def _build_stamps(self, components: Sequence[Component]) -> List[ComponentStamp]:
        stamps: List[ComponentStamp] = []
        next_aux = self.num_nodes
        for comp in components:
            behavior = stamp_behavior(comp, transient=self.transient)
            if behavior is StampBehavior.NONE:
                continue
            check_two_terminal(comp)
            n1, n2 = self.topology.terminal_indices(comp)
            aux = None
            if needs_auxiliary_current(behavior):
                aux = next_aux
                next_aux += 1
            stamps.append(ComponentStamp(
                component_id=comp.id,
                kind=comp.kind,
                behavior=behavior,
                node1=n1,
                node2=n2,
                value=self._effective_value(comp, behavior),
                aux_index=aux,
                component=comp,
            ))
        return stamps

    @staticmethod
    def _effective_value(comp: Component, behavior: StampBehavior) -> float:
        if behavior is StampBehavior.CONDUCTANCE:
            return series_resistance(comp)
        if behavior is StampBehavior.VOLTAGE_SOURCE:
            return source_dc_value(comp)
        if behavior is StampBehavior.DIODE:
            return forward_voltage(comp)
        if behavior in (StampBehavior.CAPACITOR, StampBehavior.INDUCTOR):
            return resolve_value(comp)
        if comp.kind is ComponentKind.CAPACITOR:
            # Open at DC, but an invalid capacitance is still an error.
            return resolve_value(comp)
        return 0.0

    def assemble(
        self,
        diode_states: Optional[Mapping[str, bool]] = None,
        time_step: Optional[float] = None,
        time: float = 0.0,
        state: Optional[TransientState] = None,
    ) -> MnaSystem:
        """
        Assembles A and b. `diode_states` maps diode ids to ON (True) / OFF; a
        missing entry means OFF. `time_step`, `time` and `state` are required
        for a transient assembler and ignored otherwise.
        """
        if self.transient and (time_step is None or state is None):
            raise ValueError("A transient assembler needs a time step and a TransientState.")
        if state is not None and diode_states is None:
            diode_states = state.diode_states
        ctx = StampContext(
            options=self.options,
            diode_states=diode_states or {},
            time_step=time_step if self.transient else None,
            time=time,
            state=state,
        )
        A = np.zeros((self.size, self.size), dtype=float)
        b = np.zeros(self.size, dtype=float)
        for stamp in self.stamps:
            STAMP_REGISTRY[stamp.behavior](A, b, stamp, ctx)
        stamp_gmin(A, self.num_nodes, self.options.gmin)
        return MnaSystem(A, b, self.stamp_index)

    def branch_voltage(self, x: np.ndarray, stamp: ComponentStamp) -> float:
        return _node_voltage(x, stamp.node1) - _node_voltage(x, stamp.node2)

    def branch_currents(self, x: np.ndarray, time_step: Optional[float] = None,
                        state: Optional[TransientState] = None) -> Dict[str, float]:
        return derive_branch_currents(x, self.stamp_index, time_step=time_step, state=state)

    def next_diode_states(self, x: np.ndarray, diode_states: Mapping[str, bool]) -> Dict[str, bool]:
        """
        Re-evaluates every diode against a solution: an ON diode whose current has
        turned negative switches OFF; an OFF diode whose anode-cathode voltage
        exceeds its forward voltage switches ON.
        """
        updated: Dict[str, bool] = {}
        for stamp in self.stamps_of(StampBehavior.DIODE):
            is_on = diode_states.get(stamp.component_id, False)
            if is_on:
                updated[stamp.component_id] = float(x[stamp.aux_index]) >= DIODE_REVERSE_CURRENT_THRESHOLD
            else:
                updated[stamp.component_id] = self.branch_voltage(x, stamp) > stamp.value
        return updated


def assemble(topology: TopologyResult, components: Sequence[Component],
             options: Optional[AnalysisOptions] = None,
             diode_states: Optional[Mapping[str, bool]] = None) -> MnaSystem:
    """One-shot DC assembly: returns (A, b, stamp_index)."""
    return MnaAssembler(topology, components, options).assemble(diode_states)


def derive_branch_currents(
    x: np.ndarray,
    stamp_index: Mapping[str, ComponentStamp],
    time_step: Optional[float] = None,
    state: Optional[TransientState] = None,
) -> Dict[str, float]:
    """
    Current through every stamped element, positive from port 1 to port 2.
    Auxiliary-current elements report their solved current directly; capacitor
    companions need the step and the history they were assembled with.
    """
    currents: Dict[str, float] = {}
    for comp_id, stamp in stamp_index.items():
        if stamp.aux_index is not None:
            currents[comp_id] = float(x[stamp.aux_index])
            continue
        v_branch = _node_voltage(x, stamp.node1) - _node_voltage(x, stamp.node2)
        if stamp.behavior is StampBehavior.CONDUCTANCE:
            currents[comp_id] = v_branch / stamp.value
        elif stamp.behavior is StampBehavior.CAPACITOR:
            v_prev = state.capacitor_voltages.get(comp_id, 0.0) if state is not None else 0.0
            currents[comp_id] = stamp.value / time_step * (v_branch - v_prev)
        else:
            currents[comp_id] = 0.0
    return currents
