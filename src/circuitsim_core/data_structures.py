# src/circuitsim_core/data_structures.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import FrozenSet, Optional, Tuple

from .components.base_enums import ComponentKind, WaveformShape
from .constants import DEFAULT_AC_FREQUENCY, DEFAULT_AC_PHASE

logger = logging.getLogger(__name__)


def port_key(component_id: str, port_id: str) -> str:
    """Canonical string identity of a port, as used in port-voltage maps."""
    return f"{component_id}:{port_id}"


@dataclass(frozen=True)
class PortRef:
    """Identity of one component terminal. Carries no geometry."""
    component_id: str
    port_id: str

    @property
    def key(self) -> str:
        return port_key(self.component_id, self.port_id)

    def __str__(self):
        return self.key


# --- Per-kind extras ---

@dataclass(frozen=True)
class AcSourceParams:
    """Extras of an AC source. `value` on the component is the amplitude."""
    frequency: float = DEFAULT_AC_FREQUENCY   # Hz
    phase: float = DEFAULT_AC_PHASE           # radians
    waveform: WaveformShape = WaveformShape.SINE
    offset: float = 0.0                       # volts, also the DC operating-point value


@dataclass(frozen=True)
class LedParams:
    """Extras of an LED. An explicit forward-voltage override beats the colour table."""
    color: Optional[str] = None
    forward_voltage_override: Optional[float] = None


@dataclass(frozen=True)
class SwitchParams:
    closed: bool = False


@dataclass(frozen=True)
class LogicInputs:
    """Explicit boolean inputs of a logic gate. None means the input is not driven."""
    input_a: Optional[bool] = None
    input_b: Optional[bool] = None


@dataclass(frozen=True)
class Component:
    """
    One element of the editor snapshot.

    `ports` is ordered: for two-terminal elements the first port is node 1 (the
    positive terminal of a source, the anode of a diode) and the second is node 2.
    Ground components carry a single port. Logic gates use ports named A, B and Y.
    `value` means resistance, capacitance, inductance, voltage or forward voltage
    depending on `kind`; None selects the per-kind default.
    """
    id: str
    kind: ComponentKind
    ports: Tuple[str, ...] = ()
    value: Optional[float] = None
    ac: Optional[AcSourceParams] = None
    led: Optional[LedParams] = None
    switch: Optional[SwitchParams] = None
    logic: Optional[LogicInputs] = None

    def __post_init__(self):
        if not isinstance(self.kind, ComponentKind):
            object.__setattr__(self, 'kind', ComponentKind(self.kind))
        if not isinstance(self.ports, tuple):
            object.__setattr__(self, 'ports', tuple(self.ports))

    @property
    def port_refs(self) -> Tuple[PortRef, ...]:
        return tuple(PortRef(self.id, p) for p in self.ports)

    @property
    def ac_params(self) -> AcSourceParams:
        return self.ac if self.ac is not None else AcSourceParams()

    @property
    def is_switch_closed(self) -> bool:
        return self.switch is not None and self.switch.closed


@dataclass(frozen=True)
class Wire:
    """Undirected connection between exactly two ports. Carries topology only."""
    id: str
    from_component: str
    from_port: str
    to_component: str
    to_port: str

    @property
    def endpoints(self) -> Tuple[PortRef, PortRef]:
        return PortRef(self.from_component, self.from_port), PortRef(self.to_component, self.to_port)


@dataclass(frozen=True)
class ElectricalNode:
    """
    A set of ports merged by wires. `id` is the key of the canonical member port;
    `index` is the row in the unknown vector, -1 for the ground node, or None for
    a node that touches no analog element (e.g. a net between two logic gates).
    """
    id: str
    ports: FrozenSet[PortRef] = field(default_factory=frozenset)
    is_ground: bool = False
    index: Optional[int] = None

    def component_ids(self) -> FrozenSet[str]:
        return frozenset(p.component_id for p in self.ports)


