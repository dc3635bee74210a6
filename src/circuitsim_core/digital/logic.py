# src/circuitsim_core/digital/logic.py
"""
Combinational evaluation of the logic gates placed in a schematic.

Gates are pure functions of their current inputs: no propagation delay and no
sequential state. An input is read, in order of precedence, from the voltage of
the gate's port (when a port-voltage map is supplied, e.g. from a DC analysis),
from the gate's explicit boolean input, or else it is UNKNOWN. UNKNOWN is never
coerced to LOW: any gate with an UNKNOWN input produces UNKNOWN.
"""
import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from ..components.base_enums import ComponentKind
from ..constants import DEFAULT_LOGIC_THRESHOLD, LOGIC_HIGH_VOLTAGE, LOGIC_LOW_VOLTAGE
from ..data_structures import Component, port_key
from ..errors import Diagnosable, ErrorKind
from ..simulation.exceptions import ConfigurationError
from ..simulation.results import describe_failure

logger = logging.getLogger(__name__)

INPUT_A_PORT = "A"
INPUT_B_PORT = "B"
OUTPUT_PORT = "Y"


class LogicLevel(Enum):
    LOW = "LOW"
    HIGH = "HIGH"
    UNKNOWN = "UNKNOWN"

    def __str__(self):
        return self.value

    @classmethod
    def from_bool(cls, value: Optional[bool]) -> "LogicLevel":
        if value is None:
            return cls.UNKNOWN
        return cls.HIGH if value else cls.LOW


@dataclass(frozen=True)
class DigitalLogicOptions:
    v_high: float = LOGIC_HIGH_VOLTAGE
    v_low: float = LOGIC_LOW_VOLTAGE
    threshold: float = DEFAULT_LOGIC_THRESHOLD

    def validate(self) -> None:
        if not all(math.isfinite(v) for v in (self.v_high, self.v_low, self.threshold)):
            raise ConfigurationError(details="Logic voltages and threshold must be finite.")
        if not self.v_low < self.v_high:
            raise ConfigurationError(details=f"Logic LOW voltage ({self.v_low}) must be below HIGH ({self.v_high}).")


def voltage_to_logic(voltage: Optional[float], threshold: float = DEFAULT_LOGIC_THRESHOLD) -> LogicLevel:
    """HIGH at or above `threshold`, LOW below it, UNKNOWN for a missing or NaN voltage."""
    if voltage is None or math.isnan(voltage):
        return LogicLevel.UNKNOWN
    return LogicLevel.HIGH if voltage >= threshold else LogicLevel.LOW


def logic_to_voltage(level: LogicLevel, options: Optional[DigitalLogicOptions] = None) -> Optional[float]:
    """Output drive voltage of a level; an UNKNOWN output drives nothing (None)."""
    options = options or DigitalLogicOptions()
    if level is LogicLevel.HIGH:
        return options.v_high
    if level is LogicLevel.LOW:
        return options.v_low
    return None


# --- Gate primitives ---

def logic_not(a: LogicLevel) -> LogicLevel:
    if a is LogicLevel.UNKNOWN:
        return LogicLevel.UNKNOWN
    return LogicLevel.LOW if a is LogicLevel.HIGH else LogicLevel.HIGH


def _binary(op: Callable[[bool, bool], bool]) -> Callable[[LogicLevel, LogicLevel], LogicLevel]:
    def gate(a: LogicLevel, b: LogicLevel) -> LogicLevel:
        if a is LogicLevel.UNKNOWN or b is LogicLevel.UNKNOWN:
            return LogicLevel.UNKNOWN
        return LogicLevel.from_bool(op(a is LogicLevel.HIGH, b is LogicLevel.HIGH))
    return gate


logic_and = _binary(lambda a, b: a and b)
logic_or = _binary(lambda a, b: a or b)
logic_xor = _binary(lambda a, b: a != b)


def logic_nand(a: LogicLevel, b: LogicLevel) -> LogicLevel:
    return logic_not(logic_and(a, b))


def logic_nor(a: LogicLevel, b: LogicLevel) -> LogicLevel:
    return logic_not(logic_or(a, b))


def logic_xnor(a: LogicLevel, b: LogicLevel) -> LogicLevel:
    return logic_not(logic_xor(a, b))


GATE_FUNCTIONS: Dict[ComponentKind, Callable[..., LogicLevel]] = {
    ComponentKind.LOGIC_AND: logic_and,
    ComponentKind.LOGIC_OR: logic_or,
    ComponentKind.LOGIC_NOT: logic_not,
    ComponentKind.LOGIC_NAND: logic_nand,
    ComponentKind.LOGIC_NOR: logic_nor,
    ComponentKind.LOGIC_XOR: logic_xor,
    ComponentKind.LOGIC_XNOR: logic_xnor,
}


def evaluate_gate(kind: ComponentKind, a: LogicLevel, b: LogicLevel = LogicLevel.UNKNOWN) -> LogicLevel:
    if kind is ComponentKind.LOGIC_NOT:
        return logic_not(a)
    return GATE_FUNCTIONS[kind](a, b)


def truth_table(kind: ComponentKind) -> List[Tuple[Tuple[int, ...], int]]:
    """Binary truth table of a gate for display, as ((inputs...), output) rows."""
    levels = (LogicLevel.LOW, LogicLevel.HIGH)
    if kind is ComponentKind.LOGIC_NOT:
        return [((int(a is LogicLevel.HIGH),), int(logic_not(a) is LogicLevel.HIGH)) for a in levels]
    return [
        ((int(a is LogicLevel.HIGH), int(b is LogicLevel.HIGH)), int(evaluate_gate(kind, a, b) is LogicLevel.HIGH))
        for a in levels for b in levels
    ]


# --- Results ---

@dataclass(frozen=True)
class GateState:
    component_id: str
    gate_type: ComponentKind
    input_a: LogicLevel
    input_b: Optional[LogicLevel]
    output: LogicLevel
    output_voltage: Optional[float]


@dataclass(frozen=True)
class DigitalSimulationResult:
    """
    Per-gate levels plus the output voltage of every gate, keyed by gate id.
    """
    success: bool
    gate_states: Dict[str, GateState] = field(default_factory=dict)
    node_voltages: Dict[str, Optional[float]] = field(default_factory=dict)
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    diagnostic_report: Optional[str] = None


class DigitalLogicEvaluator:
    """Evaluates every logic gate of a snapshot; other components are ignored."""

    def __init__(self, options: Optional[DigitalLogicOptions] = None):
        self.options = options or DigitalLogicOptions()

    def simulate(self, components: Sequence[Component],
                 port_voltages: Optional[Mapping[str, float]] = None) -> DigitalSimulationResult:
        try:
            self.options.validate()
            gate_states: Dict[str, GateState] = {}
            output_voltages: Dict[str, Optional[float]] = {}
            for gate in (c for c in components if c.kind.is_logic_gate):
                state = self._evaluate(gate, port_voltages)
                gate_states[gate.id] = state
                output_voltages[gate.id] = state.output_voltage
        except Exception as e:
            if isinstance(e, Diagnosable):
                logger.error(f"Digital evaluation failed: {e}")
            else:
                logger.critical(f"Unexpected error during digital evaluation: {e}", exc_info=True)
            return DigitalSimulationResult(success=False, **describe_failure(e))

        logger.debug(f"Evaluated {len(gate_states)} logic gate(s).")
        return DigitalSimulationResult(success=True, gate_states=gate_states, node_voltages=output_voltages)

    def _read_input(self, gate: Component, port: str, explicit: Optional[bool],
                    port_voltages: Optional[Mapping[str, float]]) -> LogicLevel:
        if port_voltages is not None:
            voltage = port_voltages.get(port_key(gate.id, port))
            if voltage is not None:
                return voltage_to_logic(voltage, self.options.threshold)
        return LogicLevel.from_bool(explicit)

    def _evaluate(self, gate: Component, port_voltages: Optional[Mapping[str, float]]) -> GateState:
        inputs = gate.logic
        input_a = self._read_input(gate, INPUT_A_PORT, inputs.input_a if inputs else None, port_voltages)
        input_b = None
        if gate.kind is not ComponentKind.LOGIC_NOT:
            input_b = self._read_input(gate, INPUT_B_PORT, inputs.input_b if inputs else None, port_voltages)
        output = evaluate_gate(gate.kind, input_a, input_b if input_b is not None else LogicLevel.UNKNOWN)
        return GateState(
            component_id=gate.id,
            gate_type=gate.kind,
            input_a=input_a,
            input_b=input_b,
            output=output,
            output_voltage=logic_to_voltage(output, self.options),
        )


def simulate_logic(components: Sequence[Component],
                   port_voltages: Optional[Mapping[str, float]] = None,
                   options: Optional[DigitalLogicOptions] = None) -> DigitalSimulationResult:
    return DigitalLogicEvaluator(options).simulate(components, port_voltages)
