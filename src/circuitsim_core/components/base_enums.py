# src/circuitsim_core/components/base_enums.py
from enum import Enum, auto


class ComponentKind(Enum):
    """
    The closed set of element kinds the editor can place. The value is the
    kind string used in editor snapshots and netlist files.
    """
    RESISTOR = "resistor"
    CAPACITOR = "capacitor"
    INDUCTOR = "inductor"
    DC_SOURCE = "dc_source"
    AC_SOURCE = "ac_source"
    GROUND = "ground"
    DIODE = "diode"
    LED = "led"
    SWITCH = "switch"
    AMMETER = "ammeter"
    VOLTMETER = "voltmeter"
    LOGIC_AND = "logic_and"
    LOGIC_OR = "logic_or"
    LOGIC_NOT = "logic_not"
    LOGIC_NAND = "logic_nand"
    LOGIC_NOR = "logic_nor"
    LOGIC_XOR = "logic_xor"
    LOGIC_XNOR = "logic_xnor"

    def __str__(self):
        return self.value

    @property
    def is_source(self) -> bool:
        return self in (ComponentKind.DC_SOURCE, ComponentKind.AC_SOURCE)

    @property
    def is_diode_like(self) -> bool:
        return self in (ComponentKind.DIODE, ComponentKind.LED)

    @property
    def is_logic_gate(self) -> bool:
        return self.value.startswith("logic_")

    @property
    def is_analog(self) -> bool:
        """True for kinds that take part in the MNA system (ground only fixes the reference)."""
        return not self.is_logic_gate and self is not ComponentKind.GROUND


class WaveformShape(Enum):
    """Periodic shapes an AC source can produce."""
    SINE = "sine"
    SQUARE = "square"
    TRIANGLE = "triangle"
    SAWTOOTH = "sawtooth"

    def __str__(self):
        return self.value


class StampBehavior(Enum):
    """
    How an element enters the MNA system for a given analysis. Resolved per
    component by `components.elements.stamp_behavior`.
    """
    CONDUCTANCE = auto()       # Two-node conductance (resistor, closed switch, ammeter).
    OPEN = auto()              # Contributes nothing (DC capacitor).
    LEAK = auto()              # Open element behind a large leakage resistance (open switch, voltmeter).
    VOLTAGE_SOURCE = auto()    # Aux current unknown with a branch-voltage constraint.
    CAPACITOR = auto()         # Transient companion: conductance plus history current.
    INDUCTOR = auto()          # Aux current unknown; short at DC, companion in transient.
    DIODE = auto()             # Two-state element; aux current unknown in both states.
    NONE = auto()              # Not stamped at all (ground, logic gates).
