# src/circuitsim_core/validation/issue_codes.py
import logging
from enum import Enum

logger = logging.getLogger(__name__)


class StructuralIssueCode(Enum):
    """
    Registry of netlist and analysis issue codes and their message templates.
    Each member's value is a tuple: (code_str, message_template_str).
    """

    # --- Circuit-level structure (CIRCUIT_...) ---
    EMPTY_CIRCUIT = ("CIRCUIT_EMPTY", "The circuit has no components.")
    NO_WIRES = ("CIRCUIT_NO_WIRES", "The circuit has {component_count} components but no wires; nothing is connected.")
    DUPLICATE_COMPONENT_ID = ("CIRCUIT_DUPLICATE_ID", "Component id '{duplicate_id}' is used by more than one component.")
    WIRE_UNKNOWN_PORT = ("WIRE_UNKNOWN_PORT", "Wire '{wire_id}' references unknown port '{port}' and was ignored.")

    # --- Reference node (GND_...) ---
    GROUND_MISSING = ("GND_MISSING", "The circuit has no ground component, so there is no reference node (0 V).")
    GROUND_ISOLATED = ("GND_ISOLATED", "Ground {ground_ids} is not connected to any other component.")

    # --- Sources and loops (SRC_...) ---
    NO_SOURCE = ("SRC_MISSING", "The circuit has no independent voltage source (DC or AC).")
    OPEN_LOOP = ("SRC_OPEN_LOOP", "Source '{source_id}' has no closed path from its positive terminal to ground. Open switch(es): {open_switches}.")

    # --- Analysis-time findings (ANA_...) ---
    DIODE_NOT_CONVERGED = (
        "ANA_DIODE_NOT_CONVERGED",
        "Diode/LED ON/OFF states did not settle within {iterations} iterations (still changing: {components}). "
        "The returned solution is the last iterate of the simplified two-state diode model, not a full nonlinear solve."
    )

    @property
    def code(self) -> str:
        return self.value[0]

    @property
    def template(self) -> str:
        return self.value[1]

    def format_message(self, **kwargs) -> str:
        """Formats the message template with provided keyword arguments."""
        try:
            return self.template.format(**kwargs)
        except KeyError as e:
            logger.error(f"Missing key {e} for formatting message template of {self.name} (code: {self.code}). Provided args: {kwargs}")
            return f"Error formatting message for {self.code}: Missing key {e}. Template: '{self.template}' Args: {kwargs}"

    @classmethod
    def from_code(cls, code: str) -> "StructuralIssueCode":
        for member in cls:
            if member.code == code:
                return member
        raise ValueError(f"Unknown issue code '{code}'.")
