# src/circuitsim_core/components/exceptions.py
"""
Diagnosable exceptions for the components subsystem.
"""
from dataclasses import dataclass
from typing import Optional

from ..errors import DiagnosableError, ErrorKind, format_diagnostic_report


@dataclass()
class ComponentError(DiagnosableError):
    """
    Raised when a component cannot enter an analysis as specified, such as a
    non-positive resistance or a two-terminal element with a missing port.
    """
    component_id: str
    details: str
    analysis: Optional[str] = None

    error_kind = ErrorKind.COMPONENT

    def __str__(self):
        return f"Component '{self.component_id}': {self.details}"

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Invalid Component",
            details=self.details,
            suggestion="Check the component's value and port list. Resistance, capacitance and inductance must be positive and finite, and two-terminal elements need both ports.",
            context={'component': self.component_id, 'analysis': self.analysis}
        )
