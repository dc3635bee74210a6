# src/circuitsim_core/errors.py
import logging
from abc import abstractmethod
from enum import Enum
from typing import Any, Dict, Protocol, runtime_checkable

logger = logging.getLogger(__name__)

# --- User-Facing Exception Hierarchy ---

class CircuitSimError(Exception):
    """Base class for all user-facing errors raised by CircuitSim Core outside the analysis boundary."""
    pass


class ErrorKind(Enum):
    """
    Category of a failed analysis, carried on every result object so the editor can
    choose how to present the failure without parsing message text.
    """
    STRUCTURAL = "structural"
    NUMERIC = "numeric"
    CONFIGURATION = "configuration"
    COMPONENT = "component"
    INTERNAL = "internal"

    def __str__(self):
        return self.value


# --- Diagnostic Protocol & Base Exception ---

@runtime_checkable
class Diagnosable(Protocol):
    """
    Protocol for exceptions that can render their own diagnostic report.
    """
    def get_diagnostic_report(self) -> str:
        """Generates a complete, user-friendly, multi-line report string."""
        ...


class DiagnosableError(Exception, Diagnosable):
    """
    Concrete base for every internal exception that knows how to explain itself.

    Subclasses must implement `get_diagnostic_report` and declare which `ErrorKind`
    they map to when converted into a result value at the analysis boundary.
    """
    error_kind: ErrorKind = ErrorKind.INTERNAL

    @abstractmethod
    def get_diagnostic_report(self) -> str:
        """
        Abstract method to generate the diagnostic report.
        Subclasses MUST implement this.
        """
        raise NotImplementedError


# --- Stateless Formatting Utility ---

def format_diagnostic_report(
    error_type: str,
    details: str,
    suggestion: str,
    context: Dict[str, Any]
) -> str:
    """
    Formats the multi-line report string shared by all diagnosable errors.

    Args:
        error_type: The high-level category of the error (e.g., "Singular Matrix").
        details: A detailed, potentially multi-line description of the problem.
        suggestion: Actionable advice for the user to resolve the issue.
        context: Contextual information. Recognised keys are 'analysis',
            'component', 'source_file', 'user_input' and 'time'.

    Returns:
        A formatted report string ready for display.
    """
    lines = [
        "\n",
        "============= CircuitSim Core: Actionable Diagnostic Report =============",
        f"Error Type:     {error_type}",
    ]
    if analysis := context.get('analysis'):
        lines.append(f"Analysis:       {analysis}")
    if component := context.get('component'):
        lines.append(f"Component:      {component}")
    if source_file := context.get('source_file'):
        lines.append(f"Source File:    {source_file}")
    if user_input := context.get('user_input'):
        lines.append(f"User Input:     '{user_input}'")
    if (sim_time := context.get('time')) is not None:
        lines.append(f"Sim Time:       {sim_time:.6e} s")

    lines.append("\nDetails:")
    for line in details.splitlines():
        lines.append(f"  {line}")

    if suggestion:
        lines.append("\nSuggestion:")
        for line in suggestion.splitlines():
            lines.append(f"  {line}")

    lines.append("=========================================================================")
    return "\n".join(lines)
