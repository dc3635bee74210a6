# src/circuitsim_core/simulation/exceptions.py
"""
Diagnosable exceptions raised inside the analyses.

None of these cross the public analysis boundary: `DCAnalyzer`, the transient
solvers and `ACSweepAnalyzer` catch them and return them as result values
(`success=False`, `error`, `error_kind`, `diagnostic_report`). They map onto
the four failure categories of the engine:

* `StructuralError` - the netlist cannot be analysed at all (no ground, no
  source, ...). Detected before any matrix is assembled.
* `SingularMatrixError` - the assembled system has no unique solution.
* `ConfigurationError` - bad analysis options or misuse of a solver's lifecycle.
* Diode/LED non-convergence is not an exception; it is a warning attached to a
  successful result.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import numpy as np

from ..errors import DiagnosableError, ErrorKind, format_diagnostic_report
from ..validation.issue_codes import StructuralIssueCode
from ..validation.issues import ValidationIssue

_STRUCTURAL_SUGGESTIONS = {
    StructuralIssueCode.EMPTY_CIRCUIT: "Place at least a source, a load and a ground before simulating.",
    StructuralIssueCode.NO_WIRES: "Connect the component terminals with wires.",
    StructuralIssueCode.DUPLICATE_COMPONENT_ID: "Give every component a unique id.",
    StructuralIssueCode.GROUND_MISSING: "Add a ground component and wire it to the circuit's return path.",
    StructuralIssueCode.GROUND_ISOLATED: "Wire the ground component to the negative terminal of the source or to the return path of the circuit.",
    StructuralIssueCode.NO_SOURCE: "Add a DC or AC voltage source.",
    StructuralIssueCode.OPEN_LOOP: "Close the switch(es) in the current path, or provide another return path to ground.",
}


@dataclass()
class StructuralError(DiagnosableError):
    """
    Raised when the netlist is structurally unfit for the requested analysis.
    """
    code: StructuralIssueCode
    details: str
    analysis: Optional[str] = None
    component_id: Optional[str] = None

    error_kind = ErrorKind.STRUCTURAL

    @classmethod
    def from_issue(cls, issue: ValidationIssue, analysis: Optional[str] = None) -> "StructuralError":
        return cls(
            code=StructuralIssueCode.from_code(issue.code),
            details=issue.message,
            analysis=analysis,
            component_id=issue.component_id,
        )

    def __str__(self):
        return self.details

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type=f"Structural Error ({self.code.code})",
            details=self.details,
            suggestion=_STRUCTURAL_SUGGESTIONS.get(self.code, ""),
            context={'analysis': self.analysis, 'component': self.component_id}
        )


@dataclass()
class SingularMatrixError(DiagnosableError, np.linalg.LinAlgError):
    """
    Raised when the MNA system has no unique solution.

    Catchable both as a `DiagnosableError` and as a standard `LinAlgError`.
    """
    details: str
    analysis: Optional[str] = None
    time: Optional[float] = None
    frequency: Optional[float] = None

    error_kind = ErrorKind.NUMERIC

    def __str__(self):
        where = f" during {self.analysis} analysis" if self.analysis else ""
        if self.frequency is not None:
            where += f" at {self.frequency:.4e} Hz"
        return f"Singular matrix{where}: {self.details}"

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Singular Matrix Encountered",
            details=self.details,
            suggestion=(
                "The circuit equations have no unique solution. Common causes are two voltage sources "
                "forcing different voltages onto the same pair of nodes, a loop made only of sources and "
                "inductors, or a node that is connected only through open elements (capacitors at DC, "
                "open switches, reverse-biased diodes)."
            ),
            context={'analysis': self.analysis, 'time': self.time}
        )


@dataclass()
class ConfigurationError(DiagnosableError):
    """
    Raised for invalid analysis options (non-positive time step, bad iteration cap)
    and for stepping a transient solver that is not initialized or was disposed.
    """
    details: str
    user_input: Optional[Any] = None
    context: Dict[str, Any] = field(default_factory=dict)

    error_kind = ErrorKind.CONFIGURATION

    def __str__(self):
        return self.details

    def get_diagnostic_report(self) -> str:
        ctx = dict(self.context)
        if self.user_input is not None:
            ctx['user_input'] = self.user_input
        return format_diagnostic_report(
            error_type="Configuration Error",
            details=self.details,
            suggestion="Use a positive, finite time step and call initialize() before stepping. A disposed solver must be re-initialized.",
            context=ctx
        )
