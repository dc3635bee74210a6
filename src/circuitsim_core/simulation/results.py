# src/circuitsim_core/simulation/results.py
"""
Result contracts returned across the analysis boundary.

Every analysis reports failure as data rather than by raising: a result carries
`success`, a one-line `error`, an `error_kind` the editor can switch on, and the
full `diagnostic_report` of the underlying diagnosable exception. Convergence
trouble of the diode heuristic is not a failure; it is reported through
`converged=False` and a WARNING entry in `warnings`.

Sign convention for branch currents: positive current flows through the element
from its first port to its second. An independent source that delivers power
therefore reports a negative current.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple

import numpy as np

from ..errors import Diagnosable, ErrorKind
from ..validation.issues import ValidationIssue

logger = logging.getLogger(__name__)


def describe_failure(exc: BaseException) -> Dict[str, Any]:
    """Result fields (`error`, `error_kind`, `diagnostic_report`) for a caught exception."""
    if isinstance(exc, Diagnosable):
        return {
            'error': str(exc),
            'error_kind': getattr(exc, 'error_kind', ErrorKind.INTERNAL),
            'diagnostic_report': exc.get_diagnostic_report(),
        }
    return {
        'error': f"Unexpected internal error: {type(exc).__name__}: {exc}",
        'error_kind': ErrorKind.INTERNAL,
        'diagnostic_report': None,
    }


@dataclass(frozen=True)
class AnalysisResult:
    """
    Outcome of a DC operating-point analysis.

    `node_voltages` is keyed by node id (the "componentId:portId" key of the
    node's canonical port); `port_voltages` repeats the same voltages for every
    port so overlays and the digital evaluator can look them up directly.
    """
    success: bool
    node_voltages: Dict[str, float] = field(default_factory=dict)
    branch_currents: Dict[str, float] = field(default_factory=dict)
    port_voltages: Dict[str, float] = field(default_factory=dict)
    diode_states: Dict[str, bool] = field(default_factory=dict)
    converged: bool = True
    iterations: int = 0
    warnings: List[ValidationIssue] = field(default_factory=list)
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    diagnostic_report: Optional[str] = None

    @classmethod
    def failure(cls, exc: BaseException, warnings: Optional[List[ValidationIssue]] = None) -> "AnalysisResult":
        return cls(success=False, converged=False, warnings=list(warnings or []), **describe_failure(exc))


@dataclass(frozen=True)
class InitResult:
    """Outcome of `StreamingTransientSolver.initialize`."""
    success: bool
    max_frequency: float = 0.0
    time_step: Optional[float] = None
    warnings: List[ValidationIssue] = field(default_factory=list)
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    diagnostic_report: Optional[str] = None

    @classmethod
    def failure(cls, exc: BaseException) -> "InitResult":
        return cls(success=False, **describe_failure(exc))


@dataclass(frozen=True)
class StreamingSample:
    """State after one internal transient step."""
    time: float
    branch_currents: Dict[str, float]
    node_voltages: Dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class StreamingBatch:
    """
    Samples produced by one `step_batch` call, one per internal step.

    Behaves as a read-only sequence of `StreamingSample`. When a step fails the
    batch holds the samples committed before the failure and `success` is False.
    """
    samples: Tuple[StreamingSample, ...] = ()
    success: bool = True
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    diagnostic_report: Optional[str] = None

    def __iter__(self) -> Iterator[StreamingSample]:
        return iter(self.samples)

    def __len__(self) -> int:
        return len(self.samples)

    def __getitem__(self, index):
        return self.samples[index]

    @classmethod
    def failure(cls, exc: BaseException, samples=()) -> "StreamingBatch":
        return cls(samples=tuple(samples), success=False, **describe_failure(exc))


@dataclass(frozen=True)
class TransientResult:
    """
    Outcome of a complete transient run. Histories are aligned with `time_points`,
    which start at the first step (t = dt).
    """
    success: bool
    time_points: np.ndarray = field(default_factory=lambda: np.zeros(0))
    node_voltages: Dict[str, np.ndarray] = field(default_factory=dict)
    branch_currents: Dict[str, np.ndarray] = field(default_factory=dict)
    time_step: Optional[float] = None
    max_frequency: float = 0.0
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    diagnostic_report: Optional[str] = None

    @classmethod
    def failure(cls, exc: BaseException, **partial) -> "TransientResult":
        return cls(success=False, **partial, **describe_failure(exc))


@dataclass(frozen=True)
class PhasorSeries:
    """Complex phasors across a sweep, exposed as magnitude and phase in degrees."""
    values: np.ndarray

    @property
    def magnitude(self) -> np.ndarray:
        return np.abs(self.values)

    @property
    def phase_deg(self) -> np.ndarray:
        return np.degrees(np.angle(self.values))


@dataclass(frozen=True)
class ACSweepResult:
    """
    Outcome of an AC magnitude/phase sweep. Every series is aligned with
    `frequencies`. Impedances are reported for resistors, capacitors and inductors.
    """
    success: bool
    frequencies: np.ndarray = field(default_factory=lambda: np.zeros(0))
    node_voltages: Dict[str, PhasorSeries] = field(default_factory=dict)
    branch_currents: Dict[str, PhasorSeries] = field(default_factory=dict)
    impedances: Dict[str, PhasorSeries] = field(default_factory=dict)
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    diagnostic_report: Optional[str] = None

    @classmethod
    def failure(cls, exc: BaseException) -> "ACSweepResult":
        return cls(success=False, **describe_failure(exc))
