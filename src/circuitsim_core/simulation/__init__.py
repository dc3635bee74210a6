# src/circuitsim_core/simulation/__init__.py
from .exceptions import (
    ConfigurationError,
    SingularMatrixError,
    StructuralError,
)
from .config import (
    AnalysisOptions,
    TransientOptions,
    parse_analysis_options,
    parse_sweep_config,
    parse_transient_options,
)
from .linear_solver import factorize, gaussian_elimination, solve, solve_factorized
from .mna import ComponentStamp, MnaAssembler, MnaSystem, assemble, derive_branch_currents
from .results import (
    ACSweepResult,
    AnalysisResult,
    InitResult,
    PhasorSeries,
    StreamingBatch,
    StreamingSample,
    TransientResult,
)
from .state import TransientState
from .waveforms import generate_waveform, source_voltage_at
from .dc import DCAnalyzer, run_dc_analysis
from .transient import StreamingTransientSolver, derive_time_step, max_source_frequency, run_transient
from .ac import ACSweepAnalyzer, run_ac_sweep
from .clock import auto_time_scale, steps_for_frame

__all__ = [
    # Exceptions
    "ConfigurationError", "SingularMatrixError", "StructuralError",
    # Configuration
    "AnalysisOptions", "TransientOptions",
    "parse_analysis_options", "parse_transient_options", "parse_sweep_config",
    # Linear algebra
    "gaussian_elimination", "solve", "factorize", "solve_factorized",
    # MNA
    "ComponentStamp", "MnaAssembler", "MnaSystem", "assemble", "derive_branch_currents",
    # Results
    "AnalysisResult", "InitResult", "StreamingSample", "StreamingBatch",
    "TransientResult", "PhasorSeries", "ACSweepResult",
    # Analyses
    "DCAnalyzer", "run_dc_analysis",
    "StreamingTransientSolver", "TransientState", "derive_time_step", "max_source_frequency", "run_transient",
    "ACSweepAnalyzer", "run_ac_sweep",
    # Waveforms and clock helpers
    "generate_waveform", "source_voltage_at", "auto_time_scale", "steps_for_frame",
]
