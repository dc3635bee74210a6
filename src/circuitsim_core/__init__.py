# src/circuitsim_core/__init__.py
import logging
from .log_config import setup_logging

setup_logging()
logger = logging.getLogger(__name__)
logger.info("CircuitSim Core package initialized.")

from .units import ureg, pint, Quantity
from .components import ComponentKind, ComponentError, WaveformShape
from .data_structures import (
    AcSourceParams,
    Component,
    ElectricalNode,
    LedParams,
    LogicInputs,
    PortRef,
    SwitchParams,
    Wire,
    port_key,
)
from .topology import TopologyBuilder, TopologyResult
from .validation import StructuralIssueCode, ValidationIssue, ValidationIssueLevel
from .parser import NetlistParser
from .simulation import (
    ACSweepAnalyzer,
    AnalysisOptions,
    DCAnalyzer,
    StreamingTransientSolver,
    TransientOptions,
    run_ac_sweep,
    run_dc_analysis,
    run_transient,
)
from .digital import DigitalLogicEvaluator, DigitalLogicOptions, LogicLevel, simulate_logic
from .errors import CircuitSimError, DiagnosableError, ErrorKind

__all__ = [
    # Units
    "ureg", "pint", "Quantity",
    # Data Structures
    "Component", "ComponentKind", "WaveformShape", "Wire", "PortRef", "ElectricalNode", "port_key",
    "AcSourceParams", "LedParams", "SwitchParams", "LogicInputs",
    # Topology and Validation
    "TopologyBuilder", "TopologyResult",
    "StructuralIssueCode", "ValidationIssue", "ValidationIssueLevel",
    # Parser
    "NetlistParser",
    # Analyses
    "AnalysisOptions", "TransientOptions",
    "DCAnalyzer", "run_dc_analysis",
    "StreamingTransientSolver", "run_transient",
    "ACSweepAnalyzer", "run_ac_sweep",
    "DigitalLogicEvaluator", "DigitalLogicOptions", "LogicLevel", "simulate_logic",
    # Errors (Actionable Diagnostics)
    "CircuitSimError", "DiagnosableError", "ErrorKind", "ComponentError",
]
