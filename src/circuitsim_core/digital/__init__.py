# src/circuitsim_core/digital/__init__.py
from .logic import (
    GATE_FUNCTIONS,
    INPUT_A_PORT,
    INPUT_B_PORT,
    OUTPUT_PORT,
    DigitalLogicEvaluator,
    DigitalLogicOptions,
    DigitalSimulationResult,
    GateState,
    LogicLevel,
    evaluate_gate,
    logic_and,
    logic_nand,
    logic_nor,
    logic_not,
    logic_or,
    logic_to_voltage,
    logic_xnor,
    logic_xor,
    simulate_logic,
    truth_table,
    voltage_to_logic,
)

__all__ = [
    # Levels and options
    "LogicLevel", "DigitalLogicOptions", "voltage_to_logic", "logic_to_voltage",
    # Gate primitives
    "logic_and", "logic_or", "logic_not", "logic_nand", "logic_nor", "logic_xor", "logic_xnor",
    "GATE_FUNCTIONS", "evaluate_gate", "truth_table",
    # Evaluator
    "DigitalLogicEvaluator", "DigitalSimulationResult", "GateState", "simulate_logic",
    # Port names
    "INPUT_A_PORT", "INPUT_B_PORT", "OUTPUT_PORT",
]
