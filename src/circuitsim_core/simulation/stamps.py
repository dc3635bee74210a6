# src/circuitsim_core/simulation/stamps.py
"""
MNA stamp primitives and the per-behaviour stamp registry.

Index -1 is the ground node: every primitive silently drops the rows and columns
that refer to it. An auxiliary current variable `aux` carries the current through
its element from node 1 to node 2, so a source delivering power reports a negative
current.
"""
import logging
from typing import Callable, Dict

import numpy as np

from ..components.base_enums import StampBehavior

logger = logging.getLogger(__name__)

StampFunction = Callable[..., None]

STAMP_REGISTRY: Dict[StampBehavior, StampFunction] = {}


def register_stamp(behavior: StampBehavior):
    """Decorator that registers the stamping routine for a `StampBehavior`."""
    def decorator(func: StampFunction) -> StampFunction:
        if behavior in STAMP_REGISTRY:
            logger.warning(f"Stamp for behaviour '{behavior.name}' is being redefined.")
        STAMP_REGISTRY[behavior] = func
        logger.debug(f"Registered stamp '{func.__name__}' for behaviour '{behavior.name}'.")
        return func
    return decorator


def stamp_conductance(A: np.ndarray, n1: int, n2: int, g) -> None:
    """Conductance g between n1 and n2."""
    if n1 >= 0:
        A[n1, n1] += g
    if n2 >= 0:
        A[n2, n2] += g
    if n1 >= 0 and n2 >= 0:
        A[n1, n2] -= g
        A[n2, n1] -= g


def stamp_current_injection(b: np.ndarray, n1: int, n2: int, current) -> None:
    """Independent current `current` flowing into n1 and out of n2 through the external circuit."""
    if n1 >= 0:
        b[n1] += current
    if n2 >= 0:
        b[n2] -= current


def stamp_branch_coupling(A: np.ndarray, n1: int, n2: int, aux: int) -> None:
    """KCL coupling of the aux current and the V(n1) - V(n2) term of its constraint row."""
    if n1 >= 0:
        A[n1, aux] += 1.0
        A[aux, n1] += 1.0
    if n2 >= 0:
        A[n2, aux] -= 1.0
        A[aux, n2] -= 1.0


def stamp_voltage_source(A: np.ndarray, b: np.ndarray, n1: int, n2: int, aux: int, voltage,
                         series_impedance=0.0) -> None:
    """
    Constraint V(n1) - V(n2) - Z*i = voltage, with i the aux current. A zero
    series impedance gives an ideal source.
    """
    stamp_branch_coupling(A, n1, n2, aux)
    A[aux, aux] -= series_impedance
    b[aux] += voltage


def stamp_zero_current(A: np.ndarray, b: np.ndarray, aux: int) -> None:
    """Pins an unused aux current to zero (identity row)."""
    A[aux, :] = 0.0
    A[aux, aux] = 1.0
    b[aux] = 0.0


def stamp_gmin(A: np.ndarray, num_nodes: int, gmin: float) -> None:
    """Shunt conductance from every node to ground."""
    if gmin > 0.0 and num_nodes > 0:
        idx = np.arange(num_nodes)
        A[idx, idx] += gmin
