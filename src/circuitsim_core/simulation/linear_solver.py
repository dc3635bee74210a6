# src/circuitsim_core/simulation/linear_solver.py
import logging
import warnings
from typing import Tuple

import numpy as np
import scipy.linalg

from ..constants import SINGULAR_PIVOT_EPSILON
from .exceptions import SingularMatrixError

logger = logging.getLogger(__name__)

LuFactors = Tuple[np.ndarray, np.ndarray]


def _check_system(A: np.ndarray, b: np.ndarray) -> None:
    if A.ndim != 2 or A.shape[0] != A.shape[1]:
        raise ValueError(f"Coefficient matrix must be square, got shape {A.shape}.")
    if b.ndim != 1 or b.shape[0] != A.shape[0]:
        raise ValueError(f"Right-hand side must be a vector of length {A.shape[0]}, got shape {b.shape}.")


def gaussian_elimination(A, b, epsilon: float = SINGULAR_PIVOT_EPSILON) -> np.ndarray:
    """
    Solves A x = b by Gaussian elimination with partial pivoting.

    In each column the row with the largest absolute coefficient is swapped into
    the pivot position. A pivot smaller than `epsilon` in magnitude means the
    system has no unique solution. The inputs are not modified. Real and complex
    systems are both supported.

    Raises:
        SingularMatrixError: If a pivot falls below `epsilon`.
        ValueError: If the shapes of A and b are inconsistent.
    """
    A = np.asarray(A)
    b = np.asarray(b)
    _check_system(A, b)
    n = A.shape[0]
    dtype = np.result_type(A, b, np.float64)
    m = np.array(A, dtype=dtype, copy=True)
    rhs = np.array(b, dtype=dtype, copy=True)

    for col in range(n):
        pivot_row = col + int(np.argmax(np.abs(m[col:, col])))
        pivot_mag = abs(m[pivot_row, col])
        if pivot_mag < epsilon:
            logger.debug(f"Pivot {pivot_mag:.3e} in column {col} of {n} is below {epsilon:.1e}.")
            raise SingularMatrixError(
                details=f"The {n}x{n} system has no unique solution (pivot magnitude {pivot_mag:.3e} below {epsilon:.1e})."
            )
        if pivot_row != col:
            m[[col, pivot_row]] = m[[pivot_row, col]]
            rhs[[col, pivot_row]] = rhs[[pivot_row, col]]
        factors = m[col + 1:, col] / m[col, col]
        m[col + 1:, col:] -= np.outer(factors, m[col, col:])
        rhs[col + 1:] -= factors * rhs[col]

    x = np.zeros(n, dtype=dtype)
    for row in range(n - 1, -1, -1):
        x[row] = (rhs[row] - m[row, row + 1:] @ x[row + 1:]) / m[row, row]
    return x


def solve(A, b, epsilon: float = SINGULAR_PIVOT_EPSILON) -> np.ndarray:
    """Circuit-agnostic entry point; see `gaussian_elimination`."""
    return gaussian_elimination(A, b, epsilon)


def factorize(A, epsilon: float = SINGULAR_PIVOT_EPSILON) -> LuFactors:
    """
    LU-factorizes A with partial pivoting for repeated solves against the same
    matrix. The pivots are the diagonal of U, so the singularity test matches
    `gaussian_elimination`.

    Raises:
        SingularMatrixError: If a pivot falls below `epsilon`.
    """
    A = np.asarray(A)
    if A.ndim != 2 or A.shape[0] != A.shape[1]:
        raise ValueError(f"Coefficient matrix must be square, got shape {A.shape}.")
    if A.shape[0] == 0:
        return A.copy(), np.zeros(0, dtype=np.int32)
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", scipy.linalg.LinAlgWarning)
        lu, piv = scipy.linalg.lu_factor(A, check_finite=True)
    smallest_pivot = float(np.min(np.abs(np.diag(lu))))
    if not np.isfinite(smallest_pivot) or smallest_pivot < epsilon:
        raise SingularMatrixError(
            details=f"The {A.shape[0]}x{A.shape[0]} system has no unique solution (pivot magnitude {smallest_pivot:.3e} below {epsilon:.1e})."
        )
    return lu, piv


def solve_factorized(factors: LuFactors, b) -> np.ndarray:
    """Solves against a factorization from `factorize`."""
    lu, piv = factors
    b = np.asarray(b)
    if lu.shape[0] == 0:
        return np.zeros(0, dtype=np.result_type(lu, b, np.float64))
    x = scipy.linalg.lu_solve((lu, piv), b, check_finite=False)
    if not np.all(np.isfinite(x)):
        raise SingularMatrixError(details="Solving the factorized system produced NaN/Inf values.")
    return x
