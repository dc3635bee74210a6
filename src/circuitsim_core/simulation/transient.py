# src/circuitsim_core/simulation/transient.py
"""
Incremental (streaming) transient analysis.

Capacitors and inductors use backward-Euler companion models; diodes and LEDs
keep the two-state model of the DC analysis, but their states are re-evaluated
once per step from that step's solution instead of iterating inside the step.

The solver is pull-driven: the host's animation clock calls `step_batch(n)` and
receives exactly `n` samples. There are no threads or timers inside the engine.
Any change to the netlist or its values requires a fresh `initialize()`.
"""
import logging
import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from ..components.base_enums import ComponentKind, StampBehavior
from ..components.elements import ac_params
from ..components.exceptions import ComponentError
from ..constants import DEFAULT_DC_TRANSIENT_END_TIME, DEFAULT_TRANSIENT_PERIODS
from ..data_structures import Component, Wire
from ..errors import Diagnosable
from ..topology.builder import TopologyResult
from .config import TransientOptions, validate_time_step
from .exceptions import ConfigurationError, SingularMatrixError
from .linear_solver import LuFactors, factorize, solve_factorized
from .mna import MnaAssembler
from .preflight import build_checked_topology
from .results import InitResult, StreamingBatch, StreamingSample, TransientResult
from .state import TransientState

logger = logging.getLogger(__name__)

ANALYSIS_NAME = "transient"


def max_source_frequency(components: Sequence[Component]) -> float:
    """Highest AC source frequency in Hz, or 0.0 when there is no AC source."""
    highest = 0.0
    for comp in components:
        if comp.kind is not ComponentKind.AC_SOURCE:
            continue
        frequency = ac_params(comp).frequency
        if not math.isfinite(frequency) or frequency < 0.0:
            raise ComponentError(comp.id, f"AC frequency must be finite and non-negative, got {frequency}.",
                                 analysis=ANALYSIS_NAME)
        highest = max(highest, float(frequency))
    return highest


def derive_time_step(options: TransientOptions, max_frequency: float) -> float:
    """
    Explicit `options.time_step` if given; otherwise one period of the fastest
    AC source split into `samples_per_cycle` steps; otherwise `dc_time_step`.
    """
    if options.time_step is not None:
        return validate_time_step(options.time_step)
    if max_frequency > 0.0:
        return validate_time_step(1.0 / max_frequency / options.samples_per_cycle)
    return validate_time_step(options.dc_time_step)


@dataclass
class _Session:
    """Everything bound to one `initialize()` call."""
    topology: TopologyResult
    assembler: MnaAssembler
    options: TransientOptions
    time_step: float
    max_frequency: float
    state: TransientState
    factor_cache: Dict[Tuple[Tuple[str, bool], ...], LuFactors] = field(default_factory=dict)


class StreamingTransientSolver:
    """
    One solver instance serves one simulation session.

    Lifecycle: `initialize()` builds topology, stamps and the time step;
    `step_batch()` advances; `reset()` returns to t = 0 with zero history on the
    same topology; `dispose()` drops everything. Stepping before `initialize()`
    or after `dispose()` is reported as a configuration error.
    """

    def __init__(self):
        self._session: Optional[_Session] = None
        self._disposed = False

    # --- Lifecycle ---

    def initialize(self, components: Sequence[Component], wires: Sequence[Wire],
                   options: Optional[TransientOptions] = None) -> InitResult:
        self._session = None
        self._disposed = False
        options = options or TransientOptions()
        logger.info(f"Initializing transient solver for {len(components)} component(s), {len(wires)} wire(s).")
        try:
            options.validate()
            topology, warnings = build_checked_topology(components, wires, ANALYSIS_NAME)
            assembler = MnaAssembler(topology, components, options.analysis, transient=True)
            max_frequency = max_source_frequency(components)
            time_step = derive_time_step(options, max_frequency)
            state = TransientState.fresh(
                capacitor_ids=[s.component_id for s in assembler.stamps_of(StampBehavior.CAPACITOR)],
                inductor_ids=[s.component_id for s in assembler.stamps_of(StampBehavior.INDUCTOR)],
                diode_ids=[s.component_id for s in assembler.stamps_of(StampBehavior.DIODE)],
            )
        except Exception as e:
            self._log_failure("initialization", e)
            return InitResult.failure(e)

        self._session = _Session(
            topology=topology,
            assembler=assembler,
            options=options,
            time_step=time_step,
            max_frequency=max_frequency,
            state=state,
        )
        logger.info(f"Transient solver ready: dt={time_step:.4e} s, max AC frequency={max_frequency:.4g} Hz.")
        return InitResult(success=True, max_frequency=max_frequency, time_step=time_step, warnings=warnings)

    def reset(self) -> None:
        """Back to t = 0 with discharged capacitors, no inductor current and every diode OFF."""
        if self._session is None:
            logger.debug("reset() called on an uninitialized transient solver; nothing to do.")
            return
        self._session.state.reset()
        self._session.factor_cache.clear()
        logger.debug("Transient solver reset to t = 0.")

    def dispose(self) -> None:
        """Drops topology, matrices and history. The solver must be re-initialized before reuse."""
        self._session = None
        self._disposed = True
        logger.debug("Transient solver disposed.")

    def stop(self) -> None:
        self.dispose()

    @property
    def is_initialized(self) -> bool:
        return self._session is not None

    @property
    def state(self) -> Optional[TransientState]:
        return self._session.state if self._session is not None else None

    def get_current_time(self) -> float:
        return self._session.state.time if self._session is not None else 0.0

    def get_time_step(self) -> Optional[float]:
        return self._session.time_step if self._session is not None else None

    # --- Stepping ---

    def step_batch(self, n: int) -> StreamingBatch:
        """
        Advances exactly `n` internal steps and returns one sample per step.

        If a step fails, the batch carries the samples committed before it and
        the error; the failed step leaves the history untouched.
        """
        samples: List[StreamingSample] = []
        try:
            session = self._require_session()
            if isinstance(n, bool) or not isinstance(n, (int, np.integer)) or n < 0:
                raise ConfigurationError(details="step_batch() needs a non-negative integer step count.", user_input=n)
            for _ in range(int(n)):
                samples.append(self._step(session))
        except Exception as e:
            self._log_failure("stepping", e)
            return StreamingBatch.failure(e, samples)
        return StreamingBatch(samples=tuple(samples))

    def _require_session(self) -> _Session:
        if self._session is not None:
            return self._session
        if self._disposed:
            raise ConfigurationError(details="The transient solver was disposed; call initialize() to start a new session.")
        raise ConfigurationError(details="The transient solver is not initialized; call initialize() first.")

    def _step(self, session: _Session) -> StreamingSample:
        state = session.state
        assembler = session.assembler
        dt = session.time_step
        t_next = (state.step_count + 1) * dt

        A, b, _ = assembler.assemble(time_step=dt, time=t_next, state=state)
        # Only diode states change the matrix; sources and history only touch b.
        cache_key = tuple(sorted(state.diode_states.items()))
        factors = session.factor_cache.get(cache_key)
        try:
            if factors is None:
                factors = factorize(A, session.options.analysis.singular_epsilon)
                session.factor_cache[cache_key] = factors
            x = solve_factorized(factors, b)
        except SingularMatrixError as e:
            e.analysis = ANALYSIS_NAME
            e.time = t_next
            raise

        branch_currents = assembler.branch_currents(x, time_step=dt, state=state)
        node_voltages = session.topology.node_voltages_from_solution(x)
        next_diodes = assembler.next_diode_states(x, state.diode_states)

        # Commit the step.
        for stamp in assembler.stamps_of(StampBehavior.CAPACITOR):
            state.capacitor_voltages[stamp.component_id] = assembler.branch_voltage(x, stamp)
        for stamp in assembler.stamps_of(StampBehavior.INDUCTOR):
            state.inductor_currents[stamp.component_id] = float(x[stamp.aux_index])
        state.diode_states.update(next_diodes)
        state.step_count += 1
        state.time = t_next

        return StreamingSample(time=t_next, branch_currents=branch_currents, node_voltages=node_voltages)

    @staticmethod
    def _log_failure(phase: str, exc: Exception) -> None:
        if isinstance(exc, Diagnosable):
            logger.error(f"Transient {phase} failed: {exc}")
        else:
            logger.critical(f"Unexpected error during transient {phase}: {exc}", exc_info=True)


def default_end_time(max_frequency: float) -> float:
    if max_frequency > 0.0:
        return DEFAULT_TRANSIENT_PERIODS / max_frequency
    return DEFAULT_DC_TRANSIENT_END_TIME


def run_transient(components: Sequence[Component], wires: Sequence[Wire],
                  end_time: Optional[float] = None,
                  options: Optional[TransientOptions] = None) -> TransientResult:
    """
    Runs a complete transient analysis from t = 0 to `end_time` (default: three
    periods of the fastest AC source) and collects the histories. Built on
    `StreamingTransientSolver`; the first recorded point is the first step.
    """
    solver = StreamingTransientSolver()
    init = solver.initialize(components, wires, options)
    if not init.success:
        return TransientResult(
            success=False, error=init.error, error_kind=init.error_kind,
            diagnostic_report=init.diagnostic_report,
        )
    dt = solver.get_time_step()
    if end_time is None:
        end_time = default_end_time(init.max_frequency)
    if not isinstance(end_time, (int, float)) or not math.isfinite(end_time) or end_time <= 0.0:
        solver.dispose()
        error = ConfigurationError(details=f"End time must be positive and finite, got {end_time}.", user_input=end_time)
        return TransientResult.failure(error, time_step=dt, max_frequency=init.max_frequency)

    n_steps = max(1, math.ceil(end_time / dt - 1e-9))
    logger.info(f"Running transient analysis to t={end_time:.4e} s in {n_steps} step(s).")
    batch = solver.step_batch(n_steps)
    solver.dispose()

    time_points = np.array([s.time for s in batch], dtype=float)
    node_ids = list(batch[0].node_voltages) if len(batch) else []
    comp_ids = list(batch[0].branch_currents) if len(batch) else []
    node_history = {nid: np.array([s.node_voltages[nid] for s in batch]) for nid in node_ids}
    current_history = {cid: np.array([s.branch_currents[cid] for s in batch]) for cid in comp_ids}

    if not batch.success:
        return TransientResult(
            success=False, time_points=time_points, node_voltages=node_history,
            branch_currents=current_history, time_step=dt, max_frequency=init.max_frequency,
            error=batch.error, error_kind=batch.error_kind, diagnostic_report=batch.diagnostic_report,
        )
    return TransientResult(
        success=True, time_points=time_points, node_voltages=node_history,
        branch_currents=current_history, time_step=dt, max_frequency=init.max_frequency,
    )
