# src/circuitsim_core/simulation/config.py
import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

import numpy as np
import pint

from ..constants import (
    DEFAULT_DC_TIME_STEP,
    DEFAULT_DIODE_OFF_RESISTANCE,
    DEFAULT_DIODE_ON_RESISTANCE,
    DEFAULT_MAX_DIODE_ITERATIONS,
    DEFAULT_SAMPLES_PER_CYCLE,
    SINGULAR_PIVOT_EPSILON,
)
from ..units import to_magnitude
from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class ConfigParsingError(ValueError):
    """Custom exception for errors while parsing raw analysis configuration."""
    pass


@dataclass(frozen=True)
class AnalysisOptions:
    """
    Tunables shared by every analysis.

    `max_diode_iterations` caps the DC re-solves of the diode ON/OFF heuristic.
    `diode_on_resistance` is the series resistance of a conducting diode.
    `diode_off_resistance` is the leakage resistance of a blocking one.
    `gmin` adds a conductance from every node to ground; 0 disables it.
    """
    max_diode_iterations: int = DEFAULT_MAX_DIODE_ITERATIONS
    diode_on_resistance: float = DEFAULT_DIODE_ON_RESISTANCE
    diode_off_resistance: float = DEFAULT_DIODE_OFF_RESISTANCE
    singular_epsilon: float = SINGULAR_PIVOT_EPSILON
    gmin: float = 0.0

    def validate(self) -> None:
        if not isinstance(self.max_diode_iterations, int) or self.max_diode_iterations < 1:
            raise ConfigurationError(
                details="max_diode_iterations must be a positive integer.",
                user_input=self.max_diode_iterations,
            )
        if not math.isfinite(self.diode_on_resistance) or self.diode_on_resistance < 0.0:
            raise ConfigurationError(
                details="diode_on_resistance must be a finite, non-negative resistance.",
                user_input=self.diode_on_resistance,
            )
        if not math.isfinite(self.diode_off_resistance) or self.diode_off_resistance <= 0.0:
            raise ConfigurationError(
                details="diode_off_resistance must be a finite, positive resistance.",
                user_input=self.diode_off_resistance,
            )
        if not math.isfinite(self.singular_epsilon) or self.singular_epsilon <= 0.0:
            raise ConfigurationError(
                details="singular_epsilon must be a positive, finite number.",
                user_input=self.singular_epsilon,
            )
        if not math.isfinite(self.gmin) or self.gmin < 0.0:
            raise ConfigurationError(details="gmin must be a finite, non-negative conductance.", user_input=self.gmin)


@dataclass(frozen=True)
class TransientOptions:
    """
    Options of a transient run. With `time_step` left as None the step is derived
    at initialization: one period of the fastest AC source divided by
    `samples_per_cycle`, or `dc_time_step` when no AC source is present.
    """
    time_step: Optional[float] = None
    samples_per_cycle: int = DEFAULT_SAMPLES_PER_CYCLE
    dc_time_step: float = DEFAULT_DC_TIME_STEP
    analysis: AnalysisOptions = field(default_factory=AnalysisOptions)

    def validate(self) -> None:
        self.analysis.validate()
        if not isinstance(self.samples_per_cycle, int) or self.samples_per_cycle < 1:
            raise ConfigurationError(
                details="samples_per_cycle must be a positive integer.",
                user_input=self.samples_per_cycle,
            )
        if self.time_step is not None:
            validate_time_step(self.time_step)
        validate_time_step(self.dc_time_step)


def validate_time_step(dt: float) -> float:
    """Returns `dt` if it is a positive, finite number of seconds."""
    try:
        dt_value = float(dt)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(details=f"Time step '{dt}' is not a number.", user_input=dt) from e
    if not math.isfinite(dt_value) or dt_value <= 0.0:
        raise ConfigurationError(details=f"Time step must be positive and finite, got {dt_value}.", user_input=dt)
    return dt_value


def _quantity(raw: Mapping[str, Any], key: str, unit: str, default: float) -> float:
    if key not in raw or raw[key] is None:
        return default
    return to_magnitude(raw[key], unit)


def parse_analysis_options(raw: Optional[Mapping[str, Any]]) -> AnalysisOptions:
    """
    Builds `AnalysisOptions` from a raw mapping. Quantities may be numbers in SI
    base units or unit strings, e.g. {"diode_on_resistance": "100 mohm"}.
    """
    if not raw:
        return AnalysisOptions()
    try:
        return AnalysisOptions(
            max_diode_iterations=int(raw.get('max_diode_iterations', DEFAULT_MAX_DIODE_ITERATIONS)),
            diode_on_resistance=_quantity(raw, 'diode_on_resistance', 'ohm', DEFAULT_DIODE_ON_RESISTANCE),
            diode_off_resistance=_quantity(raw, 'diode_off_resistance', 'ohm', DEFAULT_DIODE_OFF_RESISTANCE),
            singular_epsilon=float(raw.get('singular_epsilon', SINGULAR_PIVOT_EPSILON)),
            gmin=_quantity(raw, 'gmin', 'S', 0.0),
        )
    except (TypeError, ValueError, pint.DimensionalityError, pint.UndefinedUnitError) as e:
        raise ConfigParsingError(f"Failed to parse analysis options: {e}") from e


def parse_transient_options(raw: Optional[Mapping[str, Any]]) -> TransientOptions:
    """
    Builds `TransientOptions` from a raw mapping, e.g.
    {"time_step": "50 us", "analysis": {"max_diode_iterations": 10}}.
    """
    if not raw:
        return TransientOptions()
    try:
        time_step = raw.get('time_step')
        return TransientOptions(
            time_step=to_magnitude(time_step, 's') if time_step is not None else None,
            samples_per_cycle=int(raw.get('samples_per_cycle', DEFAULT_SAMPLES_PER_CYCLE)),
            dc_time_step=_quantity(raw, 'dc_time_step', 's', DEFAULT_DC_TIME_STEP),
            analysis=parse_analysis_options(raw.get('analysis')),
        )
    except (TypeError, ValueError, pint.DimensionalityError, pint.UndefinedUnitError) as e:
        raise ConfigParsingError(f"Failed to parse transient options: {e}") from e


DEFAULT_SWEEP_CONFIG: Dict[str, Any] = {
    'type': 'decade', 'start': '1 Hz', 'stop': '1 MHz', 'points_per_decade': 10,
}


def parse_sweep_config(raw_sweep_config: Optional[Dict[str, Any]]) -> np.ndarray:
    """
    Parses a raw sweep configuration dictionary into a NumPy frequency array (Hz).

    Supported types: 'linear' and 'log' (start, stop, num_points), 'decade'
    (start, stop, points_per_decade; the stop frequency is included only when it
    falls on the grid) and 'list' (points).
    """
    if not raw_sweep_config:
        raise ConfigParsingError("Sweep configuration is missing or empty.")
    try:
        sweep_type = raw_sweep_config['type']
        freq_values_hz = np.array([], dtype=float)

        if sweep_type in ['linear', 'log', 'decade']:
            start_hz = to_magnitude(raw_sweep_config['start'], 'Hz')
            stop_hz = to_magnitude(raw_sweep_config['stop'], 'Hz')
            if stop_hz < start_hz: raise ValueError("Stop frequency cannot be less than start frequency.")

            if sweep_type == 'linear':
                num_points = int(raw_sweep_config['num_points'])
                if start_hz < 0: raise ValueError("Linear sweep start frequency must be >= 0.")
                freq_values_hz = np.linspace(start_hz, stop_hz, num_points, dtype=float)
            elif sweep_type == 'log':
                num_points = int(raw_sweep_config['num_points'])
                if start_hz <= 0 or stop_hz <= 0: raise ValueError("Log sweep frequencies must be > 0.")
                freq_values_hz = np.geomspace(start_hz, stop_hz, num_points, dtype=float)
            else:  # decade
                points_per_decade = int(raw_sweep_config.get('points_per_decade', 10))
                if start_hz <= 0: raise ValueError("Decade sweep frequencies must be > 0.")
                if points_per_decade < 1: raise ValueError("points_per_decade must be >= 1.")
                total = math.ceil(math.log10(stop_hz / start_hz) * points_per_decade)
                grid = start_hz * 10.0 ** (np.arange(total + 1) / points_per_decade)
                freq_values_hz = grid[grid <= stop_hz * (1 + 1e-12)]

        elif sweep_type == 'list':
            points = [to_magnitude(p, 'Hz') for p in raw_sweep_config['points']]
            if any(f < 0 for f in points): raise ValueError("Frequencies in list must be non-negative.")
            freq_values_hz = np.array(sorted(set(points)), dtype=float)

        else:
            raise ValueError(f"Unknown sweep type '{sweep_type}'.")

        return freq_values_hz
    except (KeyError, ValueError, pint.DimensionalityError, pint.UndefinedUnitError) as e:
        raise ConfigParsingError(f"Failed to parse sweep configuration: {e}") from e
