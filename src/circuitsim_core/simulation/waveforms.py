# src/circuitsim_core/simulation/waveforms.py
import logging
import math

import numpy as np

from ..components.base_enums import WaveformShape
from ..components.elements import ac_params, resolve_value
from ..data_structures import Component

logger = logging.getLogger(__name__)

_TWO_PI = 2.0 * math.pi


def generate_waveform(t, amplitude: float, frequency: float, phase: float,
                      shape: WaveformShape = WaveformShape.SINE):
    """
    Instantaneous value of a periodic waveform with peak `amplitude`.

    All shapes swing between -amplitude and +amplitude. `t` may be a scalar or a
    NumPy array. Phase is in radians.
    """
    theta = _TWO_PI * frequency * np.asarray(t, dtype=float) + phase
    if shape is WaveformShape.SINE:
        value = amplitude * np.sin(theta)
    else:
        wrapped = np.mod(theta, _TWO_PI)
        if shape is WaveformShape.SQUARE:
            value = np.where(wrapped < math.pi, amplitude, -amplitude)
        elif shape is WaveformShape.TRIANGLE:
            value = np.where(
                wrapped < math.pi,
                amplitude * (2.0 * wrapped / math.pi - 1.0),
                amplitude * (3.0 - 2.0 * wrapped / math.pi),
            )
        elif shape is WaveformShape.SAWTOOTH:
            value = amplitude * (wrapped / math.pi - 1.0)
        else:
            raise ValueError(f"Unsupported waveform shape '{shape}'.")
    return float(value) if np.ndim(value) == 0 else value


def source_voltage_at(component: Component, t: float) -> float:
    """Terminal voltage of an AC source at time t: offset plus the waveform."""
    params = ac_params(component)
    amplitude = resolve_value(component)
    return params.offset + generate_waveform(t, amplitude, params.frequency, params.phase, params.waveform)
