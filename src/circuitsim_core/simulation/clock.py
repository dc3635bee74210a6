# src/circuitsim_core/simulation/clock.py
"""
Helpers for hosts that drive `StreamingTransientSolver` from an animation clock.

The engine owns no timers; the host measures frame time and asks how many
internal steps to advance. Simulated time runs `time_scale` times slower (or
faster) than wall-clock time.
"""
import logging
import math

from ..constants import DEFAULT_DISPLAY_WINDOW_SECONDS, DEFAULT_TARGET_CYCLES, MAX_STEPS_PER_FRAME
from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)


def auto_time_scale(frequency: float,
                    window_seconds: float = DEFAULT_DISPLAY_WINDOW_SECONDS,
                    target_cycles: float = DEFAULT_TARGET_CYCLES) -> float:
    """
    Simulated seconds per wall-clock second such that `target_cycles` periods
    of a `frequency` Hz source span `window_seconds` of display time. Returns
    1.0 (real time) when there is no periodic source.
    """
    if frequency <= 0.0 or not math.isfinite(frequency):
        return 1.0
    if window_seconds <= 0.0:
        raise ConfigurationError(details="The display window must be positive.", user_input=window_seconds)
    return target_cycles / frequency / window_seconds


def steps_for_frame(frame_seconds: float, time_scale: float, time_step: float,
                    max_steps_per_frame: int = MAX_STEPS_PER_FRAME) -> int:
    """
    Number of internal steps that cover `frame_seconds` of wall-clock time.
    At least one step per frame and at most `max_steps_per_frame`, which bounds
    per-frame latency when the host stalls.
    """
    if time_step <= 0.0 or not math.isfinite(time_step):
        raise ConfigurationError(details=f"Time step must be positive and finite, got {time_step}.", user_input=time_step)
    if max_steps_per_frame < 1:
        raise ConfigurationError(details="max_steps_per_frame must be at least 1.", user_input=max_steps_per_frame)
    wanted = math.ceil(max(frame_seconds, 0.0) * time_scale / time_step)
    return min(max(1, wanted), max_steps_per_frame)
