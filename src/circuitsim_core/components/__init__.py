# src/circuitsim_core/components/__init__.py
from .base_enums import ComponentKind, StampBehavior, WaveformShape
from .exceptions import ComponentError
from .elements import (
    ac_params,
    check_two_terminal,
    forward_voltage,
    led_forward_voltage,
    needs_auxiliary_current,
    resolve_value,
    series_resistance,
    source_dc_value,
    stamp_behavior,
)

__all__ = [
    # Enums
    "ComponentKind", "StampBehavior", "WaveformShape",
    # Errors
    "ComponentError",
    # Value rules
    "ac_params", "check_two_terminal", "forward_voltage", "led_forward_voltage",
    "needs_auxiliary_current", "resolve_value", "series_resistance",
    "source_dc_value", "stamp_behavior",
]
