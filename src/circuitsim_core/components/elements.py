# src/circuitsim_core/components/elements.py
"""
Per-kind value rules: defaults, validation, the LED forward-voltage lookup and the
mapping from a component to the way it enters the MNA system.
"""
from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING, Optional

from ..constants import (
    AMMETER_RESISTANCE,
    DEFAULT_COMPONENT_VALUES,
    DEFAULT_LED_FORWARD_VOLTAGE,
    LED_FORWARD_VOLTAGE_BY_COLOR,
    SWITCH_CLOSED_RESISTANCE,
)
from .base_enums import ComponentKind, StampBehavior
from .exceptions import ComponentError

logger = logging.getLogger(__name__)

# data_structures imports this package for its enums, so the import is type-only.
if TYPE_CHECKING:
    from ..data_structures import AcSourceParams, Component

_POSITIVE_VALUE_KINDS = {
    ComponentKind.RESISTOR: "Resistance",
    ComponentKind.CAPACITOR: "Capacitance",
    ComponentKind.INDUCTOR: "Inductance",
}


def _finite_number(component: Component, raw, label: str) -> float:
    try:
        value = float(raw)
    except (TypeError, ValueError) as e:
        raise ComponentError(component.id, f"{label} '{raw}' is not a number.") from e
    if not math.isfinite(value):
        raise ComponentError(component.id, f"{label} must be finite, got {value}.")
    return value


def resolve_value(component: Component) -> float:
    """
    Returns the component's numeric value, falling back to the per-kind default.

    Raises:
        ComponentError: If the value is not finite, or is non-positive for a
            resistor, capacitor or inductor, or negative for a diode drop.
    """
    value = component.value
    if value is None:
        value = DEFAULT_COMPONENT_VALUES.get(component.kind.value, 0.0)
    value = _finite_number(component, value, "Value")
    if component.kind in _POSITIVE_VALUE_KINDS and value <= 0.0:
        raise ComponentError(
            component.id,
            f"{_POSITIVE_VALUE_KINDS[component.kind]} must be positive, got {value}."
        )
    if component.kind.is_diode_like and value < 0.0:
        raise ComponentError(component.id, f"Forward voltage cannot be negative, got {value}.")
    return value


def led_forward_voltage(component: Component) -> float:
    """
    Forward voltage of an LED. Precedence: explicit override, then the colour
    table, then the component value, then the generic LED default.
    """
    params = component.led
    if params is not None:
        if params.forward_voltage_override is not None:
            override = _finite_number(component, params.forward_voltage_override, "Forward voltage override")
            if override < 0.0:
                raise ComponentError(component.id, f"Forward voltage override cannot be negative, got {override}.")
            return override
        if params.color:
            color_vf = LED_FORWARD_VOLTAGE_BY_COLOR.get(params.color.lower())
            if color_vf is not None:
                return color_vf
            logger.debug(f"LED '{component.id}' has unknown colour '{params.color}', using its value.")
    if component.value is not None:
        return resolve_value(component)
    return DEFAULT_LED_FORWARD_VOLTAGE


def forward_voltage(component: Component) -> float:
    """Forward drop of a diode or LED in its ON state."""
    if component.kind is ComponentKind.LED:
        return led_forward_voltage(component)
    return resolve_value(component)


def ac_params(component: Component) -> AcSourceParams:
    return component.ac_params


def source_dc_value(component: Component) -> float:
    """
    Voltage an independent source holds at the DC operating point: the value of a
    DC source, or the offset of an AC source.
    """
    if component.kind is ComponentKind.AC_SOURCE:
        return ac_params(component).offset
    return resolve_value(component)


def series_resistance(component: Component) -> Optional[float]:
    """Resistance of a conducting element, or None if it is not one."""
    if component.kind is ComponentKind.RESISTOR:
        return resolve_value(component)
    if component.kind is ComponentKind.SWITCH:
        return SWITCH_CLOSED_RESISTANCE if component.is_switch_closed else None
    if component.kind is ComponentKind.AMMETER:
        return AMMETER_RESISTANCE
    return None


def stamp_behavior(component: Component, transient: bool = False) -> StampBehavior:
    """Classifies how `component` is stamped in a DC (default) or transient system."""
    kind = component.kind
    if not kind.is_analog:
        return StampBehavior.NONE
    if kind is ComponentKind.RESISTOR or kind is ComponentKind.AMMETER:
        return StampBehavior.CONDUCTANCE
    if kind is ComponentKind.SWITCH:
        return StampBehavior.CONDUCTANCE if component.is_switch_closed else StampBehavior.LEAK
    if kind is ComponentKind.VOLTMETER:
        return StampBehavior.LEAK
    if kind is ComponentKind.CAPACITOR:
        return StampBehavior.CAPACITOR if transient else StampBehavior.OPEN
    if kind is ComponentKind.INDUCTOR:
        return StampBehavior.INDUCTOR
    if kind.is_source:
        return StampBehavior.VOLTAGE_SOURCE
    if kind.is_diode_like:
        return StampBehavior.DIODE
    raise ComponentError(component.id, f"No stamping rule for component kind '{kind}'.")


def needs_auxiliary_current(behavior: StampBehavior) -> bool:
    return behavior in (StampBehavior.VOLTAGE_SOURCE, StampBehavior.INDUCTOR, StampBehavior.DIODE)


def check_two_terminal(component: Component) -> None:
    """Stamped elements need two distinct ports."""
    if len(component.ports) < 2:
        raise ComponentError(
            component.id,
            f"'{component.kind}' needs two ports but has {len(component.ports)}."
        )
