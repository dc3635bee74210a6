# src/circuitsim_core/units.py
import logging
from numbers import Real
from typing import Union

import pint

logger = logging.getLogger(__name__)
ureg = pint.UnitRegistry()
Quantity = ureg.Quantity
logger.debug("Pint Unit Registry initialized.")


def to_magnitude(value: Union[Real, str, Quantity], unit: str) -> float:
    """
    Converts a plain number, a unit string ("1 kohm", "100 uF") or a Quantity
    into a float expressed in `unit`.

    Plain numbers are taken to already be in `unit`. Strings without units
    (e.g. "470") are treated the same way.

    Raises:
        pint.DimensionalityError: If the value's dimension does not match `unit`.
        pint.UndefinedUnitError: If the string names an unknown unit.
        ValueError: If the value cannot be interpreted as a quantity.
    """
    if isinstance(value, bool):
        raise ValueError(f"Boolean '{value}' is not a valid {unit} quantity.")
    if isinstance(value, Real):
        return float(value)
    quantity = value if isinstance(value, Quantity) else ureg.Quantity(value)
    if quantity.dimensionless and not isinstance(value, Quantity):
        return float(quantity.magnitude)
    return float(quantity.to(unit).magnitude)
