"""
Unit Registry for Mesh Metrics.

This module provides a centralized unit system using the `pint` library so
that lengths and areas reported by the mesh (side lengths, cell areas,
sampling steps) carry their units explicitly. Internal computations use bare
floats in SI units; quantities appear at the edges where callers configure
queries or read summaries.

Example Usage
-------------
>>> from common.units import Q_
>>> step = Q_(2.5, 'km')
>>> to_si_magnitude(step, 'm')
2500.0
"""

from typing import Union
import warnings

import pint
from pint import UnitRegistry as PintUnitRegistry

# Create the global unit registry
ureg = PintUnitRegistry()

# Convenience alias for creating quantities
Q_ = ureg.Quantity


def ensure_quantity(
    value: Union[float, pint.Quantity],
    default_unit: str,
    warn: bool = True
) -> pint.Quantity:
    """Ensure a value is a pint Quantity, applying default unit if necessary.

    Parameters
    ----------
    value : float or pint.Quantity
        The value to convert.
    default_unit : str
        The unit to apply if value is a bare number.
    warn : bool
        Whether to warn when a bare number is given.

    Returns
    -------
    pint.Quantity
        The value with units.

    Raises
    ------
    ValueError
        If a quantity's units are incompatible with ``default_unit``.
    """
    if isinstance(value, pint.Quantity):
        try:
            value.to(default_unit)
        except pint.DimensionalityError as e:
            raise ValueError(
                f"Incompatible units: expected {default_unit}, got {value.units}"
            ) from e
        return value

    if warn:
        warnings.warn(
            f"Bare number {value} provided without units. "
            f"Assuming {default_unit}. Consider using explicit units.",
            UserWarning,
            stacklevel=2
        )
    return ureg.Quantity(value, default_unit)


def to_si_magnitude(value: Union[float, pint.Quantity], unit: str) -> float:
    """Return the magnitude of ``value`` in ``unit``; bare numbers pass through."""
    return float(ensure_quantity(value, unit, warn=False).to(unit).magnitude)
