"""Propeller geometry and open-water coefficient curves."""

from hydroprop.propeller.coefficients import CoefficientCurve, CoefficientTable, InterpolationMode
from hydroprop.propeller.geometry import PropellerGeometry

__all__ = ["CoefficientCurve", "CoefficientTable", "InterpolationMode", "PropellerGeometry"]
