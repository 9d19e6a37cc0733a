"""HydroProp - real-time marine propeller hydrodynamics surrogate."""

__version__ = "0.1.0"
