"""Propeller hydrodynamics engine."""

from hydroprop.physics.hydrodynamics import (
    EngineSettings,
    FrameEvent,
    FrameFlag,
    FrameResult,
    HydrodynamicsEngine,
)

__all__ = ["EngineSettings", "FrameEvent", "FrameFlag", "FrameResult", "HydrodynamicsEngine"]
