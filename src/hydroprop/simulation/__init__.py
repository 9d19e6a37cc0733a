"""Simulation wiring: shared state, typed configuration and the tick loop."""
