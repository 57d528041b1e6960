"""Dynamics, thrust conversion, fin, buoyancy, hydrodynamic, tether and frame-transform models for underwater vehicle simulation."""

__version__ = "0.1.0"