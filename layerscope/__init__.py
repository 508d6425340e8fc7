"""Layerscope: explore composition trees through linked outline, radial and exploded 3D views."""

__version__ = "0.1.0"
