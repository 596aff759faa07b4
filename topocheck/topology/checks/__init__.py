"""Topology check functions, one per rule."""

from . import single_layer, two_layer

__all__ = [
    "single_layer",
    "two_layer",
]
