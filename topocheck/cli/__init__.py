"""Command-line interface tools."""

from .validate import load_layer_file, run_validation

__all__ = [
    "load_layer_file",
    "run_validation",
]
