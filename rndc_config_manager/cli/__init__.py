"""
Command-line interface components.

This package contains the rndc-config entry point.
"""

from .main import main

__all__ = ["main"]
