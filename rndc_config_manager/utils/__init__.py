"""
Utility functions and helpers.

This package contains the shared lexer and input validation.
"""

from .validators import parse_ip_addresses, validate_ip_address, validate_zone_name

__all__ = ["parse_ip_addresses", "validate_ip_address", "validate_zone_name"]
