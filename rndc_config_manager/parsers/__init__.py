"""
Parsers for rndc.conf files and rndc showzone output.
"""

from .conf_parser import parse_document, resolve_includes
from .zone_parser import parse_showzone, parse_zone_block

__all__ = ["parse_document", "resolve_includes", "parse_showzone", "parse_zone_block"]
