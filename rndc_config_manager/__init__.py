"""
RNDC Config Manager - rndc configuration and zone configuration tooling

Parses rndc.conf files with their includes, selects rndc credentials, and
turns `rndc showzone` output into a typed zone configuration that can be
changed and sent back with `rndc modzone`.
"""

__version__ = "1.0.0"
__author__ = "RNDC Config Manager Team"
__description__ = "rndc.conf and showzone parsing for BIND zone management"

from .core.conf_types import ConfigDocument
from .core.credentials import RndcCredentials, load_credentials
from .core.errors import ParseError
from .core.zone_config import ZoneConfig
from .core.zone_manager import ZoneManager
from .parsers.conf_parser import parse_document, resolve_includes
from .parsers.zone_parser import parse_zone_block

__all__ = [
    "ConfigDocument",
    "RndcCredentials",
    "load_credentials",
    "ParseError",
    "ZoneConfig",
    "ZoneManager",
    "parse_document",
    "resolve_includes",
    "parse_zone_block",
]
