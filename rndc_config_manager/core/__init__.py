"""
Core rndc configuration functionality.

This package contains the data model, credentials selection and zone
change management.
"""

from .conf_types import ConfigDocument, KeyBlock, OptionsBlock, ServerAddress, ServerBlock
from .zone_config import ZoneConfig, ZoneType
from .zone_manager import ZoneManager

__all__ = [
    "ConfigDocument",
    "KeyBlock",
    "OptionsBlock",
    "ServerAddress",
    "ServerBlock",
    "ZoneConfig",
    "ZoneType",
    "ZoneManager",
]
