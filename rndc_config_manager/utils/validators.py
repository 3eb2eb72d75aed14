"""
Validators - Input validation for zone changes

This module provides validation functions for IP addresses and zone names
supplied on the command line before they are put into a zone configuration.
"""

import ipaddress
import logging
import re
from typing import Iterable, Tuple, Union

from ..core.errors import InvalidIpAddressError
from .lexer import IPAddress

logger = logging.getLogger(__name__)


def validate_ip_address(value: str) -> bool:
    """
    Validate an IPv4 or IPv6 address.

    Args:
        value: The address to validate

    Returns:
        True if valid, False otherwise
    """
    if not value or not isinstance(value, str):
        return False

    try:
        ipaddress.ip_address(value.strip())
        return True
    except ValueError:
        logger.warning(f"Invalid IP address: {value}")
        return False


def parse_ip_addresses(values: Iterable[Union[str, IPAddress]]) -> Tuple[IPAddress, ...]:
    """
    Convert a list of address strings into IP address objects.

    Raises:
        InvalidIpAddressError: for the first value that is not an address
    """
    addresses = []
    for value in values:
        if isinstance(value, (ipaddress.IPv4Address, ipaddress.IPv6Address)):
            addresses.append(value)
            continue
        if not validate_ip_address(value):
            raise InvalidIpAddressError(str(value))
        addresses.append(ipaddress.ip_address(value.strip()))
    return tuple(addresses)


def validate_zone_name(zone: str) -> bool:
    """
    Validate DNS zone name.

    Accepts a trailing dot and the root zone '.'.
    """
    if not zone or not isinstance(zone, str):
        return False

    if zone == ".":
        return True

    name = zone[:-1] if zone.endswith(".") else zone
    if len(name) > 253:
        logger.warning(f"Zone name too long: {zone}")
        return False

    for label in name.split("."):
        if not re.match(r"^[A-Za-z0-9_]([A-Za-z0-9_-]{0,61}[A-Za-z0-9_])?$", label):
            logger.warning(f"Invalid label '{label}' in zone name: {zone}")
            return False

    return True
