"""
Zone Manager - Core logic for zone configuration changes

This module applies partial updates to a zone configuration, analyzes the
difference between two configurations and builds the rndc argument vectors
that carry the result to the server.
"""

import dataclasses
import logging
from typing import Dict, Iterable, List, Optional, Union

from .zone_config import DnsClass, ZoneConfig
from ..utils.lexer import IPAddress
from ..utils.validators import parse_ip_addresses, validate_zone_name

logger = logging.getLogger(__name__)

AddressInput = Optional[Iterable[Union[str, IPAddress]]]


class ZoneManager:
    """Manages zone configuration changes and change analysis."""

    def apply_changes(
        self,
        config: ZoneConfig,
        also_notify: AddressInput = None,
        allow_transfer: AddressInput = None,
        allow_update: AddressInput = None,
    ) -> ZoneConfig:
        """
        Return a copy of config with the requested address lists replaced.

        Args:
            config: Current zone configuration
            also_notify: New also-notify list, None to leave it untouched
            allow_transfer: New allow-transfer list, None to leave it untouched
            allow_update: New allow-update list, None to leave it untouched

        An empty list removes the directive. Setting a list also drops a
        verbatim copy of the same directive from raw_options, and setting
        allow_update drops a key-based body kept in allow_update_raw.

        Raises:
            InvalidIpAddressError: a value is not an IP address
        """
        changes: Dict = {}
        raw_options = dict(config.raw_options)

        if also_notify is not None:
            changes["also_notify"] = parse_ip_addresses(also_notify) or None
            raw_options.pop("also-notify", None)
            logger.info(f"Setting also-notify for {config.zone_name}")

        if allow_transfer is not None:
            changes["allow_transfer"] = parse_ip_addresses(allow_transfer) or None
            raw_options.pop("allow-transfer", None)
            logger.info(f"Setting allow-transfer for {config.zone_name}")

        if allow_update is not None:
            changes["allow_update"] = parse_ip_addresses(allow_update) or None
            changes["allow_update_raw"] = None
            raw_options.pop("allow-update", None)
            logger.info(f"Setting allow-update for {config.zone_name}")

        if not changes:
            logger.info(f"No changes requested for {config.zone_name}")
            return config

        # The copy never shares its raw_options dict with config.
        return dataclasses.replace(config, raw_options=raw_options, **changes)

    def analyze_changes(self, current: ZoneConfig, desired: ZoneConfig) -> Dict:
        """
        Analyze changes between two zone configurations.

        Returns:
            Dictionary with 'added' and 'removed' (name, value) pairs, 'changed'
            (name, old, new) triples, 'unchanged' names and 'total_changes'
        """
        logger.info(f"Analyzing zone changes for {desired.zone_name}...")

        current_directives = dict(current.directives())
        desired_directives = dict(desired.directives())

        added = []
        removed = []
        changed = []
        unchanged = []

        for name, value in desired_directives.items():
            if name not in current_directives:
                added.append((name, value))
                logger.info(f"Add needed: {name} {value}")
            elif current_directives[name] != value:
                changed.append((name, current_directives[name], value))
                logger.info(f"Change needed: {name} {current_directives[name]} -> {value}")
            else:
                unchanged.append(name)

        for name, value in current_directives.items():
            if name not in desired_directives:
                removed.append((name, value))
                logger.info(f"Remove needed: {name}")

        total_changes = len(added) + len(removed) + len(changed)

        changes = {
            "added": added,
            "removed": removed,
            "changed": changed,
            "unchanged": unchanged,
            "total_changes": total_changes,
        }

        logger.info(
            f"Change analysis complete: {len(added)} added, {len(changed)} changed, "
            f"{len(removed)} removed, {len(unchanged)} unchanged"
        )

        return changes

    def modzone_arguments(self, config: ZoneConfig) -> List[str]:
        """rndc arguments that replace the zone's configuration."""
        return self._arguments("modzone", config)

    def addzone_arguments(self, config: ZoneConfig) -> List[str]:
        """rndc arguments that create the zone."""
        return self._arguments("addzone", config)

    def _arguments(self, command: str, config: ZoneConfig) -> List[str]:
        if not validate_zone_name(config.zone_name):
            raise ValueError(f"Invalid zone name '{config.zone_name}'")

        arguments = [command, config.zone_name]
        if config.dns_class != DnsClass.IN:
            arguments.append(config.dns_class.value)
        arguments.append(config.to_protocol_block())

        logger.debug(f"rndc {command} arguments for {config.zone_name}: {arguments}")
        return arguments
