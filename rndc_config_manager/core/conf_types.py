"""
RNDC configuration data types

Value objects for a parsed rndc.conf / rndc.key document. They can be
serialized back to the same grammar with to_conf_text().
"""

import ipaddress
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Tuple

from ..utils.lexer import IPAddress, quote

DEFAULT_ALGORITHM = "hmac-sha256"


@dataclass(frozen=True)
class KeyBlock:
    """Authentication credentials: key "name" { algorithm ...; secret "..."; };"""

    name: str
    algorithm: str = DEFAULT_ALGORITHM
    secret: str = ""

    def to_conf_block(self) -> str:
        return (
            "{\n"
            f"    algorithm {self.algorithm};\n"
            f"    secret {quote(self.secret)};\n"
            "};"
        )


@dataclass(frozen=True)
class ServerAddress:
    """A server block address: either a hostname or an IP literal."""

    hostname: Optional[str] = None
    ip: Optional[IPAddress] = None

    @classmethod
    def parse(cls, value: str) -> "ServerAddress":
        """IP literal first, hostname otherwise."""
        try:
            return cls(ip=ipaddress.ip_address(value))
        except ValueError:
            return cls(hostname=value)

    @property
    def is_ip(self) -> bool:
        return self.ip is not None

    def __str__(self) -> str:
        return str(self.ip) if self.ip is not None else self.hostname


@dataclass(frozen=True)
class ServerBlock:
    """Per-server settings: server <address> { key "..."; port 953; };"""

    address: ServerAddress
    key: Optional[str] = None
    port: Optional[int] = None
    addresses: Optional[Tuple[IPAddress, ...]] = None

    def to_conf_block(self) -> str:
        parts = []

        if self.key is not None:
            parts.append(f"    key {quote(self.key)};")

        if self.port is not None:
            parts.append(f"    port {self.port};")

        if self.addresses is not None:
            address_lines = "\n".join(f"        {ip};" for ip in self.addresses)
            parts.append(f"    addresses {{\n{address_lines}\n    }};")

        if not parts:
            return "{ };"
        return "{\n" + "\n".join(parts) + "\n};"


@dataclass(frozen=True)
class OptionsBlock:
    """Global client defaults: options { default-server ...; };"""

    default_server: Optional[str] = None
    default_key: Optional[str] = None
    default_port: Optional[int] = None

    def is_empty(self) -> bool:
        return (
            self.default_server is None
            and self.default_key is None
            and self.default_port is None
        )

    def merged_over(self, other: "OptionsBlock") -> "OptionsBlock":
        """
        Return these options with unset fields filled from other.

        Fields set here always win, field by field.
        """
        return OptionsBlock(
            default_server=(
                self.default_server
                if self.default_server is not None
                else other.default_server
            ),
            default_key=(
                self.default_key if self.default_key is not None else other.default_key
            ),
            default_port=(
                self.default_port
                if self.default_port is not None
                else other.default_port
            ),
        )

    def to_conf_block(self) -> str:
        parts = []

        if self.default_server is not None:
            parts.append(f"    default-server {self.default_server};")

        if self.default_key is not None:
            parts.append(f"    default-key {quote(self.default_key)};")

        if self.default_port is not None:
            parts.append(f"    default-port {self.default_port};")

        if not parts:
            return "{ };"
        return "{\n" + "\n".join(parts) + "\n};"


@dataclass(frozen=True)
class ConfigDocument:
    """A complete rndc configuration: keys, servers, options and includes."""

    keys: Dict[str, KeyBlock] = field(default_factory=dict)
    servers: Dict[str, ServerBlock] = field(default_factory=dict)
    options: OptionsBlock = field(default_factory=OptionsBlock)
    includes: Tuple[Path, ...] = ()

    def default_key(self) -> Optional[KeyBlock]:
        """The key named by options.default_key, if it is defined."""
        if self.options.default_key is None:
            return None
        return self.keys.get(self.options.default_key)

    def default_server(self) -> Optional[str]:
        return self.options.default_server

    def to_conf_text(self) -> str:
        """Serialize back to rndc.conf syntax."""
        output = []

        for include_path in self.includes:
            output.append(f"include {quote(str(include_path))};\n")

        for name, key in self.keys.items():
            output.append(f"\nkey {quote(name)} {key.to_conf_block()}\n")

        for address, server in self.servers.items():
            output.append(f"\nserver {address} {server.to_conf_block()}\n")

        if not self.options.is_empty():
            output.append(f"\noptions {self.options.to_conf_block()}\n")

        return "".join(output)
