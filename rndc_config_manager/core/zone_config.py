"""
Zone configuration model

ZoneConfig holds what `rndc showzone` reports for one zone: a typed field
for every directive the manager understands and a raw_options map for
everything else. to_protocol_block() turns it back into the block syntax
that `rndc addzone` and `rndc modzone` accept.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, NamedTuple, Optional, Tuple

from ..utils.lexer import IPAddress, identifier, quote

logger = logging.getLogger(__name__)


class Vocabulary(Enum):
    """A closed set of tokens. Legacy spellings are mapped in _missing_."""

    @classmethod
    def parse(cls, token: str):
        """Return the member for token, or None when it is not in the vocabulary."""
        try:
            return cls(token)
        except ValueError:
            return None

    def __str__(self) -> str:
        return self.value


class DnsClass(Vocabulary):
    IN = "IN"
    CH = "CH"
    HS = "HS"


class ZoneType(Vocabulary):
    PRIMARY = "primary"
    SECONDARY = "secondary"
    STUB = "stub"
    FORWARD = "forward"
    HINT = "hint"
    MIRROR = "mirror"
    DELEGATION = "delegation-only"
    REDIRECT = "redirect"

    @classmethod
    def _missing_(cls, value):
        return {"master": cls.PRIMARY, "slave": cls.SECONDARY}.get(value)


class NotifyMode(Vocabulary):
    YES = "yes"
    NO = "no"
    EXPLICIT = "explicit"
    PRIMARY_ONLY = "primary-only"

    @classmethod
    def _missing_(cls, value):
        return {"master-only": cls.PRIMARY_ONLY}.get(value)


class ForwardMode(Vocabulary):
    ONLY = "only"
    FIRST = "first"


class AutoDnssecMode(Vocabulary):
    OFF = "off"
    MAINTAIN = "maintain"
    CREATE = "create"


class CheckNamesMode(Vocabulary):
    FAIL = "fail"
    WARN = "warn"
    IGNORE = "ignore"


class MasterfileFormat(Vocabulary):
    TEXT = "text"
    RAW = "raw"
    MAP = "map"


@dataclass(frozen=True)
class PrimarySpec:
    """An entry of a primaries list: address with an optional port."""

    address: IPAddress
    port: Optional[int] = None

    def __str__(self) -> str:
        if self.port is not None:
            return f"{self.address} port {self.port}"
        return str(self.address)


@dataclass(frozen=True)
class ForwarderSpec:
    """An entry of a forwarders list: address, optional port and TLS profile."""

    address: IPAddress
    port: Optional[int] = None
    tls: Optional[str] = None

    def __str__(self) -> str:
        text = str(self.address)
        if self.port is not None:
            text += f" port {self.port}"
        if self.tls is not None:
            text += f" tls {_token(self.tls)}"
        return text


def _token(value: str) -> str:
    """value as a bare word when it reads back as one, quoted otherwise."""
    if identifier(value, 0) == (value, len(value)):
        return value
    return quote(value)


class ValueKind(Enum):
    """How a directive's value is written."""

    STRING = "string"
    UINT = "uint"
    BOOL = "bool"
    ENUM = "enum"
    IP = "ip"
    IP_LIST = "ip-list"
    PRIMARIES = "primaries"
    FORWARDERS = "forwarders"
    RAW = "raw"


class Directive(NamedTuple):
    """A zone statement with a typed ZoneConfig field."""

    name: str
    field: str
    kind: ValueKind
    vocabulary: Optional[type] = None
    aliases: Tuple[str, ...] = ()

    @property
    def keywords(self) -> Tuple[str, ...]:
        return (self.name,) + self.aliases


# Serialization order. The showzone parser builds its typed matchers from
# this table as well, so both sides always agree on the directive set.
DIRECTIVES: Tuple[Directive, ...] = (
    Directive("file", "file", ValueKind.STRING),
    Directive("primaries", "primaries", ValueKind.PRIMARIES, aliases=("masters",)),
    Directive("also-notify", "also_notify", ValueKind.IP_LIST),
    Directive("notify", "notify", ValueKind.ENUM, NotifyMode),
    Directive("allow-query", "allow_query", ValueKind.IP_LIST),
    Directive("allow-transfer", "allow_transfer", ValueKind.IP_LIST),
    Directive("allow-update", "allow_update", ValueKind.IP_LIST),
    Directive("allow-update-forwarding", "allow_update_forwarding", ValueKind.IP_LIST),
    Directive("allow-notify", "allow_notify", ValueKind.IP_LIST),
    Directive("max-transfer-time-in", "max_transfer_time_in", ValueKind.UINT),
    Directive("max-transfer-time-out", "max_transfer_time_out", ValueKind.UINT),
    Directive("max-transfer-idle-in", "max_transfer_idle_in", ValueKind.UINT),
    Directive("max-transfer-idle-out", "max_transfer_idle_out", ValueKind.UINT),
    Directive("transfer-source", "transfer_source", ValueKind.IP),
    Directive("transfer-source-v6", "transfer_source_v6", ValueKind.IP),
    Directive("notify-source", "notify_source", ValueKind.IP),
    Directive("notify-source-v6", "notify_source_v6", ValueKind.IP),
    Directive("update-policy", "update_policy", ValueKind.RAW),
    Directive("journal", "journal", ValueKind.STRING),
    Directive("ixfr-from-differences", "ixfr_from_differences", ValueKind.BOOL),
    Directive("inline-signing", "inline_signing", ValueKind.BOOL),
    Directive("auto-dnssec", "auto_dnssec", ValueKind.ENUM, AutoDnssecMode),
    Directive("key-directory", "key_directory", ValueKind.STRING),
    Directive("sig-validity-interval", "sig_validity_interval", ValueKind.UINT),
    Directive("dnskey-sig-validity", "dnskey_sig_validity", ValueKind.UINT),
    Directive("forward", "forward", ValueKind.ENUM, ForwardMode),
    Directive("forwarders", "forwarders", ValueKind.FORWARDERS),
    Directive("check-names", "check_names", ValueKind.ENUM, CheckNamesMode),
    Directive("check-mx", "check_mx", ValueKind.ENUM, CheckNamesMode),
    Directive("check-integrity", "check_integrity", ValueKind.BOOL),
    Directive("masterfile-format", "masterfile_format", ValueKind.ENUM, MasterfileFormat),
    Directive("max-zone-ttl", "max_zone_ttl", ValueKind.UINT),
    Directive("max-refresh-time", "max_refresh_time", ValueKind.UINT),
    Directive("min-refresh-time", "min_refresh_time", ValueKind.UINT),
    Directive("max-retry-time", "max_retry_time", ValueKind.UINT),
    Directive("min-retry-time", "min_retry_time", ValueKind.UINT),
    Directive("multi-master", "multi_master", ValueKind.BOOL),
    Directive("request-ixfr", "request_ixfr", ValueKind.BOOL),
    Directive("request-expire", "request_expire", ValueKind.BOOL),
)


def strip_terminators(value: str) -> str:
    """Drop trailing ';' and whitespace so exactly one ';' can be appended."""
    return value.rstrip(" \t\r\n;").strip()


def _render(directive: Directive, value: Any) -> Optional[str]:
    """Render a typed value, or None when nothing should be emitted."""
    kind = directive.kind
    if kind in (ValueKind.IP_LIST, ValueKind.PRIMARIES, ValueKind.FORWARDERS):
        if not value:
            return None
        return "{ " + "; ".join(str(item) for item in value) + "; }"
    if kind == ValueKind.BOOL:
        return "yes" if value else "no"
    if kind == ValueKind.STRING:
        return quote(value)
    if kind == ValueKind.RAW:
        return strip_terminators(value)
    return str(value)


@dataclass(frozen=True)
class ZoneConfig:
    """
    Zone configuration as reported by `rndc showzone`.

    Values are immutable. To change a zone, build a modified copy with
    dataclasses.replace() and serialize it again.

    allow_update_raw keeps an allow-update body that references keys, for
    example '{ key "bindy-operator"; }'. When it is set it is emitted instead
    of the allow_update address list; callers setting either one should
    clear the other.
    """

    zone_name: str
    zone_type: ZoneType = ZoneType.PRIMARY
    dns_class: DnsClass = DnsClass.IN
    file: Optional[str] = None

    primaries: Optional[Tuple[PrimarySpec, ...]] = None
    also_notify: Optional[Tuple[IPAddress, ...]] = None
    notify: Optional[NotifyMode] = None

    allow_query: Optional[Tuple[IPAddress, ...]] = None
    allow_transfer: Optional[Tuple[IPAddress, ...]] = None
    allow_update: Optional[Tuple[IPAddress, ...]] = None
    allow_update_raw: Optional[str] = None
    allow_update_forwarding: Optional[Tuple[IPAddress, ...]] = None
    allow_notify: Optional[Tuple[IPAddress, ...]] = None

    max_transfer_time_in: Optional[int] = None
    max_transfer_time_out: Optional[int] = None
    max_transfer_idle_in: Optional[int] = None
    max_transfer_idle_out: Optional[int] = None
    transfer_source: Optional[IPAddress] = None
    transfer_source_v6: Optional[IPAddress] = None
    notify_source: Optional[IPAddress] = None
    notify_source_v6: Optional[IPAddress] = None

    update_policy: Optional[str] = None
    journal: Optional[str] = None
    ixfr_from_differences: Optional[bool] = None

    inline_signing: Optional[bool] = None
    auto_dnssec: Optional[AutoDnssecMode] = None
    key_directory: Optional[str] = None
    sig_validity_interval: Optional[int] = None
    dnskey_sig_validity: Optional[int] = None

    forward: Optional[ForwardMode] = None
    forwarders: Optional[Tuple[ForwarderSpec, ...]] = None

    check_names: Optional[CheckNamesMode] = None
    check_mx: Optional[CheckNamesMode] = None
    check_integrity: Optional[bool] = None
    masterfile_format: Optional[MasterfileFormat] = None
    max_zone_ttl: Optional[int] = None

    max_refresh_time: Optional[int] = None
    min_refresh_time: Optional[int] = None
    max_retry_time: Optional[int] = None
    min_retry_time: Optional[int] = None

    multi_master: Optional[bool] = None
    request_ixfr: Optional[bool] = None
    request_expire: Optional[bool] = None

    raw_options: Dict[str, str] = field(default_factory=dict)

    def directives(self) -> List[Tuple[str, str]]:
        """
        The (name, value text) pairs this zone serializes to, in output order.

        Unset fields and empty address lists are left out. A raw option
        with an empty value yields an empty value string.
        """
        pairs = [("type", self.zone_type.value)]

        for directive in DIRECTIVES:
            if directive.name == "allow-update" and self.allow_update_raw:
                pairs.append(("allow-update", strip_terminators(self.allow_update_raw)))
                continue

            value = getattr(self, directive.field)
            if value is None:
                continue
            rendered = _render(directive, value)
            if rendered is not None:
                pairs.append((directive.name, rendered))

        for name, value in self.raw_options.items():
            pairs.append((name, strip_terminators(value)))

        return pairs

    def to_protocol_block(self) -> str:
        """
        Serialize for `rndc addzone` / `rndc modzone`.

        Returns text such as '{ type primary; file "/var/cache/bind/x.zone"; };'.
        """
        statements = [
            f"{name} {value}" if value else name for name, value in self.directives()
        ]
        block = "{ " + "; ".join(statements) + "; };"
        logger.debug(f"Serialized zone {self.zone_name}: {block}")
        return block

    to_rndc_block = to_protocol_block

    def to_zone_statement(self) -> str:
        """Full statement in showzone form: zone "name" [class] { ... };"""
        class_part = "" if self.dns_class == DnsClass.IN else f" {self.dns_class.value}"
        return f"zone {quote(self.zone_name)}{class_part} {self.to_protocol_block()}"
