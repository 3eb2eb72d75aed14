"""
Showzone output parser

Parses the text returned by `rndc showzone <zone>`:

    zone "example.com" { type primary; file "/var/cache/bind/example.com.zone"; };

into a ZoneConfig. Each statement is tried against an ordered list of
matchers: the allow-update special case, one matcher per typed directive,
and finally a generic matcher that keeps any other directive verbatim in
ZoneConfig.raw_options.
"""

import logging
from typing import Any, Callable, Dict, List, NamedTuple, Optional, Tuple

from ..core.errors import InvalidDnsClassError, InvalidZoneTypeError
from ..core.zone_config import (
    DIRECTIVES,
    Directive,
    DnsClass,
    ForwarderSpec,
    PrimarySpec,
    ValueKind,
    ZoneConfig,
    ZoneType,
)
from ..utils import lexer

logger = logging.getLogger(__name__)

_BOOLEANS = {"yes": True, "true": True, "1": True, "no": False, "false": False, "0": False}


class Statement(NamedTuple):
    """One parsed zone statement. field is None for a verbatim capture."""

    field: Optional[str]
    name: str
    value: Any


Matcher = Callable[[str, int], Optional[Tuple[Statement, int]]]
Reader = Callable[[str, int, Directive], Optional[Tuple[Any, int]]]


def _terminator(text: str, pos: int) -> Optional[int]:
    return lexer.literal(text, lexer.skip_ws(text, pos), ";")


def _match_keywords(text: str, pos: int, words: Tuple[str, ...]) -> Optional[int]:
    for word in words:
        end = lexer.keyword(text, pos, word)
        if end is not None:
            return end
    return None


# ---------- value readers ----------


def _read_string(text: str, pos: int, directive: Directive):
    return lexer.quoted_string(text, pos)


def _read_uint(text: str, pos: int, directive: Directive):
    return lexer.unsigned(text, pos)


def _read_bool(text: str, pos: int, directive: Directive):
    token = lexer.identifier(text, pos)
    if token is None or token[0] not in _BOOLEANS:
        return None
    return _BOOLEANS[token[0]], token[1]


def _read_enum(text: str, pos: int, directive: Directive):
    token = lexer.identifier(text, pos)
    if token is None:
        return None
    member = directive.vocabulary.parse(token[0])
    if member is None:
        return None
    return member, token[1]


def _read_ip(text: str, pos: int, directive: Directive):
    return lexer.ip_address(text, pos)


def _read_port(text: str, pos: int) -> Tuple[Optional[int], int]:
    """Optional 'port <n>' suffix of a list entry."""
    start = lexer.skip_ws(text, pos)
    end = lexer.keyword(text, start, "port")
    if end is None:
        return None, pos
    parsed = lexer.port_number(text, lexer.skip_ws(text, end))
    if parsed is None:
        return None, pos
    return parsed


def _read_list(text: str, pos: int, read_entry: Callable) -> Optional[Tuple[tuple, int]]:
    """Read '{ entry; entry; }' and return the entries and the position after '}'."""
    index = lexer.literal(text, pos, "{")
    if index is None:
        return None

    entries = []
    while True:
        index = lexer.skip_ws(text, index)
        end = lexer.literal(text, index, "}")
        if end is not None:
            return tuple(entries), end
        entry = read_entry(text, index)
        if entry is None:
            return None
        value, index = entry
        index = _terminator(text, index)
        if index is None:
            return None
        entries.append(value)


def _read_ip_list(text: str, pos: int, directive: Directive):
    return _read_list(text, pos, lexer.ip_address)


def _primary_entry(text: str, pos: int):
    parsed = lexer.ip_address(text, pos)
    if parsed is None:
        return None
    address, index = parsed
    port, index = _read_port(text, index)
    return PrimarySpec(address=address, port=port), index


def _read_primaries(text: str, pos: int, directive: Directive):
    return _read_list(text, pos, _primary_entry)


def _forwarder_entry(text: str, pos: int):
    parsed = lexer.ip_address(text, pos)
    if parsed is None:
        return None
    address, index = parsed
    port, index = _read_port(text, index)

    tls = None
    start = lexer.skip_ws(text, index)
    end = lexer.keyword(text, start, "tls")
    if end is not None:
        token = lexer.identifier(text, lexer.skip_ws(text, end))
        if token is None:
            token = lexer.quoted_string(text, lexer.skip_ws(text, end))
        if token is None:
            return None
        tls, index = token
    return ForwarderSpec(address=address, port=port, tls=tls), index


def _read_forwarders(text: str, pos: int, directive: Directive):
    return _read_list(text, pos, _forwarder_entry)


def _read_raw(text: str, pos: int, directive: Directive):
    """A brace block or a single value, returned as trimmed source text."""
    if text.startswith("{", pos):
        end = lexer.find_block_end(text, pos)
    else:
        end = lexer.find_statement_end(text, pos)
        if not text.startswith(";", end):
            return None
    value = text[pos:end].strip()
    if not value:
        return None
    return value, end


_READERS: Dict[ValueKind, Reader] = {
    ValueKind.STRING: _read_string,
    ValueKind.UINT: _read_uint,
    ValueKind.BOOL: _read_bool,
    ValueKind.ENUM: _read_enum,
    ValueKind.IP: _read_ip,
    ValueKind.IP_LIST: _read_ip_list,
    ValueKind.PRIMARIES: _read_primaries,
    ValueKind.FORWARDERS: _read_forwarders,
    ValueKind.RAW: _read_raw,
}


# ---------- statement matchers ----------


def _match_type(text: str, pos: int):
    end = lexer.keyword(text, pos, "type")
    if end is None:
        return None
    token = lexer.identifier(text, lexer.skip_ws(text, end))
    if token is None:
        return None

    zone_type = ZoneType.parse(token[0])
    if zone_type is None:
        raise InvalidZoneTypeError(token[0])
    end = _terminator(text, token[1])
    if end is None:
        return None
    return Statement("zone_type", "type", zone_type), end


def _match_allow_update(text: str, pos: int):
    """
    allow-update { ... };

    A body that references a key anywhere is kept as raw text, since a plain
    address list cannot represent it. Otherwise the IP literals form the
    typed list and any other entry is skipped.
    """
    end = lexer.keyword(text, pos, "allow-update")
    if end is None:
        return None
    body_start = lexer.skip_ws(text, end)
    index = lexer.literal(text, body_start, "{")
    if index is None:
        return None

    addresses = []
    has_key_ref = False
    while True:
        index = lexer.skip_ws(text, index)
        if index >= len(text):
            raise lexer.syntax_error(text, index, "unterminated allow-update", "'}'")
        if text.startswith("}", index):
            index += 1
            break

        key_end = lexer.keyword(text, index, "key")
        if key_end is not None:
            has_key_ref = True
            index = lexer.skip_statement(text, key_end)
            continue

        parsed = lexer.ip_address(text, index)
        if parsed is not None:
            after = _terminator(text, parsed[1])
            if after is not None:
                addresses.append(parsed[0])
                index = after
                continue

        index = lexer.skip_statement(text, index)

    body_end = index
    end = _terminator(text, body_end)
    if end is None:
        return None

    if has_key_ref:
        return Statement("allow_update_raw", "allow-update", text[body_start:body_end]), end
    return Statement("allow_update", "allow-update", tuple(addresses)), end


def _typed_matcher(directive: Directive) -> Matcher:
    reader = _READERS[directive.kind]

    def match(text: str, pos: int):
        end = _match_keywords(text, pos, directive.keywords)
        if end is None:
            return None
        result = reader(text, lexer.skip_ws(text, end), directive)
        if result is None:
            return None
        value, end = result
        end = _terminator(text, end)
        if end is None:
            return None
        return Statement(directive.field, directive.name, value), end

    match.__name__ = f"match_{directive.field}"
    return match


def _match_generic(text: str, pos: int):
    """Any other directive: 'name value;' or 'name { ... };', kept verbatim."""
    token = lexer.directive_name(text, pos)
    if token is None:
        return None
    name, index = token

    index = lexer.skip_ws(text, index)
    if text.startswith("{", index):
        end = lexer.find_block_end(text, index)
    else:
        end = lexer.find_statement_end(text, index)
        if not text.startswith(";", end):
            return None
    value = text[index:end].strip()

    end = _terminator(text, end)
    if end is None:
        return None
    logger.debug(f"Preserving unrecognized zone directive '{name}' verbatim")
    return Statement(None, name, value), end


def _build_matchers() -> Tuple[Matcher, ...]:
    matchers: List[Matcher] = [_match_type, _match_allow_update]
    matchers.extend(
        _typed_matcher(directive)
        for directive in DIRECTIVES
        if directive.name != "allow-update"
    )
    matchers.append(_match_generic)
    return tuple(matchers)


# Typed matchers first, the verbatim fallback last.
STATEMENT_MATCHERS: Tuple[Matcher, ...] = _build_matchers()


# ---------- zone block ----------


def _parse_statement(text: str, pos: int) -> Tuple[Statement, int]:
    for matcher in STATEMENT_MATCHERS:
        result = matcher(text, pos)
        if result is not None:
            return result
    raise lexer.syntax_error(text, pos, "unrecognized zone statement", "'<name> <value>;'")


def _parse_class(text: str, pos: int) -> Tuple[DnsClass, int]:
    token = lexer.identifier(text, pos)
    if token is None:
        return DnsClass.IN, pos
    dns_class = DnsClass.parse(token[0])
    if dns_class is None:
        raise InvalidDnsClassError(token[0])
    return dns_class, token[1]


def parse_zone_block(text: str) -> ZoneConfig:
    """
    Parse `rndc showzone` output into a ZoneConfig.

    Format: zone "<name>" [IN|CH|HS] { <statement>* };

    Raises:
        ConfSyntaxError: malformed input (IncompleteInputError when truncated)
        InvalidZoneTypeError: 'type' names something outside the vocabulary
        InvalidDnsClassError: the class token is not IN, CH or HS
    """
    pos = lexer.skip_ws(text, 0)
    end = lexer.keyword(text, pos, "zone")
    if end is None:
        raise lexer.syntax_error(text, pos, "expected zone statement", "'zone'")

    pos = lexer.skip_ws(text, end)
    name = lexer.quoted_string(text, pos)
    if name is None:
        raise lexer.syntax_error(text, pos, "expected zone name", "quoted zone name")
    zone_name, pos = name

    dns_class, pos = _parse_class(text, lexer.skip_ws(text, pos))

    pos = lexer.skip_ws(text, pos)
    end = lexer.literal(text, pos, "{")
    if end is None:
        raise lexer.syntax_error(text, pos, "expected zone block", "'{'")
    pos = end

    fields: Dict[str, Any] = {}
    raw_options: Dict[str, str] = {}
    while True:
        pos = lexer.skip_ws(text, pos)
        end = lexer.literal(text, pos, "}")
        if end is not None:
            pos = end
            break

        statement, pos = _parse_statement(text, pos)
        if statement.field is None:
            raw_options[statement.name] = statement.value
            continue

        fields[statement.field] = statement.value
        # One allow-update representation at a time.
        if statement.field == "allow_update_raw":
            fields.pop("allow_update", None)
        elif statement.field == "allow_update":
            fields.pop("allow_update_raw", None)

    pos = lexer.skip_ws(text, pos)
    end = lexer.literal(text, pos, ";")
    if end is None:
        raise lexer.syntax_error(text, pos, "expected end of zone block", "';'")

    if lexer.skip_ws(text, end) < len(text):
        logger.warning(f"Ignoring trailing content after zone block for {zone_name}")

    if "zone_type" not in fields:
        logger.debug(f"Zone {zone_name} has no type statement, assuming primary")

    config = ZoneConfig(
        zone_name=zone_name, dns_class=dns_class, raw_options=raw_options, **fields
    )
    logger.debug(
        f"Parsed zone {zone_name}: type {config.zone_type.value}, "
        f"{len(fields)} typed directives, {len(raw_options)} raw options"
    )
    return config


parse_showzone = parse_zone_block
