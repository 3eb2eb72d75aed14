"""
RNDC configuration file parser

Parses the rndc.conf grammar (include, key, server and options statements,
with comments anywhere) into a ConfigDocument, and resolves include
directives recursively with cycle detection.

Example:

    key "rndc-key" {
        algorithm hmac-sha256;
        secret "dGVzdC1zZWNyZXQ=";
    };

    options {
        default-server localhost;
        default-key "rndc-key";
    };
"""

import logging
import re
from pathlib import Path
from typing import Callable, Dict, List, Optional, Set, Tuple, Union

from ..core.conf_types import (
    DEFAULT_ALGORITHM,
    ConfigDocument,
    KeyBlock,
    OptionsBlock,
    ServerAddress,
    ServerBlock,
)
from ..core.errors import (
    CircularIncludeError,
    ConfFileNotFoundError,
    ConfIOError,
    InvalidIpAddressError,
    InvalidServerAddressError,
)
from ..utils import lexer
from ..utils.lexer import IPAddress

logger = logging.getLogger(__name__)

# Dotted numbers that fail IP parsing are rejected rather than taken as hostnames.
_DOTTED_NUMERIC_RE = re.compile(r"^[0-9.]+$")

PathLike = Union[str, Path]


class _ConfScanner:
    """Recursive-descent reader over one rndc.conf text."""

    def __init__(self, text: str):
        self.text = text
        self.pos = 0

    # ---------- token helpers ----------

    def skip(self) -> None:
        self.pos = lexer.skip_ws(self.text, self.pos)

    def error(self, message: str, expected: Optional[str] = None):
        return lexer.syntax_error(self.text, self.pos, message, expected)

    def at_keyword(self, word: str) -> bool:
        self.skip()
        return lexer.keyword(self.text, self.pos, word) is not None

    def expect_keyword(self, word: str) -> None:
        self.skip()
        end = lexer.keyword(self.text, self.pos, word)
        if end is None:
            raise self.error(f"expected keyword '{word}'", expected=f"'{word}'")
        self.pos = end

    def expect_literal(self, token: str) -> None:
        self.skip()
        end = lexer.literal(self.text, self.pos, token)
        if end is None:
            raise self.error(f"expected '{token}'", expected=f"'{token}'")
        self.pos = end

    def at_literal(self, token: str) -> bool:
        self.skip()
        return lexer.literal(self.text, self.pos, token) is not None

    def expect(self, matcher: Callable, what: str):
        self.skip()
        result = matcher(self.text, self.pos)
        if result is None:
            raise self.error(f"expected {what}", expected=what)
        value, self.pos = result
        return value

    def expect_block_end(self) -> None:
        self.expect_literal("}")
        self.expect_literal(";")

    def at_end(self) -> bool:
        self.skip()
        return self.pos >= len(self.text)

    # ---------- statements ----------

    def parse(self) -> ConfigDocument:
        keys: Dict[str, KeyBlock] = {}
        servers: Dict[str, ServerBlock] = {}
        options = OptionsBlock()
        includes: List[Path] = []

        while not self.at_end():
            if self.at_keyword("include"):
                includes.append(self.parse_include())
            elif self.at_keyword("key"):
                key = self.parse_key_block()
                keys[key.name] = key
            elif self.at_keyword("server"):
                server = self.parse_server_block()
                servers[str(server.address)] = server
            elif self.at_keyword("options"):
                # Later blocks overwrite only the fields they set.
                options = self.parse_options_block().merged_over(options)
            else:
                raise self.error(
                    "unknown statement",
                    expected="'include', 'key', 'server' or 'options'",
                )

        logger.debug(
            f"Parsed rndc configuration: {len(keys)} keys, {len(servers)} servers, "
            f"{len(includes)} includes"
        )
        return ConfigDocument(
            keys=keys, servers=servers, options=options, includes=tuple(includes)
        )

    def parse_include(self) -> Path:
        self.expect_keyword("include")
        path = self.expect(lexer.quoted_string, "quoted include path")
        self.expect_literal(";")
        return Path(path)

    def parse_key_block(self) -> KeyBlock:
        self.expect_keyword("key")
        name = self.expect(lexer.quoted_string, "quoted key name")
        self.expect_literal("{")

        algorithm = None
        secret = None
        while not self.at_literal("}"):
            if self.at_keyword("algorithm"):
                self.expect_keyword("algorithm")
                algorithm = self.expect(lexer.identifier, "algorithm name")
            elif self.at_keyword("secret"):
                self.expect_keyword("secret")
                secret = self.expect(lexer.quoted_string, "quoted secret")
            else:
                raise self.error(
                    "unknown key statement", expected="'algorithm' or 'secret'"
                )
            self.expect_literal(";")
        self.expect_block_end()

        if secret is None:
            logger.warning(f"Key '{name}' has no secret, using an empty one")
        return KeyBlock(
            name=name,
            algorithm=algorithm if algorithm is not None else DEFAULT_ALGORITHM,
            secret=secret if secret is not None else "",
        )

    def parse_server_address(self) -> ServerAddress:
        token = self.expect(lexer.identifier, "server address")
        address = ServerAddress.parse(token)
        if not address.is_ip and _DOTTED_NUMERIC_RE.match(token):
            raise InvalidServerAddressError(token)
        return address

    def parse_ip_list(self) -> Tuple[IPAddress, ...]:
        self.expect_literal("{")
        addresses = []
        while not self.at_literal("}"):
            token = self.expect(lexer.identifier, "IP address")
            # Tolerate a CIDR suffix as the lexer does.
            if self.text.startswith("/", self.pos):
                suffix = lexer.unsigned(self.text, self.pos + 1)
                if suffix is not None:
                    self.pos = suffix[1]
            parsed = lexer.ip_address(token, 0)
            if parsed is None or parsed[1] != len(token):
                raise InvalidIpAddressError(token)
            addresses.append(parsed[0])
            if not self.at_literal("}"):
                self.expect_literal(";")
        self.expect_block_end()
        return tuple(addresses)

    def parse_server_block(self) -> ServerBlock:
        self.expect_keyword("server")
        address = self.parse_server_address()
        self.expect_literal("{")

        key = None
        port = None
        addresses = None
        while not self.at_literal("}"):
            if self.at_keyword("key"):
                self.expect_keyword("key")
                key = self.expect(lexer.quoted_string, "quoted key name")
                self.expect_literal(";")
            elif self.at_keyword("port"):
                self.expect_keyword("port")
                port = self.expect(lexer.port_number, "port number (0-65535)")
                self.expect_literal(";")
            elif self.at_keyword("addresses"):
                self.expect_keyword("addresses")
                addresses = self.parse_ip_list()
            else:
                raise self.error(
                    "unknown server statement",
                    expected="'key', 'port' or 'addresses'",
                )
        self.expect_block_end()

        return ServerBlock(address=address, key=key, port=port, addresses=addresses)

    def parse_options_block(self) -> OptionsBlock:
        self.expect_keyword("options")
        self.expect_literal("{")

        default_server = None
        default_key = None
        default_port = None
        while not self.at_literal("}"):
            if self.at_keyword("default-server"):
                self.expect_keyword("default-server")
                default_server = self.expect(lexer.identifier, "server name")
            elif self.at_keyword("default-key"):
                self.expect_keyword("default-key")
                default_key = self.expect(lexer.quoted_string, "quoted key name")
            elif self.at_keyword("default-port"):
                self.expect_keyword("default-port")
                default_port = self.expect(lexer.port_number, "port number (0-65535)")
            else:
                raise self.error(
                    "unknown options statement",
                    expected="'default-server', 'default-key' or 'default-port'",
                )
            self.expect_literal(";")
        self.expect_block_end()

        return OptionsBlock(
            default_server=default_server,
            default_key=default_key,
            default_port=default_port,
        )


def parse_document(text: str) -> ConfigDocument:
    """
    Parse rndc.conf content into a ConfigDocument.

    Include directives are recorded in ``includes`` but not followed; use
    resolve_includes() for that.

    Raises:
        ConfSyntaxError: malformed input (IncompleteInputError when truncated)
        InvalidServerAddressError, InvalidIpAddressError: bad address literals
    """
    return _ConfScanner(text).parse()


def resolve_includes(path: PathLike) -> ConfigDocument:
    """
    Read, parse and merge path together with every file it includes.

    Relative include paths are taken relative to the including file's
    directory. Definitions in an including file win over included ones;
    options merge field by field. Any failure in the include tree aborts
    the whole resolution.

    Raises:
        ConfFileNotFoundError: path or an included file does not exist
        CircularIncludeError: a file is reached twice during the resolution
        ConfIOError: a file exists but cannot be read
        ParseError: any parse failure in any file
    """
    visited: Set[Path] = set()
    return _resolve(Path(path), visited)


def _resolve(path: Path, visited: Set[Path]) -> ConfigDocument:
    try:
        canonical_path = path.resolve(strict=True)
    except (FileNotFoundError, NotADirectoryError):
        raise ConfFileNotFoundError(str(path))
    except OSError as e:
        raise ConfIOError(f"{path}: {e}") from e

    if canonical_path in visited:
        raise CircularIncludeError(str(canonical_path))
    visited.add(canonical_path)

    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfIOError(f"{path}: {e}") from e

    logger.debug(f"Parsing rndc configuration file {path}")
    document = parse_document(content)

    keys = dict(document.keys)
    servers = dict(document.servers)
    options = document.options
    resolved_includes = []

    for include_path in document.includes:
        if not include_path.is_absolute():
            include_path = path.parent / include_path

        logger.debug(f"Resolving include {include_path} from {path}")
        included = _resolve(include_path, visited)

        for name, key in included.keys.items():
            keys.setdefault(name, key)
        for address, server in included.servers.items():
            servers.setdefault(address, server)
        options = options.merged_over(included.options)

        resolved_includes.append(include_path)

    return ConfigDocument(
        keys=keys,
        servers=servers,
        options=options,
        includes=tuple(resolved_includes),
    )
