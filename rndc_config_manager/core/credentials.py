"""
RNDC credentials

Picks the server, port and key an rndc client should use from a parsed
configuration, and turns keys into dnspython TSIG keyrings.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, Optional, Union

import dns.tsigkeyring

from .conf_types import ConfigDocument, KeyBlock
from .errors import MissingFieldError, ParseError
from ..parsers.conf_parser import resolve_includes

logger = logging.getLogger(__name__)

DEFAULT_SERVER = "127.0.0.1"
DEFAULT_PORT = 953
DEFAULT_CONF_PATHS = ("/etc/bind/rndc.conf", "/etc/rndc.conf")


@dataclass(frozen=True)
class RndcCredentials:
    """Everything needed to authenticate against one rndc control channel."""

    server: str
    port: int
    key_name: str
    algorithm: str
    secret: str

    @property
    def address(self) -> str:
        if ":" in self.server:
            return f"[{self.server}]:{self.port}"
        return f"{self.server}:{self.port}"

    def keyring(self) -> Dict:
        """dnspython keyring holding this key only."""
        return dns.tsigkeyring.from_text({self.key_name: (self.algorithm, self.secret)})


def _select_key(document: ConfigDocument) -> KeyBlock:
    key = document.default_key()
    if key is not None:
        return key

    if document.options.default_key is not None:
        raise MissingFieldError(
            f"default-key '{document.options.default_key}' is not defined"
        )
    if len(document.keys) == 1:
        return next(iter(document.keys.values()))
    if not document.keys:
        raise MissingFieldError("no key defined")
    raise MissingFieldError("default-key (several keys defined, none selected)")


def credentials_from_document(
    document: ConfigDocument,
    default_server: str = DEFAULT_SERVER,
    default_port: int = DEFAULT_PORT,
) -> RndcCredentials:
    """
    Select credentials from a resolved configuration.

    The key is options.default_key, or the only key when exactly one is
    defined. A server block for the chosen server may override the key and
    the port.

    Raises:
        MissingFieldError: no key can be chosen
    """
    server = document.options.default_server or default_server
    port = document.options.default_port
    key = _select_key(document)

    server_block = document.servers.get(server)
    if server_block is not None:
        if server_block.key is not None and server_block.key in document.keys:
            key = document.keys[server_block.key]
        if server_block.port is not None:
            port = server_block.port

    credentials = RndcCredentials(
        server=server,
        port=port if port is not None else default_port,
        key_name=key.name,
        algorithm=key.algorithm,
        secret=key.secret,
    )
    logger.debug(
        f"Using key '{credentials.key_name}' ({credentials.algorithm}) "
        f"for {credentials.address}"
    )
    return credentials


def load_credentials(
    paths: Iterable[Union[str, Path]] = DEFAULT_CONF_PATHS,
    default_server: str = DEFAULT_SERVER,
    default_port: int = DEFAULT_PORT,
) -> RndcCredentials:
    """
    Try each configuration path in order and return the first usable credentials.

    Raises:
        ParseError: the failure of the last candidate when none succeeds
        MissingFieldError: no candidate paths were given
    """
    last_error: Optional[ParseError] = None
    for path in paths:
        try:
            document = resolve_includes(path)
            credentials = credentials_from_document(
                document, default_server=default_server, default_port=default_port
            )
        except ParseError as e:
            logger.debug(f"Skipping rndc configuration {path}: {e}")
            last_error = e
            continue

        logger.info(f"Loaded rndc credentials from {path}")
        return credentials

    if last_error is not None:
        raise last_error
    raise MissingFieldError("rndc configuration path")


def keyring_from_document(document: ConfigDocument) -> Dict:
    """dnspython keyring with every key of the document."""
    return dns.tsigkeyring.from_text(
        {name: (key.algorithm, key.secret) for name, key in document.keys.items()}
    )
