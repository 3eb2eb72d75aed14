"""
Lexer - Lexical primitives shared by the rndc.conf and showzone parsers

Every matcher takes the complete input text and a position. It returns the
decoded value together with the position just after it, or None when the
text at that position does not match. Matchers never keep state between
calls; only truncated input (an unterminated string or comment) raises.
"""

import ipaddress
import re
from typing import Optional, Tuple, Union

from ..core.errors import ConfSyntaxError, IncompleteInputError

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]

_IDENTIFIER_RE = re.compile(r"[\w.:-]+")
_DIRECTIVE_RE = re.compile(r"[\w-]+")
_IP_CANDIDATE_RE = re.compile(r"[0-9A-Fa-f:.]+")
_CIDR_SUFFIX_RE = re.compile(r"/[0-9]+")
_DIGITS_RE = re.compile(r"[0-9]+")

_ESCAPES = {'"': '"', "\\": "\\", "n": "\n", "r": "\r", "t": "\t"}
_ENCODINGS = {'"': '\\"', "\\": "\\\\", "\n": "\\n", "\r": "\\r", "\t": "\\t"}

MAX_PORT = 0xFFFF
MAX_UINT32 = 0xFFFFFFFF


def line_column(text: str, pos: int) -> Tuple[int, int]:
    """Translate an offset into a 1-based (line, column) pair."""
    line = text.count("\n", 0, pos) + 1
    column = pos - (text.rfind("\n", 0, pos) + 1) + 1
    return line, column


def syntax_error(
    text: str, pos: int, message: str, expected: Optional[str] = None
) -> ConfSyntaxError:
    """
    Build the error for a failure at pos.

    Failures with nothing but whitespace left are reported as incomplete
    input rather than as a plain syntax error.
    """
    line, column = line_column(text, pos)
    error_class = IncompleteInputError if not text[pos:].strip() else ConfSyntaxError
    return error_class(
        message, position=pos, line=line, column=column, expected=expected
    )


def skip_ws(text: str, pos: int) -> int:
    """Skip whitespace and //, # and /* */ comments."""
    length = len(text)
    while pos < length:
        char = text[pos]
        if char.isspace():
            pos += 1
        elif char == "#" or text.startswith("//", pos):
            end = text.find("\n", pos)
            pos = length if end == -1 else end + 1
        elif text.startswith("/*", pos):
            end = text.find("*/", pos + 2)
            if end == -1:
                line, column = line_column(text, pos)
                raise IncompleteInputError(
                    "unterminated block comment",
                    position=pos,
                    line=line,
                    column=column,
                    expected="'*/'",
                )
            pos = end + 2
        else:
            break
    return pos


def literal(text: str, pos: int, token: str) -> Optional[int]:
    """Match an exact punctuation token such as '{' or ';'."""
    if text.startswith(token, pos):
        return pos + len(token)
    return None


def is_identifier_char(char: str) -> bool:
    return char.isalnum() or char in "_-.:"


def keyword(text: str, pos: int, word: str) -> Optional[int]:
    """Match word as a whole token; 'key' does not match inside 'keys'."""
    if not text.startswith(word, pos):
        return None
    end = pos + len(word)
    if end < len(text) and is_identifier_char(text[end]):
        return None
    return end


def identifier(text: str, pos: int) -> Optional[Tuple[str, int]]:
    """Maximal run of alphanumerics, '_', '-', '.' and ':'."""
    match = _IDENTIFIER_RE.match(text, pos)
    if not match:
        return None
    return match.group(), match.end()


def directive_name(text: str, pos: int) -> Optional[Tuple[str, int]]:
    """Statement names inside a zone block: alphanumerics, '_' and '-'."""
    match = _DIRECTIVE_RE.match(text, pos)
    if not match:
        return None
    return match.group(), match.end()


def quoted_string(text: str, pos: int) -> Optional[Tuple[str, int]]:
    """
    Decode a double-quoted string starting at pos.

    Recognized escapes are \\", \\\\, \\n, \\r and \\t. Any other backslash
    sequence is kept as written.
    """
    if not text.startswith('"', pos):
        return None

    parts = []
    index = pos + 1
    length = len(text)
    while index < length:
        char = text[index]
        if char == '"':
            return "".join(parts), index + 1
        if char == "\\":
            if index + 1 >= length:
                break
            following = text[index + 1]
            parts.append(_ESCAPES.get(following, "\\" + following))
            index += 2
            continue
        parts.append(char)
        index += 1

    raise syntax_error(text, length, "unterminated quoted string", expected="'\"'")


def quote(value: str) -> str:
    """Encode value as a quoted string that quoted_string() decodes back."""
    return '"' + "".join(_ENCODINGS.get(char, char) for char in value) + '"'


def ip_address(text: str, pos: int) -> Optional[Tuple[IPAddress, int]]:
    """
    Match an IPv4 or IPv6 literal.

    A trailing CIDR suffix such as /32 is consumed and discarded, so
    10.244.1.18/32 and 10.244.1.18 yield the same address.
    """
    match = _IP_CANDIDATE_RE.match(text, pos)
    if not match:
        return None

    try:
        address = ipaddress.ip_address(match.group())
    except ValueError:
        return None

    end = match.end()
    suffix = _CIDR_SUFFIX_RE.match(text, end)
    if suffix:
        end = suffix.end()
    return address, end


def unsigned(text: str, pos: int, maximum: int = MAX_UINT32) -> Optional[Tuple[int, int]]:
    """Match a decimal number; values above maximum fail instead of wrapping."""
    match = _DIGITS_RE.match(text, pos)
    if not match:
        return None
    value = int(match.group())
    if value > maximum:
        return None
    return value, match.end()


def port_number(text: str, pos: int) -> Optional[Tuple[int, int]]:
    """Match a 16-bit port number."""
    return unsigned(text, pos, maximum=MAX_PORT)


def find_block_end(text: str, pos: int) -> int:
    """
    Given pos at an opening '{', return the offset just after its matching '}'.

    Nested braces and quoted strings are honored.
    """
    depth = 0
    index = pos
    length = len(text)
    while index < length:
        char = text[index]
        if char == '"':
            index = quoted_string(text, index)[1]
            continue
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return index + 1
        index += 1

    raise syntax_error(text, length, "unterminated block", expected="'}'")


def find_statement_end(text: str, pos: int) -> int:
    """
    Return the offset of the ';' ending the statement that starts at pos.

    The ';' must sit at brace depth zero. If an unmatched '}' closes the
    enclosing block first, its offset is returned instead.
    """
    depth = 0
    index = pos
    length = len(text)
    while index < length:
        char = text[index]
        if char == '"':
            index = quoted_string(text, index)[1]
            continue
        if char == "{":
            depth += 1
        elif char == "}":
            if depth == 0:
                return index
            depth -= 1
        elif char == ";" and depth == 0:
            return index
        index += 1

    raise syntax_error(text, length, "unterminated statement", expected="';'")


def skip_statement(text: str, pos: int) -> int:
    """Skip past the statement starting at pos, including its ';'."""
    end = find_statement_end(text, pos)
    if text.startswith(";", end):
        return end + 1
    return end
