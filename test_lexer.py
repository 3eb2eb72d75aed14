#!/usr/bin/env python3
"""
Tests for the lexical primitives shared by both parsers.
"""

import ipaddress
import unittest

from rndc_config_manager.core.errors import ConfSyntaxError, IncompleteInputError
from rndc_config_manager.utils import lexer


class TestWhitespaceAndComments(unittest.TestCase):
    """Test skip_ws."""

    def test_skips_all_comment_styles(self):
        text = "  # hash\n// slashes\n/* block\n comment */\tkey"
        self.assertEqual(lexer.skip_ws(text, 0), text.index("key"))

    def test_comment_at_end_of_input(self):
        text = "key; # trailing"
        self.assertEqual(lexer.skip_ws(text, 4), len(text))

    def test_unterminated_block_comment(self):
        with self.assertRaises(IncompleteInputError):
            lexer.skip_ws("/* never closed", 0)

    def test_stops_at_token(self):
        self.assertEqual(lexer.skip_ws("key", 0), 0)


class TestTokens(unittest.TestCase):
    """Test keyword, identifier and quoted string matching."""

    def test_keyword_whole_token(self):
        self.assertEqual(lexer.keyword('key "x";', 0, "key"), 3)
        self.assertIsNone(lexer.keyword("keys;", 0, "key"))
        self.assertIsNone(lexer.keyword("notify-source 1.2.3.4;", 0, "notify"))

    def test_identifier(self):
        self.assertEqual(lexer.identifier("hmac-sha256;", 0), ("hmac-sha256", 11))
        self.assertEqual(lexer.identifier("ns1.example.com {", 0), ("ns1.example.com", 15))
        self.assertEqual(lexer.identifier("::1 {", 0), ("::1", 3))
        self.assertIsNone(lexer.identifier("{", 0))

    def test_directive_name_stops_at_dot(self):
        self.assertEqual(lexer.directive_name("zone-statistics full;", 0), ("zone-statistics", 15))

    def test_quoted_string_escapes(self):
        text = r'"a\"b\\c\nd\te\q"'
        value, end = lexer.quoted_string(text, 0)
        self.assertEqual(value, 'a"b\\c\nd\te\\q')
        self.assertEqual(end, len(text))

    def test_quoted_string_not_at_quote(self):
        self.assertIsNone(lexer.quoted_string("abc", 0))

    def test_unterminated_quoted_string(self):
        with self.assertRaises(IncompleteInputError):
            lexer.quoted_string('"abc', 0)

    def test_quote_is_inverse(self):
        values = ["plain", 'with "quotes"', "back\\slash", "tab\tand\nnewline", ""]
        for value in values:
            with self.subTest(value=value):
                encoded = lexer.quote(value)
                self.assertEqual(lexer.quoted_string(encoded, 0), (value, len(encoded)))


class TestNumbersAndAddresses(unittest.TestCase):
    """Test ip_address, unsigned and port_number."""

    def test_ipv4(self):
        self.assertEqual(
            lexer.ip_address("10.244.1.18;", 0),
            (ipaddress.ip_address("10.244.1.18"), 11),
        )

    def test_ipv6(self):
        address, end = lexer.ip_address("2001:db8::1;", 0)
        self.assertEqual(address, ipaddress.ip_address("2001:db8::1"))
        self.assertEqual(end, 11)

    def test_cidr_suffix_is_discarded(self):
        with_suffix = lexer.ip_address("10.244.1.18/32;", 0)
        without_suffix = lexer.ip_address("10.244.1.18;", 0)
        self.assertEqual(with_suffix[0], without_suffix[0])
        self.assertEqual(with_suffix[1], 14)

    def test_not_an_address(self):
        invalid = ["key", "999.1.1.1", "1.2.3", "none"]
        for text in invalid:
            with self.subTest(text=text):
                self.assertIsNone(lexer.ip_address(text, 0))

    def test_unsigned(self):
        self.assertEqual(lexer.unsigned("3600;", 0), (3600, 4))
        self.assertIsNone(lexer.unsigned("abc", 0))
        self.assertIsNone(lexer.unsigned("4294967296", 0))

    def test_port_overflow_fails(self):
        self.assertEqual(lexer.port_number("953;", 0), (953, 3))
        self.assertEqual(lexer.port_number("65535", 0), (65535, 5))
        self.assertIsNone(lexer.port_number("65536", 0))


class TestStatementScanning(unittest.TestCase):
    """Test brace-aware scanning."""

    def test_find_block_end_nested_and_quoted(self):
        text = '{ a { b; }; "}" }; x'
        end = lexer.find_block_end(text, 0)
        self.assertEqual(text[end:], "; x")

    def test_find_block_end_unterminated(self):
        with self.assertRaises(IncompleteInputError):
            lexer.find_block_end("{ a { b; };", 0)

    def test_find_statement_end_ignores_quoted_semicolon(self):
        text = 'key "a;b"; x'
        self.assertEqual(lexer.find_statement_end(text, 0), text.index('";') + 1)

    def test_find_statement_end_stops_at_closing_brace(self):
        text = "orphan }; x"
        self.assertEqual(lexer.find_statement_end(text, 0), text.index("}"))

    def test_skip_statement(self):
        text = "grant { a; b; }; next"
        self.assertEqual(text[lexer.skip_statement(text, 0):], " next")


class TestSyntaxErrors(unittest.TestCase):
    """Test error construction."""

    def test_line_column(self):
        self.assertEqual(lexer.line_column("ab\ncd", 4), (2, 2))
        self.assertEqual(lexer.line_column("abc", 0), (1, 1))

    def test_incomplete_when_only_whitespace_remains(self):
        error = lexer.syntax_error("key  \n", 3, "expected name")
        self.assertIsInstance(error, IncompleteInputError)

    def test_plain_syntax_error_with_position(self):
        error = lexer.syntax_error("key\n bogus", 5, "unexpected token", "'{'")
        self.assertIsInstance(error, ConfSyntaxError)
        self.assertNotIsInstance(error, IncompleteInputError)
        self.assertEqual((error.line, error.column), (2, 2))
        self.assertIn("expected '{'", str(error))
        self.assertIn("line 2, column 2", str(error))


if __name__ == "__main__":
    unittest.main()
