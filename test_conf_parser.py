#!/usr/bin/env python3
"""
Tests for the rndc.conf parser and include resolution.
"""

import ipaddress
import os
import tempfile
import unittest
from pathlib import Path

from rndc_config_manager.core.errors import (
    CircularIncludeError,
    ConfFileNotFoundError,
    ConfIOError,
    ConfSyntaxError,
    IncompleteInputError,
    InvalidIpAddressError,
    InvalidServerAddressError,
)
from rndc_config_manager.parsers.conf_parser import parse_document, resolve_includes

RNDC_CONF = """
key "rndc-key" {
    algorithm hmac-sha256;
    secret "dGVzdC1zZWNyZXQ=";
};

options {
    default-server localhost;
    default-key "rndc-key";
};
"""


class TestParseDocument(unittest.TestCase):
    """Test parsing of a single rndc.conf text."""

    def test_key_and_options(self):
        document = parse_document(RNDC_CONF)

        self.assertEqual(list(document.keys), ["rndc-key"])
        key = document.keys["rndc-key"]
        self.assertEqual(key.algorithm, "hmac-sha256")
        self.assertEqual(key.secret, "dGVzdC1zZWNyZXQ=")
        self.assertEqual(document.options.default_server, "localhost")
        self.assertEqual(document.default_key(), key)
        self.assertEqual(document.default_server(), "localhost")

    def test_single_key_block(self):
        document = parse_document(
            'key "rndc-key" { algorithm hmac-sha256; secret "dGVzdA=="; };'
        )

        self.assertEqual(len(document.keys), 1)
        self.assertEqual(document.keys["rndc-key"].algorithm, "hmac-sha256")
        self.assertEqual(document.keys["rndc-key"].secret, "dGVzdA==")
        self.assertTrue(document.options.is_empty())

    def test_empty_input(self):
        document = parse_document("  # nothing here\n")
        self.assertEqual(document.keys, {})
        self.assertEqual(document.servers, {})
        self.assertEqual(document.includes, ())

    def test_key_defaults(self):
        with self.assertLogs("rndc_config_manager.parsers.conf_parser", "WARNING"):
            document = parse_document('key "bare" { };')

        key = document.keys["bare"]
        self.assertEqual(key.algorithm, "hmac-sha256")
        self.assertEqual(key.secret, "")

    def test_comments_everywhere(self):
        text = """
        // leading comment
        key /* inline */ "k" { # hash comment
            algorithm hmac-md5; // after statement
            secret "c2VjcmV0"; /* block
            spanning lines */
        };
        """
        document = parse_document(text)
        self.assertEqual(document.keys["k"].algorithm, "hmac-md5")
        self.assertEqual(document.keys["k"].secret, "c2VjcmV0")

    def test_server_block(self):
        text = """
        server 192.168.1.1 {
            key "rndc-key";
            port 953;
            addresses { 10.0.0.1; 10.0.0.2/24 };
        };
        """
        document = parse_document(text)

        server = document.servers["192.168.1.1"]
        self.assertTrue(server.address.is_ip)
        self.assertEqual(server.key, "rndc-key")
        self.assertEqual(server.port, 953)
        self.assertEqual(
            server.addresses,
            (ipaddress.ip_address("10.0.0.1"), ipaddress.ip_address("10.0.0.2")),
        )

    def test_ipv6_and_hostname_servers(self):
        text = """
        server ::1 { port 953; };
        server ns1.example.com { key "k"; };
        """
        document = parse_document(text)

        self.assertEqual(document.servers["::1"].address.ip, ipaddress.ip_address("::1"))
        self.assertFalse(document.servers["ns1.example.com"].address.is_ip)
        self.assertEqual(document.servers["ns1.example.com"].address.hostname, "ns1.example.com")

    def test_empty_server_block(self):
        document = parse_document("server localhost { };")
        server = document.servers["localhost"]
        self.assertIsNone(server.key)
        self.assertIsNone(server.port)
        self.assertIsNone(server.addresses)

    def test_options_fields(self):
        document = parse_document(
            'options { default-server 10.0.0.1; default-key "k"; default-port 8953; };'
        )
        self.assertEqual(document.options.default_server, "10.0.0.1")
        self.assertEqual(document.options.default_key, "k")
        self.assertEqual(document.options.default_port, 8953)

    def test_later_options_block_overrides_per_field(self):
        document = parse_document(
            "options { default-server a; default-port 1; };\n"
            "options { default-port 2; };"
        )
        self.assertEqual(document.options.default_server, "a")
        self.assertEqual(document.options.default_port, 2)

    def test_duplicate_key_later_wins(self):
        document = parse_document(
            'key "k" { secret "Zmlyc3Q="; };\nkey "k" { secret "c2Vjb25k"; };'
        )
        self.assertEqual(document.keys["k"].secret, "c2Vjb25k")

    def test_include_is_recorded_not_followed(self):
        document = parse_document('include "/etc/bind/rndc.key";')
        self.assertEqual(document.includes, (Path("/etc/bind/rndc.key"),))
        self.assertEqual(document.keys, {})


class TestParseErrors(unittest.TestCase):
    """Test parse failures."""

    def test_port_overflow(self):
        with self.assertRaises(ConfSyntaxError):
            parse_document("server localhost { port 70000; };")

    def test_invalid_server_address(self):
        with self.assertRaises(InvalidServerAddressError):
            parse_document("server 999.1.1.1 { };")

    def test_invalid_address_list_entry(self):
        with self.assertRaises(InvalidIpAddressError):
            parse_document("server localhost { addresses { not-an-ip; }; };")

    def test_unknown_statement(self):
        with self.assertRaises(ConfSyntaxError) as context:
            parse_document('key "k" { secret "eA=="; };\nzone "x" { };')
        self.assertEqual(context.exception.line, 2)

    def test_unknown_key_statement(self):
        with self.assertRaises(ConfSyntaxError):
            parse_document('key "k" { colour blue; };')

    def test_truncated_input(self):
        truncated = [
            'key "k" { algorithm hmac-md5;',
            'key "k" { secret "abc',
            "options { default-server localhost; }",
            "server localhost {",
        ]
        for text in truncated:
            with self.subTest(text=text):
                with self.assertRaises(IncompleteInputError):
                    parse_document(text)

    def test_unquoted_key_name(self):
        with self.assertRaises(ConfSyntaxError):
            parse_document("key k { };")


class TestResolveIncludes(unittest.TestCase):
    """Test include resolution against real files."""

    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.base = Path(self.temp_dir.name)

    def tearDown(self):
        self.temp_dir.cleanup()

    def write(self, name: str, content: str) -> Path:
        path = self.base / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
        return path

    def test_included_keys_are_merged(self):
        self.write("rndc.key", 'key "rndc-key" { algorithm hmac-sha256; secret "dGVzdA=="; };')
        main = self.write(
            "rndc.conf", 'include "rndc.key";\noptions { default-key "rndc-key"; };'
        )

        document = resolve_includes(main)

        self.assertEqual(document.keys["rndc-key"].secret, "dGVzdA==")
        self.assertEqual(document.default_key().name, "rndc-key")
        self.assertEqual(document.includes, (self.base / "rndc.key",))

    def test_includer_wins_for_keys(self):
        self.write("included.conf", 'key "k" { secret "aW5jbHVkZWQ="; };')
        main = self.write(
            "rndc.conf", 'include "included.conf";\nkey "k" { secret "bWFpbg=="; };'
        )

        document = resolve_includes(main)
        self.assertEqual(document.keys["k"].secret, "bWFpbg==")

    def test_options_merge_per_field(self):
        self.write("port.conf", "options { default-port 8953; };")
        main = self.write(
            "rndc.conf", 'include "port.conf";\noptions { default-server localhost; };'
        )

        document = resolve_includes(main)
        self.assertEqual(document.options.default_server, "localhost")
        self.assertEqual(document.options.default_port, 8953)

    def test_includer_wins_for_options(self):
        self.write("included.conf", "options { default-server other; default-port 1; };")
        main = self.write(
            "rndc.conf", 'include "included.conf";\noptions { default-server localhost; };'
        )

        document = resolve_includes(main)
        self.assertEqual(document.options.default_server, "localhost")
        self.assertEqual(document.options.default_port, 1)

    def test_nested_relative_includes(self):
        self.write("sub/b.conf", 'key "deep" { secret "ZGVlcA=="; };')
        self.write("sub/a.conf", 'include "b.conf";')
        main = self.write("rndc.conf", 'include "sub/a.conf";')

        document = resolve_includes(main)
        self.assertIn("deep", document.keys)

    def test_absolute_include(self):
        key_file = self.write("keys/rndc.key", 'key "abs" { secret "YWJz"; };')
        main = self.write("rndc.conf", f'include "{key_file}";')

        document = resolve_includes(str(main))
        self.assertIn("abs", document.keys)

    def test_mutual_includes_are_circular(self):
        self.write("a.conf", 'include "b.conf";')
        self.write("b.conf", 'include "a.conf";')

        with self.assertRaises(CircularIncludeError):
            resolve_includes(self.base / "a.conf")

    def test_self_include_is_circular(self):
        main = self.write("rndc.conf", 'include "rndc.conf";')
        with self.assertRaises(CircularIncludeError):
            resolve_includes(main)

    def test_missing_include(self):
        main = self.write("rndc.conf", 'include "missing.key";')
        with self.assertRaises(ConfFileNotFoundError):
            resolve_includes(main)

    def test_missing_file(self):
        with self.assertRaises(ConfFileNotFoundError):
            resolve_includes(self.base / "nope.conf")

    def test_parse_error_in_included_file(self):
        self.write("broken.conf", "key {")
        main = self.write("rndc.conf", 'include "broken.conf";')
        with self.assertRaises(ConfSyntaxError):
            resolve_includes(main)

    def test_undecodable_file(self):
        main = self.base / "rndc.conf"
        main.write_bytes(b'key "k" { secret "\xff\xfe"; };')
        with self.assertRaises(ConfIOError):
            resolve_includes(main)

    def test_undecodable_include(self):
        (self.base / "rndc.key").write_bytes(b'key "k" { secret "\xff\xfe"; };')
        main = self.write("rndc.conf", 'include "rndc.key";')
        with self.assertRaises(ConfIOError):
            resolve_includes(main)

    def test_cwd_does_not_affect_relative_includes(self):
        self.write("rndc.key", 'key "k" { secret "eA=="; };')
        main = self.write("rndc.conf", 'include "rndc.key";')

        previous = os.getcwd()
        with tempfile.TemporaryDirectory() as other:
            os.chdir(other)
            try:
                document = resolve_includes(main)
            finally:
                os.chdir(previous)
        self.assertIn("k", document.keys)


if __name__ == "__main__":
    unittest.main()
