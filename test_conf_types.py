#!/usr/bin/env python3
"""
Tests for the rndc configuration value objects.
"""

import dataclasses
import ipaddress
import unittest
from pathlib import Path

from rndc_config_manager.core.conf_types import (
    ConfigDocument,
    KeyBlock,
    OptionsBlock,
    ServerAddress,
    ServerBlock,
)
from rndc_config_manager.parsers.conf_parser import parse_document


class TestServerAddress(unittest.TestCase):
    """Test ServerAddress parsing."""

    def test_ip_literals(self):
        for value in ["127.0.0.1", "::1", "2001:db8::53"]:
            with self.subTest(value=value):
                address = ServerAddress.parse(value)
                self.assertTrue(address.is_ip)
                self.assertEqual(address.ip, ipaddress.ip_address(value))
                self.assertEqual(str(address), value)

    def test_hostname(self):
        address = ServerAddress.parse("localhost")
        self.assertFalse(address.is_ip)
        self.assertEqual(address.hostname, "localhost")
        self.assertEqual(str(address), "localhost")


class TestOptionsBlock(unittest.TestCase):
    """Test per-field option merging."""

    def test_merged_over_fills_unset_fields(self):
        including = OptionsBlock(default_server="localhost")
        included = OptionsBlock(default_server="other", default_port=8953)

        merged = including.merged_over(included)

        self.assertEqual(merged.default_server, "localhost")
        self.assertEqual(merged.default_port, 8953)
        self.assertIsNone(merged.default_key)

    def test_is_empty(self):
        self.assertTrue(OptionsBlock().is_empty())
        self.assertFalse(OptionsBlock(default_port=953).is_empty())

    def test_immutable(self):
        with self.assertRaises(dataclasses.FrozenInstanceError):
            OptionsBlock().default_port = 1


class TestSerialization(unittest.TestCase):
    """Test to_conf_text output."""

    def test_key_block(self):
        key = KeyBlock(name="k", algorithm="hmac-sha512", secret="c2VjcmV0")
        self.assertEqual(
            key.to_conf_block(),
            '{\n    algorithm hmac-sha512;\n    secret "c2VjcmV0";\n};',
        )

    def test_empty_server_block(self):
        server = ServerBlock(address=ServerAddress.parse("localhost"))
        self.assertEqual(server.to_conf_block(), "{ };")

    def test_document_reparses_to_same_value(self):
        document = ConfigDocument(
            keys={
                "rndc-key": KeyBlock("rndc-key", "hmac-sha256", "dGVzdA=="),
                'odd "name"': KeyBlock('odd "name"', "hmac-md5", "eA=="),
            },
            servers={
                "::1": ServerBlock(
                    address=ServerAddress.parse("::1"),
                    key="rndc-key",
                    port=953,
                    addresses=(ipaddress.ip_address("10.0.0.1"),),
                ),
                "localhost": ServerBlock(address=ServerAddress.parse("localhost")),
            },
            options=OptionsBlock(
                default_server="localhost", default_key="rndc-key", default_port=953
            ),
            includes=(Path("/etc/bind/rndc.key"),),
        )

        self.assertEqual(parse_document(document.to_conf_text()), document)

    def test_empty_options_are_omitted(self):
        document = ConfigDocument(keys={"k": KeyBlock("k", secret="eA==")})
        self.assertNotIn("options", document.to_conf_text())

    def test_default_key_lookup(self):
        document = ConfigDocument(
            keys={"k": KeyBlock("k")}, options=OptionsBlock(default_key="missing")
        )
        self.assertIsNone(document.default_key())
        self.assertIsNone(ConfigDocument().default_key())


if __name__ == "__main__":
    unittest.main()
