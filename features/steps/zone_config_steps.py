"""
Step definitions for zone configuration features.
"""

import ipaddress

from behave import given, when, then

from rndc_config_manager.core.zone_manager import ZoneManager
from rndc_config_manager.parsers.zone_parser import parse_zone_block


@given("showzone output:")
def step_impl(context):
    """Keep the showzone text of the scenario."""
    context.showzone_output = context.text


@when("I parse the showzone output")
def step_impl(context):
    context.zone = parse_zone_block(context.showzone_output)


@when('I set also-notify to "{address}"')
def step_impl(context, address):
    context.zone = ZoneManager().apply_changes(context.zone, also_notify=[address])


@when('I set allow-update to "{address}"')
def step_impl(context, address):
    context.zone = ZoneManager().apply_changes(context.zone, allow_update=[address])


@then('the zone type is "{zone_type}"')
def step_impl(context, zone_type):
    assert context.zone.zone_type.value == zone_type, context.zone.zone_type


@then("the zone keeps a raw allow-update containing '{text}'")
def step_impl(context, text):
    assert context.zone.allow_update is None
    assert text in context.zone.allow_update_raw, context.zone.allow_update_raw


@then('raw option "{name}" is "{value}"')
def step_impl(context, name, value):
    assert context.zone.raw_options.get(name) == value, context.zone.raw_options


@then('allow-transfer is "{address}"')
def step_impl(context, address):
    assert context.zone.allow_transfer == (ipaddress.ip_address(address),)


@then("the modzone block contains '{text}'")
def step_impl(context, text):
    block = context.zone.to_protocol_block()
    assert text in block, block


@then('the modzone block contains "{text}"')
def step_impl(context, text):
    block = context.zone.to_protocol_block()
    assert text in block, block


@then('the modzone block does not contain "{text}"')
def step_impl(context, text):
    block = context.zone.to_protocol_block()
    assert text not in block, block


@then("the modzone block has no double semicolons")
def step_impl(context):
    block = context.zone.to_protocol_block()
    assert ";;" not in block, block
