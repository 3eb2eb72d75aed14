"""
Step definitions for rndc configuration file features.
"""

import dns.name
from behave import given, when, then

from rndc_config_manager.core.credentials import load_credentials
from rndc_config_manager.core.errors import ParseError
from rndc_config_manager.parsers.conf_parser import resolve_includes


@given('an rndc configuration file "{name}" containing:')
def step_impl(context, name):
    """Write a configuration file into the scenario directory."""
    (context.work_dir / name).write_text(context.text)


@when('I resolve "{name}"')
def step_impl(context, name):
    """Resolve a configuration file with its includes."""
    try:
        context.document = resolve_includes(context.work_dir / name)
    except ParseError as e:
        context.error = e


@when('I load credentials from "{name}"')
def step_impl(context, name):
    """Select credentials from a configuration file."""
    context.credentials = load_credentials([context.work_dir / name])


@then("the configuration has {count:d} key")
def step_impl(context, count):
    assert context.error is None, f"Resolution failed: {context.error}"
    assert len(context.document.keys) == count


@then('key "{name}" uses algorithm "{algorithm}" with secret "{secret}"')
def step_impl(context, name, algorithm, secret):
    key = context.document.keys[name]
    assert key.algorithm == algorithm, key.algorithm
    assert key.secret == secret, key.secret


@then('the default server is "{server}"')
def step_impl(context, server):
    assert context.error is None, f"Resolution failed: {context.error}"
    assert context.document.options.default_server == server


@then("the default port is {port:d}")
def step_impl(context, port):
    assert context.document.options.default_port == port


@then('resolution fails with "{message}"')
def step_impl(context, message):
    assert context.error is not None, "Resolution should have failed"
    assert message in str(context.error), str(context.error)


@then('the credentials address is "{address}"')
def step_impl(context, address):
    assert context.credentials.address == address, context.credentials.address


@then('the credentials keyring contains "{name}"')
def step_impl(context, name):
    assert dns.name.from_text(name) in context.credentials.keyring()
