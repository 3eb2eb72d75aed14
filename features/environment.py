"""
Behave environment configuration for RNDC Config Manager feature tests.
"""

import logging
import shutil
import tempfile
from pathlib import Path

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def before_all(context):
    """Set up test environment before all tests."""
    context.base_dir = Path(__file__).parent.parent
    logger.info("Test environment setup complete")


def before_scenario(context, scenario):
    """Give each scenario its own directory for configuration files."""
    context.scenario_name = scenario.name
    context.work_dir = Path(tempfile.mkdtemp(prefix="rndc-config-"))
    context.error = None
    logger.info(f"Starting scenario: {scenario.name}")


def after_scenario(context, scenario):
    """Clean up after each test scenario."""
    shutil.rmtree(context.work_dir, ignore_errors=True)
    logger.info(f"Completed scenario: {scenario.name}")
