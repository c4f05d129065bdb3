"""pytest integration: settings, the step_timeout marker and the step_context fixture.

Enable it from a conftest.py:

    pytest_plugins = ["asyncsteps.plugin"]
"""
import logging

import pytest
import pytest_asyncio
import voluptuous as vol

from .config import TIMEOUT_SCHEMA, load_settings
from .const import (
    CONF_POLL_INTERVAL,
    CONF_STEP_TIMEOUT,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_STEP_TIMEOUT,
    MARKER_STEP_TIMEOUT,
    PLUGIN_NAME,
)
from .context import TestExecutionContext, default_context, swap_default_context

_LOGGER = logging.getLogger(__name__)

SETTINGS_KEY = pytest.StashKey[dict]()
PREVIOUS_CONTEXT_KEY = pytest.StashKey[TestExecutionContext | None]()


def pytest_addoption(parser):
    parser.addini(
        CONF_STEP_TIMEOUT,
        help="Milliseconds a step_test may run before its watchdog fails it (0 disables)",
        default=str(DEFAULT_STEP_TIMEOUT),
    )
    parser.addini(
        CONF_POLL_INTERVAL,
        help="Milliseconds between two evaluations of a wait_until predicate",
        default=str(DEFAULT_POLL_INTERVAL),
    )


def pytest_configure(config):
    config.addinivalue_line(
        "markers",
        f"{MARKER_STEP_TIMEOUT}(milliseconds): watchdog deadline for a step_test, 0 disables it",
    )
    try:
        settings = load_settings(
            {
                CONF_STEP_TIMEOUT: config.getini(CONF_STEP_TIMEOUT),
                CONF_POLL_INTERVAL: config.getini(CONF_POLL_INTERVAL),
            }
        )
    except vol.Invalid as ex:
        raise pytest.UsageError(f"{PLUGIN_NAME}: invalid configuration: {ex}") from ex
    _LOGGER.debug("Settings: %s", settings)
    config.stash[SETTINGS_KEY] = settings
    config.stash[PREVIOUS_CONTEXT_KEY] = swap_default_context(
        TestExecutionContext(poll_interval=settings[CONF_POLL_INTERVAL])
    )


def pytest_unconfigure(config):
    if PREVIOUS_CONTEXT_KEY not in config.stash:
        return
    context = swap_default_context(config.stash[PREVIOUS_CONTEXT_KEY])
    if context is not None and context.active:
        context.end()


def step_timeout_for(node, settings):
    marker = node.get_closest_marker(MARKER_STEP_TIMEOUT)
    if marker is None:
        return settings[CONF_STEP_TIMEOUT]
    value = marker.args[0] if marker.args else marker.kwargs.get("milliseconds")
    try:
        return TIMEOUT_SCHEMA(value)
    except vol.Invalid as ex:
        raise pytest.UsageError(
            f"{PLUGIN_NAME}: invalid {MARKER_STEP_TIMEOUT} marker on {node.nodeid}: {ex}"
        ) from ex


@pytest_asyncio.fixture
async def step_context(request):
    """Begin a step chain for the test and tear it down afterwards."""
    timeout = step_timeout_for(request.node, request.config.stash[SETTINGS_KEY])
    context = default_context()
    context.begin(timeout)
    try:
        yield context
    finally:
        context.end()
