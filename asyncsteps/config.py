"""Validation of the asyncsteps pytest settings."""
import voluptuous as vol

from .const import (
    CONF_POLL_INTERVAL,
    CONF_STEP_TIMEOUT,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_STEP_TIMEOUT,
)

MILLISECONDS = vol.All(vol.Coerce(int), vol.Range(min=0))

CONFIG_SCHEMA = vol.Schema(
    {
        vol.Optional(CONF_STEP_TIMEOUT, default=DEFAULT_STEP_TIMEOUT): MILLISECONDS,
        vol.Optional(CONF_POLL_INTERVAL, default=DEFAULT_POLL_INTERVAL): vol.All(
            vol.Coerce(int), vol.Range(min=1)
        ),
    }
)

# 0 and None both mean "no deadline"
TIMEOUT_SCHEMA = vol.Schema(vol.Any(None, MILLISECONDS))


def load_settings(raw):
    """Validate raw (string valued) settings; blank values fall back to defaults."""
    return CONFIG_SCHEMA({key: value for key, value in raw.items() if value not in (None, "")})
