"""Constants for the asyncsteps test helpers."""

PLUGIN_NAME = "asyncsteps"

CONF_STEP_TIMEOUT = "step_timeout"
CONF_POLL_INTERVAL = "step_poll_interval"

DEFAULT_STEP_TIMEOUT = 2000
DEFAULT_POLL_INTERVAL = 100

MARKER_STEP_TIMEOUT = "step_timeout"
FIXTURE_STEP_CONTEXT = "step_context"

MESSAGE_AND_THEN = "asyncsteps.and_then(): returned awaitable never resolved."
MESSAGE_BODY_AWAITABLE = (
    "asyncsteps.step_test(): awaitable returned from the test body never resolved."
)
MESSAGE_DEFAULT_TIMEOUT = (
    "asyncsteps.step_test(): timed out - the step chain never settled"
    " and no step reported what it was waiting for."
)
MESSAGE_WAIT_UNTIL = (
    "asyncsteps.wait_until() timed out since the following function never"
    " returned a truthy value within the timeout: {predicate}"
)
MESSAGE_WAIT_UNTIL_ERROR = (
    "asyncsteps.wait_until() timed out. This is the last exception that was caught: {error}"
)
MESSAGE_WAIT_MILLIS = (
    "asyncsteps.wait_millis() timed out while waiting {milliseconds} milliseconds"
)
MESSAGE_WAIT_UNTIL_CHANGE = (
    "asyncsteps.wait_until_change() timed out since the return value of the"
    " following function never changed: {predicate}"
)
MESSAGE_NO_ACTIVE_CHAIN = (
    "asyncsteps.{primitive}(): You cannot use the async step functions without an"
    " active step chain. Use the step_context fixture (or step_test) to set one up."
)
MESSAGE_NOT_IN_STEP_CONTEXT = (
    "asyncsteps.{primitive}(): You can only use the async step functions inside a"
    " step_test body. Also note that you cannot nest calls to async step functions."
)
