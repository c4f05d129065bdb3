"""Write asynchronous test steps as plain sequential statements."""
from .context import (
    TestExecutionContext,
    configure_default_context,
    default_context,
    swap_default_context,
)
from .errors import (
    AsyncStepsError,
    NoActiveChainError,
    NotInStepContextError,
    PredicateEvaluationError,
    StepTimeoutError,
)
from .message import Lazy, Literal
from .runner import CallbackBody, SimpleBody, run_step_body, step_test, step_test_with_done
from .steps import and_then, set_timeout, wait_millis, wait_until, wait_until_change

__all__ = [
    "AsyncStepsError",
    "CallbackBody",
    "Lazy",
    "Literal",
    "NoActiveChainError",
    "NotInStepContextError",
    "PredicateEvaluationError",
    "SimpleBody",
    "StepTimeoutError",
    "TestExecutionContext",
    "and_then",
    "configure_default_context",
    "default_context",
    "run_step_body",
    "set_timeout",
    "step_test",
    "step_test_with_done",
    "swap_default_context",
    "wait_millis",
    "wait_until",
    "wait_until_change",
]
