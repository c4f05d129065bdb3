"""Errors raised by the step scheduler."""


class AsyncStepsError(Exception):
    """Base class for all asyncsteps errors."""


class NoActiveChainError(AsyncStepsError):
    pass


class NotInStepContextError(AsyncStepsError):
    pass


class StepTimeoutError(AsyncStepsError, TimeoutError):
    """Raised by the watchdog when a step chain does not settle in time."""


class PredicateEvaluationError(AsyncStepsError):
    def __init__(self, cause: Exception):
        super().__init__(repr(cause))
        self.cause = cause
