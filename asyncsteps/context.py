"""Per-test execution state for the step scheduler."""
from __future__ import annotations

import asyncio
import contextlib
import itertools
import logging

from .chain import StepChain
from .const import (
    DEFAULT_POLL_INTERVAL,
    MESSAGE_DEFAULT_TIMEOUT,
    MESSAGE_NO_ACTIVE_CHAIN,
    MESSAGE_NOT_IN_STEP_CONTEXT,
)
from .errors import NoActiveChainError, NotInStepContextError, StepTimeoutError
from .message import Message, resolve
from .poller import PollingWaiter
from .scheduler import Scheduler
from .watchdog import WatchdogTimer

_LOGGER = logging.getLogger(__name__)


class TestExecutionContext:
    """Owns the step chain of the currently running test.

    Holds the live chain and its identity, the step guard flag, the watchdog
    and the scheduler used for every timer created on behalf of the chain.
    The host lifecycle calls begin() before a test and end() after it; the
    step-aware wrapper enters step_body() around the synchronous test body.

    Watchdog timeouts are handed to fault_reporter. The default reporter
    stores the failure on the context's fault future, which
    runner.run_step_body races against the chain.
    """

    __test__ = False  # not a pytest test class

    def __init__(self, *, poll_interval: int = DEFAULT_POLL_INTERVAL, fault_reporter=None):
        self.chain: StepChain | None = None
        self.in_step_body = False
        self.scheduler = Scheduler()
        self.poller = PollingWaiter(self.scheduler, self, poll_interval)
        self.watchdog = WatchdogTimer(self.scheduler, lambda: self.identity, self._on_timeout)
        self._fault_reporter = fault_reporter or self._store_fault
        self._fault: asyncio.Future | None = None
        self._identities = itertools.count(1)

    @property
    def identity(self):
        return self.chain.identity if self.chain is not None else None

    @property
    def active(self) -> bool:
        return self.chain is not None

    @property
    def fault(self) -> asyncio.Future | None:
        return self._fault

    def begin(self, timeout: int | None = None):
        if self.chain is not None:
            _LOGGER.debug("Chain %s already live, ignoring begin()", self.chain.identity)
            return
        self.chain = StepChain(next(self._identities))
        self._fault = asyncio.get_running_loop().create_future()
        _LOGGER.debug("Began chain %s", self.chain.identity)
        self.watchdog.arm(timeout, self.chain.identity)

    def end(self):
        if self.chain is not None:
            _LOGGER.debug("Ending chain %s", self.chain.identity)
        self.chain = None
        self.watchdog.disarm()
        self.scheduler.cancel_all()
        if self._fault is not None:
            if self._fault.done() and not self._fault.cancelled():
                # reported already, mark as retrieved
                self._fault.exception()
            else:
                self._fault.cancel()
        self._fault = None

    @contextlib.contextmanager
    def step_body(self):
        previous = self.in_step_body
        self.in_step_body = True
        try:
            yield self
        finally:
            self.in_step_body = previous

    def ensure_active(self, primitive):
        if self.chain is None:
            raise NoActiveChainError(MESSAGE_NO_ACTIVE_CHAIN.format(primitive=primitive))
        return self.chain

    def ensure_in_step_body(self, primitive):
        chain = self.ensure_active(primitive)
        if not self.in_step_body:
            raise NotInStepContextError(MESSAGE_NOT_IN_STEP_CONTEXT.format(primitive=primitive))
        return chain

    def append(self, step, message: Message | None, primitive="and_then"):
        self.ensure_in_step_body(primitive).append(step, message)

    def tail(self) -> asyncio.Future:
        return self.ensure_active("step_test").tail()

    def set_pending_message(self, message: Message | None, identity=None):
        """Replace the pending message of the live chain.

        With identity given, only the chain with that identity is touched.
        """
        if self.chain is None:
            return
        if identity is not None and identity != self.chain.identity:
            return
        self.chain.pending_message = message

    def set_timeout(self, timeout: int | None):
        self.ensure_active("set_timeout")
        self.watchdog.reset(timeout)

    def error_message(self) -> str:
        message = self.chain.pending_message if self.chain is not None else None
        return resolve(message) or MESSAGE_DEFAULT_TIMEOUT

    def report_fault(self, error: BaseException):
        self._fault_reporter(error)

    def _on_timeout(self, chain_identity):
        error = StepTimeoutError(self.error_message())
        _LOGGER.error("Chain %s timed out: %s", chain_identity, error)
        self.report_fault(error)

    def _store_fault(self, error: BaseException):
        if self._fault is not None and not self._fault.done():
            self._fault.set_exception(error)

    async def settle(self, completion):
        """Wait for completion, unless a fault is reported first.

        If both are ready in the same wakeup, the fault wins.
        """
        completion = asyncio.ensure_future(completion)
        if self._fault is None:
            return await completion
        fault = self._fault
        await asyncio.wait({completion, fault}, return_when=asyncio.FIRST_COMPLETED)
        if fault.done() and not fault.cancelled():
            if not completion.done():
                _LOGGER.debug("Fault reported before the chain settled")
                completion.add_done_callback(_retrieve_late_result)
            elif not completion.cancelled():
                completion.exception()
            return fault.result()
        return completion.result()


def _retrieve_late_result(completion):
    if completion.cancelled():
        return
    error = completion.exception()
    if error is not None:
        _LOGGER.debug("Chain failed after a fault was reported: %r", error)


_default_context: TestExecutionContext | None = None


def default_context() -> TestExecutionContext:
    """Return the process-wide context used by the module level step functions."""
    global _default_context
    if _default_context is None:
        _default_context = TestExecutionContext()
    return _default_context


def configure_default_context(**kwargs) -> TestExecutionContext:
    """Replace the process-wide context, e.g. with a different poll interval."""
    if _default_context is not None and _default_context.active:
        _default_context.end()
    swap_default_context(TestExecutionContext(**kwargs))
    return _default_context


def swap_default_context(context: TestExecutionContext | None) -> TestExecutionContext | None:
    """Install context as the process-wide one and return the one it replaces.

    The replaced context is left untouched so it can be swapped back later.
    """
    global _default_context
    previous, _default_context = _default_context, context
    return previous
