"""Step-aware test bodies and their pytest declarations."""
from __future__ import annotations

import asyncio
import functools
import inspect
import logging
from dataclasses import dataclass
from typing import Callable

import pytest

from .const import FIXTURE_STEP_CONTEXT, MESSAGE_BODY_AWAITABLE
from .context import TestExecutionContext, default_context
from .message import Literal

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class SimpleBody:
    """A test body that completes when its step chain settles."""

    func: Callable


@dataclass(frozen=True)
class CallbackBody:
    """A test body that receives a done(error=None) callback as its first argument.

    The test completes when done is called, whatever the state of the chain.
    """

    func: Callable


def _completion_callback(future: asyncio.Future):
    def done(error=None):
        if future.done():
            return
        if error is None:
            future.set_result(None)
        elif isinstance(error, BaseException):
            future.set_exception(error)
        else:
            future.set_exception(AssertionError(error))

    return done


def _log_unobserved_failure(tail: asyncio.Future):
    if tail.cancelled():
        return
    error = tail.exception()
    if error is not None:
        _LOGGER.warning("Step chain failed after the test took over completion with done(): %r", error)


async def run_step_body(context: TestExecutionContext, body, *args, **kwargs):
    """Run a step-aware body and wait for it to complete.

    The body runs synchronously with the step guard on. If it returns an
    awaitable (an async def body, for example) that awaitable becomes the
    last step of the chain. Step functions cannot be used from inside such
    an awaitable since it runs after the guard is off.
    """
    context.ensure_active("step_test")
    done_future = None
    if isinstance(body, CallbackBody):
        done_future = asyncio.get_running_loop().create_future()
        args = (_completion_callback(done_future), *args)

    with context.step_body():
        result = body.func(*args, **kwargs)
        if inspect.isawaitable(result):
            context.append(lambda _: result, Literal(MESSAGE_BODY_AWAITABLE), "step_test")

    if done_future is None:
        return await context.settle(context.tail())

    context.tail().add_done_callback(_log_unobserved_failure)
    return await context.settle(done_future)


def _declare(body, signature=None):
    @functools.wraps(body.func)
    async def wrapper(*args, **kwargs):
        await run_step_body(default_context(), body, *args, **kwargs)

    if signature is not None:
        wrapper.__signature__ = signature
    wrapper = pytest.mark.usefixtures(FIXTURE_STEP_CONTEXT)(wrapper)
    return pytest.mark.asyncio(wrapper)


def step_test(func):
    """Declare a pytest test whose body uses the step functions.

    The body is written as plain synchronous code; the test passes when
    every step it appended has completed, and fails on the first step that
    raises or when the step_timeout watchdog fires.
    """
    return _declare(SimpleBody(func))


def step_test_with_done(func):
    """Like step_test, but the body completes the test by calling done().

    The first parameter of the body receives the done callback; any other
    parameters are resolved as pytest fixtures.
    """
    signature = inspect.signature(func)
    parameters = list(signature.parameters.values())
    if not parameters:
        raise TypeError(
            f"{func.__qualname__} must accept the done callback as its first parameter"
        )
    return _declare(CallbackBody(func), signature.replace(parameters=parameters[1:]))


def _skip(func=None, *, reason="step test skipped"):
    def decorate(f):
        return pytest.mark.skip(reason=reason)(step_test(f))

    if func is None:
        return decorate
    return decorate(func)


step_test.skip = _skip
