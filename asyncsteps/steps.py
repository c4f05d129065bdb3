"""Step functions available inside a step_test body.

Each call appends one or more steps to the live chain and returns at once;
the steps run after the body has returned, in call order, each receiving
the value produced by the step before it.

    wait_until(lambda: find_row("alice"))
    and_then(lambda row: row.click())
    wait_until_change(lambda: page.title)
    and_then(lambda title: check(title == "Profile"))

Callbacks and predicates may accept the chained value as their only
positional argument, or no argument at all.
"""
from __future__ import annotations

import asyncio
import functools
import inspect

from .chain import describe
from .const import (
    MESSAGE_AND_THEN,
    MESSAGE_WAIT_MILLIS,
    MESSAGE_WAIT_UNTIL,
    MESSAGE_WAIT_UNTIL_CHANGE,
)
from .context import TestExecutionContext, default_context
from .message import Lazy, Literal, as_message


def _context(context: TestExecutionContext | None) -> TestExecutionContext:
    return default_context() if context is None else context


def accepts_chained_value(func) -> bool:
    try:
        inspect.signature(func).bind(None)
    except TypeError:
        return False
    except ValueError:
        # no signature available (some builtins), assume it takes the value
        return True
    return True


def with_chained_value(func):
    if accepts_chained_value(func):
        return func

    @functools.wraps(func)
    def call_without_value(_chained_value):
        return func()

    return call_without_value


def differs(new_value, initial_value) -> bool:
    """Change test for wait_until_change: equal values of different types differ."""
    return type(new_value) is not type(initial_value) or new_value != initial_value


def and_then(do_this, error_message=None, *, context: TestExecutionContext | None = None):
    """Run do_this with the value of the previous step once that step has settled.

    If do_this returns an awaitable, the chain waits for it. error_message
    (a string or a function returning one) is reported if the test times out
    while this step is running.
    """
    context = _context(context)
    message = as_message(error_message) or Literal(MESSAGE_AND_THEN)
    context.append(with_chained_value(do_this), message, "and_then")


def wait_until(predicate, error_message=None, *, context: TestExecutionContext | None = None):
    """Poll predicate until it returns something truthy; the next step receives that value.

    Exceptions raised by the predicate (failed asserts included) count as
    "not yet" and are retried.
    """
    context = _context(context)
    owner_identity = context.ensure_in_step_body("wait_until").identity
    check = with_chained_value(predicate)
    message = as_message(error_message) or Lazy(
        lambda: MESSAGE_WAIT_UNTIL.format(predicate=describe(predicate))
    )

    def poll(chained_value):
        future = asyncio.get_running_loop().create_future()

        def resolve(value):
            if not future.done():
                future.set_result(value)

        context.poller.poll_until_truthy(check, resolve, chained_value, owner_identity)
        return future

    context.append(poll, message, "wait_until")


def wait_millis(milliseconds, *, context: TestExecutionContext | None = None):
    """Wait a fixed number of milliseconds. The next step receives None.

    Prefer wait_until: fixed waits make tests either slow or flaky.
    """
    context = _context(context)
    context.append(
        lambda _: asyncio.sleep(milliseconds / 1000),
        Literal(MESSAGE_WAIT_MILLIS.format(milliseconds=milliseconds)),
        "wait_millis",
    )


def wait_until_change(predicate, error_message=None, *, context: TestExecutionContext | None = None):
    """Wait until predicate returns something different from its first result.

    The next step receives the new value.
    """
    context = _context(context)
    context.ensure_in_step_body("wait_until_change")
    sample = with_chained_value(predicate)
    message = as_message(error_message) or Lazy(
        lambda: MESSAGE_WAIT_UNTIL_CHANGE.format(predicate=describe(predicate))
    )
    initial_value = None
    new_value = None

    def record_initial(chained_value):
        nonlocal initial_value
        initial_value = sample(chained_value)
        return chained_value

    def changed(chained_value):
        nonlocal new_value
        new_value = sample(chained_value)
        return differs(new_value, initial_value)

    and_then(record_initial, context=context)
    wait_until(changed, message, context=context)
    and_then(lambda _: new_value, context=context)


def set_timeout(milliseconds, *, context: TestExecutionContext | None = None):
    """Change the deadline of the running test; the watchdog restarts from now.

    0 or None disables the watchdog for the rest of the test.
    """
    _context(context).set_timeout(milliseconds)
