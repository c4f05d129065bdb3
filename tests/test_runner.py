import asyncio
import inspect
import logging

import pytest
import pytest_asyncio

from asyncsteps import (
    CallbackBody,
    NoActiveChainError,
    SimpleBody,
    TestExecutionContext,
    and_then,
    run_step_body,
    step_test,
    step_test_with_done,
    wait_millis,
)

pytestmark = pytest.mark.asyncio


@pytest_asyncio.fixture
async def context():
    ctx = TestExecutionContext()
    ctx.begin()
    yield ctx
    ctx.end()


async def test_guard_is_on_only_while_body_runs(context):
    observed = []

    def body():
        observed.append(context.in_step_body)
        and_then(lambda: observed.append(context.in_step_body), context=context)

    await run_step_body(context, SimpleBody(body))
    assert observed == [True, False]
    assert not context.in_step_body


async def test_guard_is_reset_when_body_raises(context):
    def body():
        raise RuntimeError("broken body")

    with pytest.raises(RuntimeError, match="broken body"):
        await run_step_body(context, SimpleBody(body))
    assert not context.in_step_body


async def test_body_needs_active_chain():
    with pytest.raises(NoActiveChainError):
        await run_step_body(TestExecutionContext(), SimpleBody(lambda: None))


async def test_returned_awaitable_becomes_last_step(context):
    events = []

    async def finish():
        events.append("awaitable")
        return "finished"

    def body():
        and_then(lambda: events.append("step"), context=context)
        return finish()

    assert await run_step_body(context, SimpleBody(body)) == "finished"
    assert events == ["step", "awaitable"]


async def test_done_completes_independently_of_chain(context):
    loop = asyncio.get_running_loop()
    steps_done = []

    def body(done):
        wait_millis(200, context=context)
        and_then(lambda: steps_done.append(True), context=context)
        loop.call_later(0.02, done)

    start = loop.time()
    await run_step_body(context, CallbackBody(body))
    assert loop.time() - start < 0.15
    assert steps_done == []
    await context.tail()
    assert steps_done == [True]


async def test_done_with_error_fails(context):
    def body(done):
        done(ValueError("reported through done"))

    with pytest.raises(ValueError, match="reported through done"):
        await run_step_body(context, CallbackBody(body))


async def test_done_with_message_fails_as_assertion(context):
    def body(done):
        done("plain message")
        done()

    with pytest.raises(AssertionError, match="plain message"):
        await run_step_body(context, CallbackBody(body))


async def test_done_body_receives_arguments(context):
    received = []

    def body(done, first, *, second):
        received.append((first, second))
        done()

    await run_step_body(context, CallbackBody(body), 1, second=2)
    assert received == [(1, 2)]


async def test_chain_failure_after_done_is_logged(context, caplog):
    def explode():
        raise KeyError("late")

    def body(done):
        done()
        and_then(explode, context=context)

    with caplog.at_level(logging.WARNING, logger="asyncsteps.runner"):
        await run_step_body(context, CallbackBody(body))
        with pytest.raises(KeyError):
            await context.tail()
        await asyncio.sleep(0)
    assert "took over completion" in caplog.text


def _body_with_fixture(tmp_path):
    return tmp_path


def _done_body(done, tmp_path):
    done()


async def test_step_test_keeps_fixture_signature():
    wrapped = step_test(_body_with_fixture)
    assert inspect.iscoroutinefunction(wrapped)
    assert list(inspect.signature(wrapped).parameters) == ["tmp_path"]
    assert {mark.name for mark in wrapped.pytestmark} == {"asyncio", "usefixtures"}


async def test_step_test_with_done_hides_done_parameter():
    wrapped = step_test_with_done(_done_body)
    assert list(inspect.signature(wrapped).parameters) == ["tmp_path"]


async def test_step_test_with_done_needs_parameter():
    with pytest.raises(TypeError, match="done callback"):
        step_test_with_done(lambda: None)


async def test_step_test_skip():
    wrapped = step_test.skip(_body_with_fixture, reason="not today")
    skip = [mark for mark in wrapped.pytestmark if mark.name == "skip"]
    assert skip[0].kwargs == {"reason": "not today"}
    decorate = step_test.skip(reason="later")
    assert any(mark.name == "skip" for mark in decorate(_body_with_fixture).pytestmark)
