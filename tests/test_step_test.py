"""The step functions used the way a test author uses them."""
import asyncio

import pytest

from asyncsteps import (
    and_then,
    default_context,
    set_timeout,
    step_test,
    step_test_with_done,
    wait_millis,
    wait_until,
    wait_until_change,
)


class Inbox:
    def __init__(self):
        self.messages = []

    def deliver_later(self, delay, message):
        asyncio.get_running_loop().call_later(delay, self.messages.append, message)

    def find(self, subject):
        return next((m for m in self.messages if m["subject"] == subject), None)


def check(condition, message="check failed"):
    assert condition, message


@step_test
def test_lookup_result_is_handed_to_next_step():
    inbox = Inbox()
    inbox.deliver_later(0.05, {"subject": "welcome", "body": "hello"})
    wait_until(lambda: inbox.find("welcome"))
    and_then(lambda message: check(message["body"] == "hello"))


@step_test
def test_wait_until_change_on_counter():
    inbox = Inbox()
    inbox.deliver_later(0.05, {"subject": "first", "body": ""})
    wait_until_change(lambda: len(inbox.messages))
    and_then(lambda count: check(count == 1))


@step_test
def test_steps_run_in_order():
    order = []
    and_then(lambda: order.append(1))
    wait_millis(10)
    and_then(lambda: order.append(2))
    wait_until(lambda: len(order) == 2)
    and_then(lambda: check(order == [1, 2]))


@step_test
def test_guard_is_off_inside_steps():
    and_then(lambda: check(not default_context().in_step_body))


@pytest.mark.step_timeout(5000)
@step_test
def test_marker_sets_deadline():
    and_then(lambda: check(default_context().watchdog.deadline == 5000))


@step_test
def test_set_timeout_from_body():
    set_timeout(3000)
    and_then(lambda: check(default_context().watchdog.deadline == 3000))


@step_test
def test_fixtures_reach_body(tmp_path):
    target = tmp_path / "report.txt"
    asyncio.get_running_loop().call_later(0.02, target.write_text, "done")
    wait_until(target.exists)
    and_then(lambda: check(target.read_text() == "done"))


@step_test
async def test_async_body_is_awaited_last():
    await asyncio.sleep(0.01)
    assert default_context().active


@step_test_with_done
def test_done_callback(done):
    asyncio.get_running_loop().call_later(0.02, done)


@step_test.skip(reason="demonstrates skipping")
def test_skipped_step_test():
    and_then(lambda: check(False, "skipped tests never run"))
