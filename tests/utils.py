import asyncio


async def wait_for_condition(predicate, *, timeout=0.5, interval=0.002, fail_msg="condition not met"):
    """Spin the event loop until predicate() is truthy, failing the test after timeout seconds.

    The scheduler under test runs on loop timers, so tests use this to wait
    for a poll evaluation, a watchdog fault or a chain to settle instead of
    sleeping for a guessed duration.
    """
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() >= deadline:
            raise AssertionError(fail_msg)
        await asyncio.sleep(interval)
