import asyncio
import inspect
import logging

from .message import Message

_LOGGER = logging.getLogger(__name__)


def describe(func) -> str:
    """Best effort human readable description of a callable, for diagnostics."""
    try:
        return inspect.getsource(func).strip()
    except (OSError, TypeError):
        return getattr(func, "__qualname__", repr(func))


class StepChain:
    """An append-only sequence of steps collapsed into a single running tail.

    Each step is run by its own task, which first awaits the previous tail.
    A failing step therefore fails every task appended after it, and the
    last tail carries the first failure.
    """

    def __init__(self, identity: int, initial_value=None):
        self.identity = identity
        self.pending_message: Message | None = None
        self._loop = asyncio.get_running_loop()
        self._tail = self._loop.create_future()
        self._tail.set_result(initial_value)
        self._length = 0

    def __len__(self):
        return self._length

    def append(self, step, message: Message | None):
        previous = self._tail
        self._length += 1
        self._tail = self._loop.create_task(
            self._run_step(previous, step, message),
            name=f"asyncsteps-chain-{self.identity}-step-{self._length}",
        )

    async def _run_step(self, previous, step, message):
        chained_value = await previous
        self.pending_message = message
        _LOGGER.debug("Chain %s: running %s", self.identity, getattr(step, "__qualname__", step))
        try:
            result = step(chained_value)
            if inspect.isawaitable(result):
                result = await result
        except Exception as ex:
            ex.add_note(f"asyncsteps: raised by step {describe(step)}")
            raise
        return result

    def tail(self) -> asyncio.Future:
        return self._tail
