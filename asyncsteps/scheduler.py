import asyncio
import logging

_LOGGER = logging.getLogger(__name__)


class Scheduler:
    """Schedules one-shot callbacks on the running loop and tracks them.

    Every handle created here stays tracked until it fires or is cancelled,
    so the owner can drop all outstanding work in one call on teardown.
    Delays are in milliseconds.
    """

    def __init__(self):
        self._handles = set()

    def __len__(self):
        return len(self._handles)

    def schedule(self, delay_millis, callback, *args) -> asyncio.TimerHandle:
        handle = None

        def fire():
            self._handles.discard(handle)
            callback(*args)

        loop = asyncio.get_running_loop()
        handle = loop.call_later(delay_millis / 1000, fire)
        self._handles.add(handle)
        return handle

    def cancel(self, handle):
        if handle is None:
            return
        handle.cancel()
        self._handles.discard(handle)

    def cancel_all(self):
        if self._handles:
            _LOGGER.debug("Cancelling %d scheduled callbacks", len(self._handles))
        for handle in list(self._handles):
            handle.cancel()
        self._handles.clear()
