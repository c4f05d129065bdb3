import logging

from .scheduler import Scheduler

_LOGGER = logging.getLogger(__name__)


class WatchdogTimer:
    """Fails the running test if its step chain stalls past a deadline.

    The timer is bound to the identity of the chain it was armed for and
    stays silent if it fires after that chain has been replaced. Firing is
    reported through on_timeout and never through the chain itself.
    """

    def __init__(self, scheduler: Scheduler, live_identity, on_timeout):
        self._scheduler = scheduler
        self._live_identity = live_identity
        self._on_timeout = on_timeout
        self._handle = None
        self.deadline = None
        self.bound_identity = None

    @property
    def armed(self) -> bool:
        return self._handle is not None

    def arm(self, deadline_millis, chain_identity):
        self.disarm()
        self.deadline = deadline_millis
        self.bound_identity = chain_identity
        if not deadline_millis:
            _LOGGER.debug("No deadline for chain %s, watchdog left disarmed", chain_identity)
            return
        _LOGGER.debug("Arming watchdog for chain %s: %d ms", chain_identity, deadline_millis)
        self._handle = self._scheduler.schedule(deadline_millis, self._fire, chain_identity)

    def reset(self, deadline_millis):
        self.arm(deadline_millis, self.bound_identity)

    def disarm(self):
        if self._handle is not None:
            _LOGGER.debug("Disarming watchdog for chain %s", self.bound_identity)
        self._scheduler.cancel(self._handle)
        self._handle = None

    def _fire(self, chain_identity):
        self._handle = None
        if chain_identity != self._live_identity():
            _LOGGER.debug("Watchdog for stale chain %s fired, ignoring", chain_identity)
            return
        self._on_timeout(chain_identity)
