import logging
from typing import NamedTuple

from .const import DEFAULT_POLL_INTERVAL, MESSAGE_WAIT_UNTIL_ERROR
from .errors import PredicateEvaluationError
from .message import Literal
from .scheduler import Scheduler

_LOGGER = logging.getLogger(__name__)


class Evaluation(NamedTuple):
    value: object = None
    error: PredicateEvaluationError | None = None


def evaluate(predicate, chained_value) -> Evaluation:
    try:
        return Evaluation(value=predicate(chained_value))
    except Exception as ex:  # noqa: BLE001
        return Evaluation(error=PredicateEvaluationError(ex))


class PollingWaiter:
    """Re-evaluates a predicate on a fixed interval until it returns something truthy.

    A predicate that raises is treated as "not yet": the error is recorded as
    the chain's pending message so a later timeout can report it, and polling
    continues. A poll loop stops silently once the chain it was started for
    is no longer the live one.
    """

    def __init__(self, scheduler: Scheduler, context, interval_millis=DEFAULT_POLL_INTERVAL):
        self._scheduler = scheduler
        self._context = context
        self.interval = interval_millis

    def poll_until_truthy(self, predicate, on_truthy, chained_value, owner_identity):
        if owner_identity != self._context.identity:
            _LOGGER.debug("Poll loop of chain %s superseded, stopping", owner_identity)
            return
        evaluation = evaluate(predicate, chained_value)
        if evaluation.error is not None:
            _LOGGER.debug("Predicate raised, retrying: %s", evaluation.error)
            self._context.set_pending_message(
                Literal(MESSAGE_WAIT_UNTIL_ERROR.format(error=evaluation.error)),
                owner_identity,
            )
        elif evaluation.value:
            on_truthy(evaluation.value)
            return

        self._scheduler.schedule(
            self.interval, self.poll_until_truthy, predicate, on_truthy, chained_value, owner_identity
        )
