"""One forwarding run: fetch, parse, filter, rewrite, rebuild, dispatch.

Every run ends in exactly one terminal state, ``SENT``, ``DROPPED`` or
``FAILED``. Nothing is retried here; the trigger re-invokes the whole run
with the same reference. Rewriting is deterministic, so a re-run produces
the same outbound headers (SES may still deliver twice).
"""

import enum
import json
import logging
from dataclasses import dataclass
from typing import Optional

from privatemail import blacklist
from privatemail.errors import ForwardingError
from privatemail.parser import parse_message
from privatemail.rebuilder import rebuild
from privatemail.rewriter import original_sender, plan_rewrite

logger = logging.getLogger(__name__)


class State(enum.Enum):
    FETCHING = "fetching"
    PARSING = "parsing"
    FILTER_CHECK = "filter_check"
    REWRITING = "rewriting"
    REBUILDING = "rebuilding"
    DISPATCHING = "dispatching"
    DROPPED = "dropped"
    SENT = "sent"
    FAILED = "failed"


@dataclass(frozen=True)
class Outcome:
    reference: object
    state: State
    stage: Optional[State] = None
    reason: Optional[str] = None
    message_id: Optional[str] = None
    retryable: bool = False
    error: Optional[ForwardingError] = None

    @property
    def ok(self):
        return self.state in (State.SENT, State.DROPPED)

    def as_dict(self):
        return dict(
            reference=str(self.reference),
            state=self.state.value,
            stage=self.stage.value if self.stage else None,
            reason=self.reason,
            message_id=self.message_id,
            retryable=self.retryable,
        )


class Forwarder:
    """Runs the pipeline against a fetcher and a sender.

    ``fetcher.fetch(reference)`` returns the raw bytes or raises
    FetchFailure; ``sender.send(outbound)`` returns the outbound message id
    or raises SendFailure.
    """

    def __init__(self, config, fetcher, sender):
        self.config = config
        self.fetcher = fetcher
        self.sender = sender

    def forward(self, reference) -> Outcome:
        stage = State.FETCHING
        try:
            raw = self.fetcher.fetch(reference)

            stage = State.PARSING
            message = parse_message(raw)
            sender = original_sender(message)

            stage = State.FILTER_CHECK
            if blacklist.evaluate(sender.address, self.config.blacklist) is blacklist.Decision.DROP:
                entry = blacklist.matching_entry(sender.address, self.config.blacklist)
                return self._finish(Outcome(
                    reference, State.DROPPED, stage,
                    reason="sender %s matches blacklist entry %s" % (sender.address, entry),
                ))

            stage = State.REWRITING
            plan = plan_rewrite(message, self.config)

            stage = State.REBUILDING
            outbound = rebuild(message, plan)

            stage = State.DISPATCHING
            message_id = self.sender.send(outbound)
        except ForwardingError as e:
            e.reference = reference
            return self._finish(Outcome(
                reference, State.FAILED, stage,
                reason="%s: %s" % (type(e).__name__, e.reason),
                retryable=e.retryable,
                error=e,
            ))

        return self._finish(Outcome(
            reference, State.SENT, stage,
            reason="forwarded from %s to %s" % (sender.address, ", ".join(outbound.destinations)),
            message_id=message_id,
        ))

    def _finish(self, outcome):
        level = logging.ERROR if outcome.state is State.FAILED else logging.INFO
        logger.log(level, json.dumps(dict(outcome=outcome.as_dict())))
        return outcome
