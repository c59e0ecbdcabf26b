"""Failures raised by the forwarding pipeline."""


class ForwardingError(Exception):
    """Base class for every pipeline failure.

    ``stage`` is the pipeline stage that raised; the forwarder fills in
    ``reference`` before reporting the outcome.
    """

    stage = None
    retryable = False

    def __init__(self, reason, reference=None):
        super().__init__(reason)
        self.reason = reason
        self.reference = reference


class ConfigurationError(ForwardingError):
    stage = "configuration"


class InvalidEvent(ForwardingError):
    stage = "trigger"


class FetchFailure(ForwardingError):
    """The raw message could not be read from the object store."""

    stage = "fetching"
    retryable = True

    def __init__(self, reason, reference=None, not_found=False):
        super().__init__(reason, reference)
        self.not_found = not_found


class MalformedMessage(ForwardingError):
    """Headers or body could not be parsed. Retrying cannot help."""

    stage = "parsing"


class RebuildFailure(ForwardingError):
    stage = "rebuilding"


class SendFailure(ForwardingError):
    stage = "dispatching"
    retryable = True
