"""privatemail: forward mail received on a verified SES domain to one mailbox."""

from privatemail.config import ForwarderConfig
from privatemail.errors import (
    ConfigurationError,
    FetchFailure,
    ForwardingError,
    InvalidEvent,
    MalformedMessage,
    RebuildFailure,
    SendFailure,
)
from privatemail.forwarder import Forwarder, Outcome, State

__version__ = "1.2.0"

__all__ = [
    "ConfigurationError",
    "FetchFailure",
    "Forwarder",
    "ForwarderConfig",
    "ForwardingError",
    "InvalidEvent",
    "MalformedMessage",
    "Outcome",
    "RebuildFailure",
    "SendFailure",
    "State",
]
