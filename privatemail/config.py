"""Runtime configuration for the forwarder.

Values come from the Lambda environment:

    FROM_EMAIL        SES verified address used as the outbound ``From``
    TO_EMAIL          verified mailbox that receives every forwarded message
    BLACK_LIST        comma separated addresses or bare domains to drop
    BUCKET_NAME       bucket SES writes incoming mail to
    EMAIL_KEY_PREFIX  key prefix of the stored messages (default ``emails/``)
    SUBJECT_PREFIX    optional label prepended to forwarded subjects
    AWS_REGION        region of the SES endpoint
"""

import os
from dataclasses import dataclass, field
from email.utils import parseaddr
from typing import FrozenSet, Iterable, Optional, Union

from privatemail.errors import ConfigurationError

DEFAULT_KEY_PREFIX = "emails/"


def parse_blacklist(value: Union[str, Iterable[str], None]) -> FrozenSet[str]:
    """Normalise a comma delimited string or a list into lower-cased entries."""
    if not value:
        return frozenset()
    if isinstance(value, str):
        value = value.split(",")
    entries = (entry.replace(" ", "").lower() for entry in value)
    return frozenset(entry for entry in entries if entry)


def _mailbox(name, value):
    if not value or not value.strip():
        raise ConfigurationError("Invalid %s: value is required" % name)
    _, address = parseaddr(value)
    if "@" not in address or address.startswith("@") or address.endswith("@"):
        raise ConfigurationError("Invalid %s: %r is not a mailbox" % (name, value))
    return address


@dataclass(frozen=True)
class ForwarderConfig:
    from_email: str
    to_email: str
    blacklist: FrozenSet[str] = field(default_factory=frozenset)
    bucket_name: Optional[str] = None
    key_prefix: str = DEFAULT_KEY_PREFIX
    subject_prefix: Optional[str] = None
    region: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "from_email", _mailbox("FROM_EMAIL", self.from_email))
        object.__setattr__(self, "to_email", _mailbox("TO_EMAIL", self.to_email))
        object.__setattr__(self, "blacklist", parse_blacklist(self.blacklist))

    @classmethod
    def from_env(cls, environ=None):
        environ = os.environ if environ is None else environ
        return cls(
            from_email=environ.get("FROM_EMAIL", ""),
            to_email=environ.get("TO_EMAIL", ""),
            blacklist=environ.get("BLACK_LIST", ""),
            bucket_name=environ.get("BUCKET_NAME") or None,
            key_prefix=environ.get("EMAIL_KEY_PREFIX", DEFAULT_KEY_PREFIX),
            subject_prefix=environ.get("SUBJECT_PREFIX") or None,
            region=environ.get("AWS_REGION") or None,
        )
