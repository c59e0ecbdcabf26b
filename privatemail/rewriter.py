"""Work out the new sender identity of a forwarded message.

SES only sends from verified identities, so the forwarded copy goes out
``From`` the configured address while keeping the original author's name,
and ``Reply-To`` points back at the author.
"""

from dataclasses import dataclass
from email.header import Header
from typing import Optional

from privatemail.errors import MalformedMessage


def _clean(text):
    # no CR/LF may reach a rendered header
    return " ".join(text.replace("\r", " ").replace("\n", " ").split())


def format_mailbox(display_name, address):
    """Render ``"Name" <address>``, encoding non-ASCII names as encoded-words."""
    display_name = _clean(display_name or "")
    if not display_name:
        return "<%s>" % address
    try:
        display_name.encode("ascii")
    except UnicodeEncodeError:
        encoded = Header(display_name, "utf-8").encode()
        return "%s <%s>" % (encoded, address)
    quoted = display_name.replace("\\", "\\\\").replace('"', '\\"')
    return '"%s" <%s>' % (quoted, address)


def format_text(text):
    text = _clean(text)
    try:
        text.encode("ascii")
    except UnicodeEncodeError:
        return Header(text, "utf-8").encode()
    return text


@dataclass(frozen=True)
class RewritePlan:
    display_name: str
    from_email: str
    reply_to: str
    recipient: str
    subject: Optional[str] = None

    @property
    def from_value(self):
        return format_mailbox(self.display_name, self.from_email)

    @property
    def subject_value(self):
        return format_text(self.subject) if self.subject is not None else None


def prefixed_subject(subject, prefix):
    """``prefix subject`` unless the subject already carries the prefix."""
    if not prefix:
        return None
    subject = subject or ""
    if prefix.lower() in subject.lower():
        return None
    return ("%s %s" % (prefix.strip(), subject)).strip()


def original_sender(message):
    """First mailbox of the ``From`` field; MalformedMessage if there is none."""
    sender = message.sender
    if sender is None:
        if "From" in message.headers:
            raise MalformedMessage("From header carries no usable address")
        raise MalformedMessage("message has no From header")
    return sender


def plan_rewrite(message, config) -> RewritePlan:
    """Compute the rewritten ``From``/``Reply-To`` and the delivery recipient.

    A message without a sender mailbox has no one to reply to and is
    rejected with MalformedMessage. With several ``From`` mailboxes the
    first one wins.
    """
    sender = original_sender(message)
    display_name = _clean(sender.display_name) or sender.local_part
    return RewritePlan(
        display_name=display_name,
        from_email=config.from_email,
        reply_to=sender.address,
        recipient=config.to_email,
        subject=prefixed_subject(message.subject, config.subject_prefix),
    )
