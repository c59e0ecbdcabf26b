"""Reassemble a parsed message with its sender identity rewritten."""

from privatemail.errors import MalformedMessage, RebuildFailure
from privatemail.message import MAX_LINE_LENGTH, HeaderField, OutboundMessage
from privatemail.parser import parse_message


def _check_field(field):
    lines = field.raw.split(b"\n")
    if lines[-1] != b"":
        raise RebuildFailure("%s field is not line terminated" % field.name)
    for line in lines[1:-1]:
        if line[:1] not in (b" ", b"\t"):
            raise RebuildFailure("%s field contains a bare line break" % field.name)
    for line in lines[:-1]:
        if len(line.rstrip(b"\r")) > MAX_LINE_LENGTH:
            raise RebuildFailure("%s field has a line over %d octets" % (field.name, MAX_LINE_LENGTH))


def _check_structure(message):
    for entity in message.root.entities():
        if not entity.content_type.startswith("multipart/"):
            continue
        if entity.boundary is None:
            raise RebuildFailure("%s entity declares no boundary" % entity.content_type)
        if not entity.parts:
            raise RebuildFailure("boundary %r never appears in the body" % entity.boundary)
        if not entity.terminated:
            raise RebuildFailure("boundary %r is never closed" % entity.boundary)


def rebuild(message, plan) -> OutboundMessage:
    """Swap in the planned ``From``, ``Reply-To`` (and ``Subject``) fields.

    Every other field keeps its position and bytes, and the body is copied
    untouched. The result is parsed again before it is handed back.
    """
    linesep = message.linesep
    headers = message.headers.copy()
    try:
        headers.replace(HeaderField.render("From", plan.from_value, linesep))
        headers.replace(HeaderField.render("Reply-To", plan.reply_to, linesep), after="From")
        if plan.subject_value is not None:
            headers.replace(HeaderField.render("Subject", plan.subject_value, linesep), after="Reply-To")
    except UnicodeEncodeError as e:
        raise RebuildFailure("rewritten header is not ASCII: %s" % e)

    for field in headers:
        _check_field(field)

    raw = headers.to_bytes() + message.separator + message.body
    try:
        rebuilt = parse_message(raw)
    except MalformedMessage as e:
        raise RebuildFailure("rebuilt message does not parse: %s" % e.reason)
    _check_structure(rebuilt)

    return OutboundMessage(
        raw=raw,
        source=plan.from_email,
        destinations=(plan.recipient,),
        headers=rebuilt.headers,
        body=rebuilt.body,
    )
