"""Parse raw RFC 5322 / MIME bytes into a :class:`ParsedMessage`.

The standard library parser normalises what it re-serialises (folding,
line endings, boundary placement), so the header block and the multipart
structure are split by hand here. The ``email`` package is still used for
what it is good at: content-type parameters, encoded-words and address
lists.
"""

import re

from privatemail.errors import MalformedMessage
from privatemail.message import BodyPart, HeaderField, HeaderList, ParsedMessage

# printable US-ASCII except colon (RFC 5322 section 2.2)
_FIELD_NAME = re.compile(rb"^[\x21-\x39\x3b-\x7e]+$")

MAX_DEPTH = 20


def _lines(data):
    """Split on LF only, keeping line endings. ``bytes.splitlines`` also
    breaks on bare CR and form feeds, which binary payloads contain."""
    start = 0
    size = len(data)
    while start < size:
        end = data.find(b"\n", start)
        if end < 0:
            yield data[start:]
            return
        yield data[start:end + 1]
        start = end + 1


def _strip_eol(line):
    if line.endswith(b"\r\n"):
        return line[:-2]
    if line.endswith(b"\n"):
        return line[:-1]
    return line


def split_head(data):
    """Return ``(header_lines, separator, body)`` or None without a blank line."""
    header_lines = []
    offset = 0
    for line in _lines(data):
        offset += len(line)
        if line in (b"\r\n", b"\n"):
            return header_lines, line, data[offset:]
        if not line.endswith(b"\n"):
            break
        header_lines.append(line)
    return None


def parse_fields(lines):
    """Group physical lines into header fields, unfolding nothing."""
    fields = []
    for line in lines:
        if line[:1] in (b" ", b"\t"):
            if not fields:
                raise MalformedMessage("continuation line before the first header field")
            name, raw = fields[-1]
            fields[-1] = (name, raw + line)
            continue
        name, colon, _ = line.partition(b":")
        name = name.rstrip(b" \t")
        if not colon or not _FIELD_NAME.match(name):
            raise MalformedMessage("header line without a field name: %r" % _strip_eol(line)[:60])
        fields.append((name.decode("ascii"), line))
    return HeaderList(HeaderField(name, raw) for name, raw in fields)


def _split_multipart(body, boundary):
    delimiter = b"--" + boundary.encode("utf-8")
    closing = delimiter + b"--"
    preamble, chunks, current = [], [], None
    epilogue = b""
    closed = False
    offset = 0
    for line in _lines(body):
        offset += len(line)
        marker = _strip_eol(line).rstrip(b" \t")
        if marker == delimiter:
            if current is not None:
                chunks.append(current)
            current = []
        elif marker == closing:
            if current is not None:
                chunks.append(current)
            current = None
            closed = True
            epilogue = body[offset:]
            break
        elif current is None:
            preamble.append(line)
        else:
            current.append(line)

    defects = []
    if current is not None:
        chunks.append(current)
    if not chunks:
        defects.append("no %r delimiter in multipart body" % boundary)
    elif not closed:
        defects.append("missing closing %r delimiter" % boundary)

    # The line break in front of a delimiter belongs to the delimiter.
    parts = [_strip_eol(b"".join(chunk)) for chunk in chunks]
    return parts, b"".join(preamble), epilogue, defects, closed


def _parse_part(chunk, depth):
    split = split_head(chunk)
    if split is not None:
        lines, _, body = split
        try:
            return _parse_entity(parse_fields(lines), body, depth)
        except MalformedMessage as e:
            return BodyPart(HeaderList(), chunk, defects=[str(e)])

    # Headers with an empty body: the blank line was consumed by the delimiter.
    if chunk:
        try:
            headers = parse_fields(list(_lines(chunk if chunk.endswith(b"\n") else chunk + b"\n")))
        except MalformedMessage:
            return BodyPart(HeaderList(), chunk, defects=["part without a header separator"])
        return _parse_entity(headers, b"", depth)
    return BodyPart(HeaderList(), b"")


def _parse_entity(headers, body, depth):
    entity = BodyPart(headers, body)
    if not entity.is_multipart:
        return entity
    if depth >= MAX_DEPTH:
        entity.defects.append("multipart nesting deeper than %d" % MAX_DEPTH)
        return entity

    split = _split_multipart(body, entity.boundary)
    chunks, entity.preamble, entity.epilogue, entity.defects, entity.terminated = split
    entity.parts = [_parse_part(chunk, depth + 1) for chunk in chunks]
    return entity


def parse_message(raw: bytes) -> ParsedMessage:
    """Parse ``raw`` without altering a single byte of it.

    Raises MalformedMessage when there is no blank line between header block
    and body, the header block is empty, or a header line has no field name.
    """
    if not isinstance(raw, (bytes, bytearray)):
        raise TypeError("raw message must be bytes, not %s" % type(raw).__name__)
    raw = bytes(raw)

    split = split_head(raw)
    if split is None:
        raise MalformedMessage("no blank line between header block and body")
    lines, separator, body = split
    if not lines:
        raise MalformedMessage("empty header block")

    headers = parse_fields(lines)
    linesep = b"\r\n" if lines[0].endswith(b"\r\n") else b"\n"
    root = _parse_entity(headers, body, 0)
    return ParsedMessage(headers, separator, body, linesep, root)
