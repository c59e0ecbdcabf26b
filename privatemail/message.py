"""In-memory representation of inbound and outbound messages.

Header fields keep their raw bytes so that every field which is not
rewritten is written back exactly as it was received. Fields live in an
ordered list rather than a mapping: a message carries duplicates such as
``Received`` and their order matters.
"""

import base64
import binascii
import quopri
from collections import namedtuple
from dataclasses import dataclass
from email.errors import HeaderParseError
from email.header import decode_header, make_header
from email.message import Message
from email.utils import getaddresses
from typing import Iterator, List, Optional, Tuple

DEFAULT_CHARSET = "utf-8"
DEFAULT_CONTENT_TYPE = "text/plain"

# RFC 5322 section 2.1.1
FOLD_WIDTH = 78
MAX_LINE_LENGTH = 998


def decode_words(value: str) -> str:
    """Decode RFC 2047 encoded-words.

    A word whose charset is unknown, or whose bytes do not decode with it,
    is read as DEFAULT_CHARSET with replacement characters.
    """
    try:
        chunks = decode_header(value)
    except HeaderParseError:
        return value
    usable = []
    for data, charset in chunks:
        if charset is not None and isinstance(data, bytes):
            try:
                data.decode(charset)
            except (LookupError, UnicodeDecodeError):
                data = data.decode(DEFAULT_CHARSET, "replace").encode(DEFAULT_CHARSET)
                charset = DEFAULT_CHARSET
        usable.append((data, charset))
    try:
        return str(make_header(usable))
    except (HeaderParseError, LookupError, UnicodeDecodeError):
        return value


def _fold(line, width=FOLD_WIDTH):
    """Break ``line`` before spaces so each piece fits in ``width`` if it can."""
    pieces = []
    current = None
    for word in line.split(" "):
        if current is None:
            current = word
        elif current.strip() and len(current) + 1 + len(word) > width:
            pieces.append(current)
            current = " " + word
        else:
            current = current + " " + word
    pieces.append(current or "")
    return pieces


class Mailbox(namedtuple("Mailbox", "display_name address")):
    __slots__ = ()

    @property
    def local_part(self):
        return self.address.rsplit("@", 1)[0]

    @property
    def domain(self):
        return self.address.rsplit("@", 1)[-1]


class HeaderField:
    """A single header field as it appeared on the wire."""

    __slots__ = ("name", "raw")

    def __init__(self, name: str, raw: bytes):
        self.name = name
        self.raw = raw

    @property
    def value(self) -> str:
        """The unfolded field body, encoded-words left intact."""
        body = self.raw.split(b":", 1)[1]
        lines = body.replace(b"\r\n", b"\n").split(b"\n")
        return "".join(line.decode("utf-8", "replace") for line in lines).strip()

    @property
    def decoded(self) -> str:
        return decode_words(self.value)

    @classmethod
    def render(cls, name: str, value: str, linesep: bytes = b"\r\n"):
        """Build a new field. ``value`` may carry folds as ``\\n``.

        Raises UnicodeEncodeError when ``value`` is not plain ASCII. Lines
        longer than FOLD_WIDTH are folded at spaces.
        """
        text = "%s: %s" % (name, value)
        lines = []
        for segment in text.split("\n"):
            lines.extend(_fold(segment.rstrip("\r")))
        return cls(name, linesep.decode("ascii").join(lines).encode("ascii") + linesep)

    def __eq__(self, other):
        if not isinstance(other, HeaderField):
            return NotImplemented
        return self.name == other.name and self.raw == other.raw

    def __repr__(self):
        return "HeaderField(%r, %r)" % (self.name, self.raw)


class HeaderList:
    """Ordered header fields with case-insensitive lookup by name."""

    def __init__(self, fields=()):
        self._fields: List[HeaderField] = list(fields)

    def __iter__(self) -> Iterator[HeaderField]:
        return iter(self._fields)

    def __len__(self):
        return len(self._fields)

    def __getitem__(self, index):
        return self._fields[index]

    def __contains__(self, name):
        return self.index(name) >= 0

    def __eq__(self, other):
        if not isinstance(other, HeaderList):
            return NotImplemented
        return self._fields == other._fields

    def index(self, name: str, start: int = 0) -> int:
        name = name.lower()
        for i in range(start, len(self._fields)):
            if self._fields[i].name.lower() == name:
                return i
        return -1

    def get(self, name: str) -> Optional[HeaderField]:
        i = self.index(name)
        return self._fields[i] if i >= 0 else None

    def get_all(self, name: str) -> List[HeaderField]:
        name = name.lower()
        return [f for f in self._fields if f.name.lower() == name]

    def names(self) -> List[str]:
        return [f.name for f in self._fields]

    def replace(self, new_field: HeaderField, after: Optional[str] = None):
        """Put ``new_field`` where the first field of the same name sits.

        Later fields with that name are removed. When the name is absent the
        field goes right after the first ``after`` field, or at the end.
        """
        i = self.index(new_field.name)
        if i < 0:
            anchor = self.index(after) if after else -1
            if anchor < 0:
                self._fields.append(new_field)
            else:
                self._fields.insert(anchor + 1, new_field)
            return
        self._fields[i] = new_field
        j = self.index(new_field.name, i + 1)
        while j >= 0:
            del self._fields[j]
            j = self.index(new_field.name, j)

    def copy(self):
        return HeaderList(self._fields)

    def to_bytes(self) -> bytes:
        return b"".join(f.raw for f in self._fields)


def _content_type_params(value):
    msg = Message()
    msg["Content-Type"] = value
    return msg.get_content_type(), msg.get_boundary(), msg.get_content_charset()


class BodyPart:
    """One MIME entity. ``payload`` is the raw, still-encoded body bytes.

    Multipart entities keep their children in ``parts`` together with the
    preamble and epilogue that surround the delimiter lines.
    """

    def __init__(self, headers, payload, parts=(), preamble=b"", epilogue=b"", defects=()):
        self.headers = headers
        self.payload = payload
        self.parts = list(parts)
        self.preamble = preamble
        self.epilogue = epilogue
        self.defects = list(defects)
        self.terminated = True

        field = headers.get("Content-Type")
        if field is not None and field.value:
            self.content_type, self.boundary, self.charset = _content_type_params(field.value)
        else:
            self.content_type, self.boundary, self.charset = DEFAULT_CONTENT_TYPE, None, None

        encoding = headers.get("Content-Transfer-Encoding")
        self.transfer_encoding = encoding.value.lower() if encoding is not None else "7bit"

    @property
    def is_multipart(self):
        return self.content_type.startswith("multipart/") and self.boundary is not None

    def entities(self):
        """Yield this entity and every nested one, containers included."""
        yield self
        for part in self.parts:
            yield from part.entities()

    def walk(self):
        """Yield every leaf part, depth first."""
        if not self.parts:
            yield self
            return
        for part in self.parts:
            yield from part.walk()

    def decoded_payload(self) -> bytes:
        if self.transfer_encoding == "base64":
            try:
                return base64.b64decode(self.payload)
            except (binascii.Error, ValueError):
                return self.payload
        if self.transfer_encoding == "quoted-printable":
            return quopri.decodestring(self.payload)
        return self.payload

    def text(self, default_charset: str = DEFAULT_CHARSET) -> str:
        """Decoded text of the part.

        An unknown charset, or bytes that do not decode with the declared
        one, fall back to ``default_charset``.
        """
        data = self.decoded_payload()
        if self.charset:
            try:
                return data.decode(self.charset)
            except (LookupError, UnicodeDecodeError):
                pass
        return data.decode(default_charset, "replace")

    def __repr__(self):
        return "BodyPart(%r, %d bytes, %d parts)" % (
            self.content_type,
            len(self.payload),
            len(self.parts),
        )


class ParsedMessage:
    """Structured view over a raw message.

    ``headers`` + ``separator`` + ``body`` reproduces the input exactly.
    """

    def __init__(self, headers, separator, body, linesep, root):
        self.headers: HeaderList = headers
        self.separator: bytes = separator
        self.body: bytes = body
        self.linesep: bytes = linesep
        self.root: BodyPart = root

    @property
    def content_type(self):
        return self.root.content_type

    @property
    def parts(self) -> List[BodyPart]:
        return list(self.root.walk())

    @property
    def defects(self) -> List[str]:
        found = []
        stack = [self.root]
        while stack:
            part = stack.pop()
            found.extend(part.defects)
            stack.extend(part.parts)
        return found

    @property
    def senders(self) -> List[Mailbox]:
        """Mailboxes listed in the ``From`` fields, in order."""
        values = [f.value for f in self.headers.get_all("From")]
        mailboxes = []
        for name, address in getaddresses(values):
            if "@" not in address:
                continue
            name = " ".join(decode_words(name).split())
            mailboxes.append(Mailbox(name, address))
        return mailboxes

    @property
    def sender(self) -> Optional[Mailbox]:
        senders = self.senders
        return senders[0] if senders else None

    @property
    def subject(self) -> Optional[str]:
        field = self.headers.get("Subject")
        return field.decoded if field is not None else None

    def to_bytes(self) -> bytes:
        return self.headers.to_bytes() + self.separator + self.body


@dataclass(frozen=True)
class OutboundMessage:
    """The rebuilt message and its delivery envelope."""

    raw: bytes
    source: str
    destinations: Tuple[str, ...]
    headers: HeaderList
    body: bytes
