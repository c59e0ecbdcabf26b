"""Shared fixtures: raw messages and forwarder configuration."""

import pytest

from privatemail.config import ForwarderConfig
from privatemail.parser import parse_message

SIMPLE_EMAIL = (
    b"Received: from mx1.fufu.soup by inbound-smtp.us-east-1.amazonaws.com;\r\n"
    b"\tMon, 01 Mar 2021 10:00:00 +0000\r\n"
    b"Received: from laptop by mx1.fufu.soup; Mon, 01 Mar 2021 09:59:59 +0000\r\n"
    b"From: John Doe <john@doe.example>\r\n"
    b"To: achu@fufu.soup\r\n"
    b"Cc: jollof@fufu.soup\r\n"
    b"Subject: Hello\r\n"
    b" there\r\n"
    b"Message-ID: <1234@doe.example>\r\n"
    b"X-Custom-Header: keep me exactly   as is\r\n"
    b"Content-Type: text/plain; charset=utf-8\r\n"
    b"\r\n"
    b"Hi,\r\n"
    b"this is the body.\r\n"
)

MULTIPART_EMAIL = (
    b'From: "Achu Soup" <achu@fufu.soup>\r\n'
    b"To: hello@nyah.dev\r\n"
    b"Reply-To: list@fufu.soup\r\n"
    b"Subject: Menu\r\n"
    b"MIME-Version: 1.0\r\n"
    b'Content-Type: multipart/mixed; boundary="XYZ"\r\n'
    b"\r\n"
    b"This is a multi-part message in MIME format.\r\n"
    b"--XYZ\r\n"
    b"Content-Type: text/plain; charset=utf-8\r\n"
    b"Content-Transfer-Encoding: quoted-printable\r\n"
    b"\r\n"
    b"Caf=C3=A9 menu attached.\r\n"
    b"--XYZ\r\n"
    b'Content-Type: application/octet-stream; name="menu.bin"\r\n'
    b"Content-Transfer-Encoding: base64\r\n"
    b'Content-Disposition: attachment; filename="menu.bin"\r\n'
    b"\r\n"
    b"AAECAwQFBgcICQ==\r\n"
    b"--XYZ--\r\n"
    b"epilogue\r\n"
)

NESTED_EMAIL = (
    b"From: jurgen@example.de\r\n"
    b"To: hello@nyah.dev\r\n"
    b'Content-Type: multipart/mixed; boundary="outer"\r\n'
    b"\r\n"
    b"--outer\r\n"
    b'Content-Type: multipart/alternative; boundary="inner"\r\n'
    b"\r\n"
    b"--inner\r\n"
    b"Content-Type: text/plain; charset=us-ascii\r\n"
    b"\r\n"
    b"plain\r\n"
    b"--inner\r\n"
    b"Content-Type: text/html; charset=us-ascii\r\n"
    b"\r\n"
    b"<p>html</p>\r\n"
    b"--inner--\r\n"
    b"--outer\r\n"
    b"Content-Type: text/plain; charset=x-no-such-charset\r\n"
    b"\r\n"
    b"caf\xc3\xa9\r\n"
    b"--outer--\r\n"
)

UNTERMINATED_EMAIL = (
    b"From: John Doe <john@doe.example>\r\n"
    b'Content-Type: multipart/mixed; boundary="XYZ"\r\n'
    b"\r\n"
    b"--XYZ\r\n"
    b"Content-Type: text/plain\r\n"
    b"\r\n"
    b"cut short\r\n"
)

ENCODED_FROM_EMAIL = (
    b"From: =?utf-8?q?J=C3=BCrgen_M=C3=BCller?= <jurgen@example.de>\r\n"
    b"To: achu@fufu.soup\r\n"
    b"Subject: =?utf-8?b?R3LDvMOfZQ==?=\r\n"
    b"\r\n"
    b"Hallo\r\n"
)

LF_EMAIL = (
    b"From: john@doe.example\n"
    b"To: achu@fufu.soup\n"
    b"Subject: unix line endings\n"
    b"\n"
    b"body\n"
)

NO_SEPARATOR_EMAIL = (
    b"From: John Doe <john@doe.example>\r\n"
    b"To: achu@fufu.soup\r\n"
    b"Subject: no body separator"
)


@pytest.fixture
def config():
    return ForwarderConfig(from_email="hello@nyah.dev", to_email="onions@suya.io")


@pytest.fixture
def simple_message():
    return parse_message(SIMPLE_EMAIL)


@pytest.fixture
def multipart_message():
    return parse_message(MULTIPART_EMAIL)
