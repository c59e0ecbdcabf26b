"""
Unit tests for the raw message parser.
"""

import pytest

from privatemail.errors import MalformedMessage
from privatemail.message import Mailbox
from privatemail.parser import parse_message

from conftest import (
    ENCODED_FROM_EMAIL,
    LF_EMAIL,
    MULTIPART_EMAIL,
    NESTED_EMAIL,
    NO_SEPARATOR_EMAIL,
    SIMPLE_EMAIL,
    UNTERMINATED_EMAIL,
)


class TestHeaderBlock:
    def test_reproduces_input_bytes(self, simple_message):
        assert simple_message.to_bytes() == SIMPLE_EMAIL

    def test_keeps_order_and_duplicates(self, simple_message):
        assert simple_message.headers.names() == [
            "Received",
            "Received",
            "From",
            "To",
            "Cc",
            "Subject",
            "Message-ID",
            "X-Custom-Header",
            "Content-Type",
        ]
        assert len(simple_message.headers.get_all("received")) == 2

    def test_folded_field_keeps_raw_bytes(self, simple_message):
        received = simple_message.headers.get("Received")
        assert received.raw.endswith(b";\r\n\tMon, 01 Mar 2021 10:00:00 +0000\r\n")
        assert simple_message.subject == "Hello there"

    def test_lookup_is_case_insensitive(self, simple_message):
        assert simple_message.headers.get("message-id").value == "<1234@doe.example>"
        assert "FROM" in simple_message.headers

    def test_body_is_untouched(self, simple_message):
        assert simple_message.body == b"Hi,\r\nthis is the body.\r\n"
        assert simple_message.separator == b"\r\n"
        assert simple_message.linesep == b"\r\n"

    def test_lf_line_endings(self):
        message = parse_message(LF_EMAIL)
        assert message.linesep == b"\n"
        assert message.body == b"body\n"
        assert message.to_bytes() == LF_EMAIL


class TestSender:
    def test_display_name_and_address(self, simple_message):
        assert simple_message.sender == Mailbox("John Doe", "john@doe.example")
        assert simple_message.sender.local_part == "john"
        assert simple_message.sender.domain == "doe.example"

    def test_encoded_words_are_decoded(self):
        message = parse_message(ENCODED_FROM_EMAIL)
        assert message.sender == Mailbox("Jürgen Müller", "jurgen@example.de")
        assert message.subject == "Grüße"
        # the raw bytes stay encoded
        assert message.headers.get("From").raw.startswith(b"From: =?utf-8?q?")

    @pytest.mark.parametrize(
        "word",
        [b"=?x-unknown?q?J=FCrgen?=", b"=?utf-8?q?J=FCrgen?="],
    )
    def test_undecodable_words_fall_back(self, word):
        message = parse_message(b"From: " + word + b" <jurgen@example.de>\r\n\r\nbody")
        assert message.sender == Mailbox("J\ufffdrgen", "jurgen@example.de")

    def test_bare_address(self):
        message = parse_message(LF_EMAIL)
        assert message.sender == Mailbox("", "john@doe.example")

    def test_first_of_several_mailboxes(self):
        message = parse_message(b"From: a@one.example, B <b@two.example>\r\n\r\n")
        assert message.sender.address == "a@one.example"
        assert len(message.senders) == 2

    def test_missing_from(self):
        message = parse_message(b"To: achu@fufu.soup\r\n\r\nbody")
        assert message.sender is None


class TestMalformed:
    def test_missing_blank_line(self):
        with pytest.raises(MalformedMessage):
            parse_message(NO_SEPARATOR_EMAIL)

    def test_header_line_without_colon(self):
        with pytest.raises(MalformedMessage):
            parse_message(b"From: john@doe.example\r\nthis is not a header\r\n\r\nbody")

    def test_field_name_with_space(self):
        with pytest.raises(MalformedMessage):
            parse_message(b"From john@doe.example Mon Mar 1 10:00:00 2021\r\n\r\nbody")

    def test_continuation_before_first_field(self):
        with pytest.raises(MalformedMessage):
            parse_message(b" folded\r\nFrom: john@doe.example\r\n\r\nbody")

    def test_empty_header_block(self):
        with pytest.raises(MalformedMessage):
            parse_message(b"\r\nbody only")

    def test_rejects_text(self):
        with pytest.raises(TypeError):
            parse_message(SIMPLE_EMAIL.decode("ascii"))


class TestMultipart:
    def test_enumerates_parts(self, multipart_message):
        assert multipart_message.content_type == "multipart/mixed"
        assert multipart_message.root.boundary == "XYZ"
        assert [p.content_type for p in multipart_message.parts] == [
            "text/plain",
            "application/octet-stream",
        ]

    def test_payload_bytes_stay_encoded(self, multipart_message):
        text, attachment = multipart_message.parts
        assert text.payload == b"Caf=C3=A9 menu attached."
        assert attachment.payload == b"AAECAwQFBgcICQ=="
        assert attachment.transfer_encoding == "base64"
        assert attachment.decoded_payload() == bytes(range(10))

    def test_text_is_decoded_with_charset(self, multipart_message):
        text = multipart_message.parts[0]
        assert text.charset == "utf-8"
        assert text.text() == "Café menu attached."

    def test_preamble_and_epilogue(self, multipart_message):
        root = multipart_message.root
        assert root.preamble == b"This is a multi-part message in MIME format.\r\n"
        assert root.epilogue == b"epilogue\r\n"
        assert root.terminated
        assert multipart_message.defects == []

    def test_body_is_untouched(self, multipart_message):
        assert multipart_message.to_bytes() == MULTIPART_EMAIL

    def test_nested_parts(self):
        message = parse_message(NESTED_EMAIL)
        assert [p.content_type for p in message.parts] == [
            "text/plain",
            "text/html",
            "text/plain",
        ]
        alternative = message.root.parts[0]
        assert alternative.content_type == "multipart/alternative"
        assert [p.payload for p in alternative.parts] == [b"plain", b"<p>html</p>"]

    def test_unknown_charset_falls_back(self):
        message = parse_message(NESTED_EMAIL)
        last = message.parts[-1]
        assert last.charset == "x-no-such-charset"
        assert last.text() == "café"

    def test_undecodable_bytes_fall_back(self):
        message = parse_message(
            b"From: john@doe.example\r\n"
            b"Content-Type: text/plain; charset=us-ascii\r\n"
            b"\r\n"
            b"caf\xc3\xa9"
        )
        assert message.parts[0].text() == "café"

    def test_missing_closing_delimiter_is_a_defect(self):
        message = parse_message(UNTERMINATED_EMAIL)
        assert not message.root.terminated
        assert message.defects
        assert message.parts[0].payload == b"cut short"

    def test_part_without_headers(self):
        message = parse_message(
            b"From: john@doe.example\r\n"
            b"Content-Type: multipart/mixed; boundary=b\r\n"
            b"\r\n"
            b"--b\r\n"
            b"\r\n"
            b"no headers here\r\n"
            b"--b--\r\n"
        )
        part = message.parts[0]
        assert part.content_type == "text/plain"
        assert part.payload == b"no headers here"
