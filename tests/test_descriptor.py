#!/usr/bin/env python3
"""
Unit tests for connection descriptor encoding.

Run with: python3 -m pytest tests/test_descriptor.py -v
"""

import base64
import json
import re
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from remorch.descriptor import (
    ConnectionDescriptor,
    build_descriptor,
    build_links,
    decode_payload,
    encode_descriptor,
    encode_payload,
    generate_short_code,
)
from remorch.errors import InvalidDescriptorError


SHORT_CODE_RE = re.compile(r"^[0-9A-F]{4}-[0-9A-F]{4}$")


class TestDescriptor:
    def test_defaults(self):
        d = build_descriptor("100.64.1.2", "alice")
        assert d.version == 1
        assert d.port == 22
        assert d.session is None
        assert d.timestamp > 1_600_000_000_000  # milliseconds, not seconds

    @pytest.mark.parametrize("host", ["", "localhost", "999.1.1.1", "::1", "10.0.0"])
    def test_rejects_invalid_host(self, host):
        with pytest.raises(InvalidDescriptorError):
            build_descriptor(host, "alice")

    def test_invalid_host_is_value_error(self):
        with pytest.raises(ValueError):
            build_descriptor("", "alice")

    def test_record_key_order(self):
        d = ConnectionDescriptor(host="10.0.0.1", user="bob", session="claude", timestamp=5)
        assert list(d.to_record()) == ["v", "h", "p", "u", "s", "t"]

    def test_record_omits_missing_session(self):
        d = ConnectionDescriptor(host="10.0.0.1", user="bob", timestamp=5)
        assert "s" not in d.to_record()


class TestEncoding:
    def test_payload_is_compact_json(self):
        d = ConnectionDescriptor(
            host="100.101.102.103", user="alice", session="claude", timestamp=1700000000000
        )
        raw = base64.b64decode(encode_payload(d)).decode("utf-8")
        assert raw == (
            '{"v":1,"h":"100.101.102.103","p":22,"u":"alice","s":"claude","t":1700000000000}'
        )

    @pytest.mark.parametrize("session", [None, "claude", "gemini2"])
    def test_round_trip(self, session):
        d = ConnectionDescriptor(host="192.168.1.4", user="ユーザー", session=session, port=2222)
        assert decode_payload(encode_payload(d)) == d

    def test_encode_descriptor_has_short_code(self):
        encoded = encode_descriptor(build_descriptor("10.1.2.3", "carol"))
        assert SHORT_CODE_RE.match(encoded.short_code)
        assert decode_payload(encoded.payload).host == "10.1.2.3"

    def test_decode_accepts_null_session(self):
        record = {"v": 1, "h": "10.0.0.1", "p": 22, "u": "x", "s": None, "t": 1}
        payload = base64.b64encode(json.dumps(record).encode()).decode()
        assert decode_payload(payload).session is None

    @pytest.mark.parametrize("payload", [
        "not base64!!",
        base64.b64encode(b"not json").decode(),
        base64.b64encode(b"[1, 2]").decode(),
        base64.b64encode(b'{"v":2,"h":"10.0.0.1","p":22,"u":"x","t":1}').decode(),
        base64.b64encode(b'{"v":1,"p":22,"u":"x","t":1}').decode(),
        base64.b64encode(b'{"v":1,"h":"10.0.0.1","p":"ssh","u":"x","t":1}').decode(),
        base64.b64encode(b'{"v":true,"h":"10.0.0.1","p":22,"u":"x","t":1}').decode(),
        base64.b64encode(b'{"v":1,"h":"10.0.0.1","p":22.9,"u":"x","t":1}').decode(),
        base64.b64encode(b'{"v":1,"h":"10.0.0.1","p":22,"u":"x","s":5,"t":1}').decode(),
        base64.b64encode(b'{"v":1,"h":"10.0.0.1","p":22,"u":"x","t":"1"}').decode(),
        base64.b64encode(b'{"v":1,"h":"10.0.0.1","p":22,"u":7,"t":1}').decode(),
    ])
    def test_decode_rejects_bad_payloads(self, payload):
        with pytest.raises(InvalidDescriptorError):
            decode_payload(payload)


class TestShortCode:
    @pytest.mark.parametrize("data,expected", [
        (b"\x00\x00\x00\x00", "0000-0000"),
        (b"\xff\xff\xff\xff", "FFFF-FFFF"),
        (b"\xa1\xb2\xc3\xd4", "A1B2-C3D4"),
        (b"\x0a\x0b\x0c\x0d", "0A0B-0C0D"),
    ])
    def test_format(self, data, expected):
        assert generate_short_code(data) == expected

    def test_random_codes_match_format(self):
        for _ in range(200):
            assert SHORT_CODE_RE.match(generate_short_code())


class TestLinks:
    def test_same_payload_in_both_links(self):
        links = build_links("eyJ2IjoxfQ==", "remorch", "https://example.org/remorch-web/")
        assert links.app_url == "remorch://eyJ2IjoxfQ=="
        assert links.web_url == "https://example.org/remorch-web/#eyJ2IjoxfQ=="
