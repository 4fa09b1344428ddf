"""Connection descriptors handed to the RemOrch app.

A descriptor is serialized as compact JSON with fixed key order and then
base64-encoded::

    {"v":1,"h":"100.101.102.103","p":22,"u":"alice","s":"claude","t":1700000000000}

The ``s`` key is left out when no session was started. The same payload goes
into the app URL (``remorch://<payload>``) and the web fallback URL
(``<web_base>#<payload>``).
"""

import base64
import binascii
import json
import secrets
import time
from dataclasses import dataclass, field
from typing import Optional

from .errors import InvalidDescriptorError
from .network import parse_ipv4


SCHEMA_VERSION = 1
DEFAULT_PORT = 22


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class ConnectionDescriptor:
    """Everything the app needs to SSH in and attach."""

    host: str
    user: str
    session: Optional[str] = None
    port: int = DEFAULT_PORT
    version: int = SCHEMA_VERSION
    timestamp: int = field(default_factory=now_ms)

    def __post_init__(self):
        if not self.host or parse_ipv4(self.host) != self.host:
            raise InvalidDescriptorError(f"Invalid IPv4 host: {self.host!r}")

    def to_record(self) -> dict:
        """Wire record with the schema's key names and order."""
        record = {
            "v": self.version,
            "h": self.host,
            "p": self.port,
            "u": self.user,
        }
        if self.session is not None:
            record["s"] = self.session
        record["t"] = self.timestamp
        return record


@dataclass(frozen=True)
class EncodedDescriptor:
    payload: str
    short_code: str


@dataclass(frozen=True)
class ConnectionLinks:
    app_url: str
    web_url: str


def build_descriptor(
    address: str,
    user: str,
    session: Optional[str] = None,
    port: int = DEFAULT_PORT,
) -> ConnectionDescriptor:
    return ConnectionDescriptor(host=address, user=user, session=session, port=port)


def generate_short_code(random_bytes: Optional[bytes] = None) -> str:
    """Human-typable code such as ``A1B2-C3D4``.

    The code is not derived from the descriptor and nothing validates it.
    """
    if random_bytes is None:
        random_bytes = secrets.token_bytes(4)
    hex_str = random_bytes[:4].hex().upper().rjust(8, "0")
    return f"{hex_str[:4]}-{hex_str[4:]}"


def encode_payload(descriptor: ConnectionDescriptor) -> str:
    json_str = json.dumps(descriptor.to_record(), separators=(",", ":"), ensure_ascii=False)
    return base64.b64encode(json_str.encode("utf-8")).decode("ascii")


def encode_descriptor(descriptor: ConnectionDescriptor) -> EncodedDescriptor:
    return EncodedDescriptor(
        payload=encode_payload(descriptor),
        short_code=generate_short_code(),
    )


def decode_payload(payload: str) -> ConnectionDescriptor:
    """Parse a payload produced by encode_payload.

    Raises:
        InvalidDescriptorError: If the payload is malformed or of an
            unknown schema version
    """
    try:
        raw = base64.b64decode(payload, validate=True)
        record = json.loads(raw.decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise InvalidDescriptorError(f"Malformed payload: {e}") from e

    if not isinstance(record, dict):
        raise InvalidDescriptorError("Payload is not an object")

    version = record.get("v")
    if type(version) is not int or version != SCHEMA_VERSION:
        raise InvalidDescriptorError(f"Unsupported descriptor version: {version!r}")

    expected = {"h": str, "u": str, "p": int, "t": int}
    for key, kind in expected.items():
        if key not in record:
            raise InvalidDescriptorError(f"Incomplete payload: missing {key!r}")
        # bool is an int subclass, so compare exact types
        if type(record[key]) is not kind:
            raise InvalidDescriptorError(
                f"Field {key!r} must be {kind.__name__}, got {type(record[key]).__name__}"
            )

    session = record.get("s")
    if session is not None and not isinstance(session, str):
        raise InvalidDescriptorError(
            f"Field 's' must be a string, got {type(session).__name__}"
        )

    return ConnectionDescriptor(
        host=record["h"],
        user=record["u"],
        session=session,
        port=record["p"],
        version=version,
        timestamp=record["t"],
    )


def build_links(payload: str, scheme: str, web_base: str) -> ConnectionLinks:
    return ConnectionLinks(
        app_url=f"{scheme}://{payload}",
        web_url=f"{web_base}#{payload}",
    )
