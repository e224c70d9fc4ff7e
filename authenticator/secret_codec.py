"""
secret_codec.py — base32 handshake codes for shared secrets.

The handshake code is what a user types into an authenticator app when they
cannot scan a QR code. Output is RFC 4648 base32 without `=` padding (many
authenticator apps refuse padded secrets); input may be padded or not, in any
case, and with any whitespace between characters.
"""

import base64
import binascii
import re

from .exceptions import InvalidSecret, MalformedSecret

_BASE32_CHARS = re.compile(r"[A-Z2-7]*")
GROUP_SIZE = 4


def encode(data: bytes, human_readable: bool = False) -> str:
    """
    Encode raw key bytes as a base32 handshake code.

    With `human_readable`, the code is lowercased and split into groups of
    four separated by single spaces, e.g. "klyq v62w lkek rqqm". `decode`
    accepts both forms.
    """
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise InvalidSecret(f"Secret must be bytes, got {type(data).__name__}")

    code = base64.b32encode(bytes(data)).decode("ascii").rstrip("=")
    if human_readable:
        code = " ".join(
            code[i:i + GROUP_SIZE] for i in range(0, len(code), GROUP_SIZE)
        ).lower()
    return code


def normalize(code: str) -> str:
    """Strip whitespace and padding and uppercase a handshake code."""
    if not isinstance(code, str):
        raise MalformedSecret(f"Handshake code must be a string, got {type(code).__name__}")
    return "".join(code.split()).upper().rstrip("=")


def decode(code: str) -> bytes:
    """
    Decode a handshake code (raw or human readable) back to key bytes.

    Raises:
        MalformedSecret: characters outside A-Z / 2-7, or a length no byte
        string can encode to
    """
    normalized = normalize(code)
    if not _BASE32_CHARS.fullmatch(normalized):
        raise MalformedSecret("Handshake code contains characters outside the base32 alphabet")

    # Base32 needs padding to a multiple of 8 characters
    normalized += "=" * (-len(normalized) % 8)
    try:
        return base64.b32decode(normalized)
    except binascii.Error as e:
        raise MalformedSecret(f"Invalid base32 handshake code: {e}") from e
