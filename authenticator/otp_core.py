"""
otp_core.py — core primitives for HOTP / TOTP.

Pure functions only: no I/O, no global state. The generators in
generators.py are thin, configured wrappers around what lives here.

- Moving factor  -> 8-byte big-endian challenge (RFC 4226 §5.2)
- HMAC(key, challenge) under SHA1 / SHA256 / SHA512
- Dynamic truncation -> 31-bit integer (RFC 4226 §5.3)
- value mod 10^digits, zero-padded to `digits` characters

The HMAC itself is delegated to the `cryptography` package so that a missing
hash family and a rejected key surface as distinct errors.
"""

import enum
import os
import struct
from datetime import timedelta

from cryptography.exceptions import UnsupportedAlgorithm as BackendUnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives import hmac as crypto_hmac

from .exceptions import (
    InvalidConfiguration,
    InvalidCounter,
    InvalidSecret,
    UnsupportedAlgorithm,
)

# --- Config / constants ----------------------------------------------------
DEFAULT_DIGITS = 6          # Google Authenticator only understands 6
VALID_DIGITS = (6, 8)
DEFAULT_TIME_STEP = 30      # TOTP step (seconds)
DEFAULT_SECRET_BYTES = 10   # 80-bit secret
COUNTER_MAX = 2 ** 64 - 1


class Algorithm(enum.Enum):
    """HMAC hash families usable for code generation.

    The value is the name written into the `algorithm` URI parameter.
    """

    SHA1 = "SHA1"
    SHA256 = "SHA256"
    SHA512 = "SHA512"

    @property
    def hash_algorithm(self) -> hashes.HashAlgorithm:
        return getattr(hashes, self.value)()

    @property
    def digest_size(self) -> int:
        return self.hash_algorithm.digest_size

    @classmethod
    def from_name(cls, name) -> "Algorithm":
        """
        Resolve an algorithm from its name ("sha1", "SHA-256", ...).

        Raises:
            InvalidConfiguration: if the name is not SHA1, SHA256 or SHA512
        """
        if isinstance(name, cls):
            return name
        if not isinstance(name, str):
            raise InvalidConfiguration(f"Algorithm must be a name or Algorithm, got {name!r}")
        try:
            return cls(name.strip().upper().replace("-", ""))
        except ValueError as e:
            raise InvalidConfiguration(
                f"Unknown algorithm {name!r}; expected one of SHA1, SHA256, SHA512"
            ) from e


# --- Validation helpers ----------------------------------------------------
def check_digits(digits: int) -> int:
    """Return `digits` if it is 6 or 8, raise InvalidConfiguration otherwise."""
    if isinstance(digits, bool) or not isinstance(digits, int) or digits not in VALID_DIGITS:
        raise InvalidConfiguration("Value must be either 6 or 8")
    return digits


def check_period(period) -> int:
    """
    Normalise a TOTP period to whole seconds.

    Arguments:
        period: int seconds or datetime.timedelta

    Raises:
        InvalidConfiguration: for non-positive or fractional periods
    """
    if isinstance(period, timedelta):
        if period.microseconds:
            raise InvalidConfiguration("Period must be a whole number of seconds")
        seconds = period.days * 86400 + period.seconds
    elif isinstance(period, int) and not isinstance(period, bool):
        seconds = period
    else:
        raise InvalidConfiguration(f"Period must be an int or timedelta, got {period!r}")

    if seconds <= 0:
        raise InvalidConfiguration("Period must be strictly positive")
    return seconds


def check_counter(counter: int) -> int:
    """Return `counter` if it fits an unsigned 64-bit integer."""
    if isinstance(counter, bool) or not isinstance(counter, int):
        raise InvalidCounter(f"Counter must be an integer, got {counter!r}")
    if not 0 <= counter <= COUNTER_MAX:
        raise InvalidCounter(f"Counter {counter} is outside the unsigned 64-bit range")
    return counter


# --- RFC helpers -----------------------------------------------------------
def int_to_bytes(counter: int) -> bytes:
    """
    Serialise a moving factor as the 8-byte big-endian challenge RFC 4226 requires.

    Example: int_to_bytes(1) -> b'\\x00\\x00\\x00\\x00\\x00\\x00\\x00\\x01'
    """
    return struct.pack(">Q", check_counter(counter))


def dynamic_truncate(hmac_digest: bytes) -> int:
    """
    Apply RFC 4226 dynamic truncation.

    - offset = low nibble of the last byte
    - take 4 bytes from offset, clearing the sign bit of the first
    - return the 31-bit unsigned integer

    Every supported digest is at least 20 bytes long, so offset + 4 never runs
    past the end.
    """
    offset = hmac_digest[-1] & 0x0F
    code = (
        ((hmac_digest[offset] & 0x7F) << 24)
        | ((hmac_digest[offset + 1] & 0xFF) << 16)
        | ((hmac_digest[offset + 2] & 0xFF) << 8)
        | (hmac_digest[offset + 3] & 0xFF)
    )
    return code


def format_code(value: int, digits: int) -> str:
    """Reduce a truncated value to `digits` decimal places, zero-padded."""
    return str(value % (10 ** digits)).zfill(digits)


def compute_hmac(key: bytes, challenge: bytes, algorithm: Algorithm) -> bytes:
    """
    HMAC `challenge` with `key` under `algorithm`.

    Raises:
        InvalidSecret: the key is empty or not bytes-like
        UnsupportedAlgorithm: the cryptography backend lacks the hash
    """
    if not isinstance(key, (bytes, bytearray, memoryview)):
        raise InvalidSecret(f"Invalid shared secret: expected bytes, got {type(key).__name__}")
    if len(key) == 0:
        raise InvalidSecret("Invalid shared secret: key is empty")

    try:
        mac = crypto_hmac.HMAC(bytes(key), algorithm.hash_algorithm)
    except BackendUnsupportedAlgorithm as e:
        raise UnsupportedAlgorithm(
            f"The HMAC backend does not support {algorithm.value}: {e}"
        ) from e
    mac.update(challenge)
    return mac.finalize()


def generate_code(key: bytes, counter: int, algorithm: Algorithm, digits: int) -> str:
    """
    Generate an HOTP value for a moving factor.

    Steps:
    1. challenge = 8-byte big-endian counter
    2. digest = HMAC(key, challenge)
    3. dbc = dynamic_truncate(digest)
    4. code = dbc % 10^digits, zero-padded

    Arguments:
        key: raw secret bytes
        counter: HOTP counter or TOTP time slice
        algorithm: HMAC hash family
        digits: 6 or 8

    Returns:
        str: the passcode
    """
    digest = compute_hmac(key, int_to_bytes(counter), algorithm)
    return format_code(dynamic_truncate(digest), digits)


def generate_secret(length: int = DEFAULT_SECRET_BYTES) -> bytes:
    """
    Draw a new shared secret from the OS CSPRNG.

    80 bits is the conventional size for authenticator apps; longer keys are
    fine for every supported algorithm.
    """
    if isinstance(length, bool) or not isinstance(length, int) or length <= 0:
        raise InvalidConfiguration("Secret length must be a positive number of bytes")
    return os.urandom(length)
