"""
generators.py — configured HOTP and TOTP generators.

A generator is bound to an issuer, an HMAC algorithm and a digit count (and,
for TOTP, a period and a clock). Generators are frozen once built and can be
shared freely between threads; secrets are passed in on every call and never
stored.
"""

import abc
import logging
import math
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Iterator, Optional, Tuple, Union

from cryptography.hazmat.primitives import constant_time

from . import secret_codec, uri
from .exceptions import InvalidConfiguration, InvalidSecret
from .otp_core import (
    COUNTER_MAX,
    DEFAULT_DIGITS,
    DEFAULT_TIME_STEP,
    Algorithm,
    check_counter,
    check_digits,
    check_period,
    generate_code,
    generate_secret,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SecretKey:
    """
    A shared secret.

    `algorithm` records the family the key was created or parsed for. It is
    advisory: any generator accepts any key.
    """

    encoded: bytes = field(repr=False)
    algorithm: Optional[Algorithm] = None

    def __len__(self) -> int:
        return len(self.encoded)


Secret = Union[SecretKey, bytes]
Timestamp = Union[datetime, int, float, None]


def _secret_bytes(secret: Secret) -> bytes:
    if isinstance(secret, SecretKey):
        return secret.encoded
    if isinstance(secret, (bytes, bytearray, memoryview)):
        return bytes(secret)
    raise InvalidSecret(f"Expected a SecretKey or bytes, got {type(secret).__name__}")


@dataclass(frozen=True)
class TokenGenerator(abc.ABC):
    """State and behaviour shared by the HOTP and TOTP generators."""

    issuer: str
    algorithm: Algorithm = Algorithm.SHA1
    digits: int = DEFAULT_DIGITS

    def __post_init__(self):
        if not isinstance(self.issuer, str) or not self.issuer or not self.issuer.isprintable():
            raise InvalidConfiguration("Issuer must be non-empty printable text")
        object.__setattr__(self, "algorithm", Algorithm.from_name(self.algorithm))
        check_digits(self.digits)

    def build_handshake_code(self, secret: Secret, human_readable: bool = True) -> str:
        """
        Render a secret for manual entry into an authenticator app.

        The human readable form ("klyq v62w lkek rqqm") is the default; pass
        human_readable=False for the raw base32 used inside URIs.
        """
        return secret_codec.encode(_secret_bytes(secret), human_readable)

    def parse_code(self, code: str) -> SecretKey:
        """Parse a raw or human readable handshake code into a key."""
        return SecretKey(secret_codec.decode(code), self.algorithm)

    def generate_secret(self) -> SecretKey:
        """Create a new random 80-bit key for use with this generator."""
        return SecretKey(generate_secret(), self.algorithm)

    @abc.abstractmethod
    def generate_code(self, secret: Secret, moving_factor) -> str:
        """Generate the code for this generator's moving factor."""

    @abc.abstractmethod
    def build_uri(self, secret: Secret, account: str) -> str:
        """Provisioning URI for `account`."""

    def _code_at(self, secret: Secret, counter: int) -> str:
        return generate_code(_secret_bytes(secret), counter, self.algorithm, self.digits)

    def _well_formed(self, code) -> bool:
        return (
            isinstance(code, str)
            and len(code) == self.digits
            and code.isascii()
            and code.isdigit()
        )

    @staticmethod
    def _same_code(expected: str, code: str) -> bool:
        return constant_time.bytes_eq(expected.encode("ascii"), code.encode("ascii"))


@dataclass(frozen=True)
class CounterTokenGenerator(TokenGenerator):
    """Counter based generator (HOTP, RFC 4226)."""

    def generate_code(self, secret: Secret, counter: int) -> str:
        """
        Generate the code for a counter value.

        Raises:
            InvalidCounter: counter outside 0 .. 2^64-1
            InvalidSecret: the key is empty or not bytes
            UnsupportedAlgorithm: the HMAC backend lacks the hash family
        """
        return self._code_at(secret, counter)

    def build_uri(self, secret: Secret, account: str, counter: int = 1) -> str:
        """Provisioning URI for an HOTP account, starting at `counter`."""
        return uri.build_uri(
            uri.HOTP,
            self.issuer,
            account,
            self.build_handshake_code(secret, False),
            self.algorithm,
            self.digits,
            counter=counter,
        )

    def validate_code(
        self, code: str, secret: Secret, counter: int, look_ahead: int = 0
    ) -> Tuple[bool, int]:
        """
        Check an HOTP code against `counter` and up to `look_ahead` later values.

        Returns:
            (True, next_counter) on a match, where next_counter is one past the
            matching value and should be stored by the caller;
            (False, counter) otherwise, including for malformed codes.

        The last 64-bit value never validates: its next counter would not
        fit, so a counter of 2^64-1 is exhausted and the key must be rotated.
        """
        check_counter(counter)
        if isinstance(look_ahead, bool) or not isinstance(look_ahead, int) or look_ahead < 0:
            raise InvalidConfiguration("look_ahead must be a non-negative integer")
        if not self._well_formed(code):
            return False, counter

        for candidate in range(counter, min(counter + look_ahead, COUNTER_MAX - 1) + 1):
            if self._same_code(self._code_at(secret, candidate), code):
                logger.debug("HOTP code matched %d step(s) ahead", candidate - counter)
                return True, candidate + 1
        return False, counter


def _window_offsets(window: int) -> Iterator[int]:
    yield 0
    for i in range(1, window + 1):
        yield -i
        yield i


@dataclass(frozen=True)
class PeriodTokenGenerator(TokenGenerator):
    """Time based generator (TOTP, RFC 6238)."""

    period: int = DEFAULT_TIME_STEP
    clock: Callable[[], float] = field(default=time.time, repr=False, compare=False)

    def __post_init__(self):
        super().__post_init__()
        object.__setattr__(self, "period", check_period(self.period))

    def _epoch_seconds(self, timestamp: Timestamp) -> int:
        if timestamp is None:
            timestamp = self.clock()
        if isinstance(timestamp, datetime):
            if timestamp.tzinfo is None:
                # naive datetimes are read as UTC, never as local time
                timestamp = timestamp.replace(tzinfo=timezone.utc)
            timestamp = timestamp.timestamp()
        if isinstance(timestamp, bool) or not isinstance(timestamp, (int, float)):
            raise TypeError(f"Timestamp must be a datetime or epoch seconds, got {timestamp!r}")
        if isinstance(timestamp, float) and not math.isfinite(timestamp):
            raise TypeError(f"Timestamp must be a finite number of seconds, got {timestamp!r}")
        return math.floor(timestamp)

    def time_slice(self, timestamp: Timestamp = None) -> int:
        """The TOTP moving factor, floor(epoch seconds / period)."""
        return self._epoch_seconds(timestamp) // self.period

    def remaining_seconds(self, timestamp: Timestamp = None) -> int:
        """Seconds until the code at `timestamp` rolls over (1 .. period)."""
        return self.period - self._epoch_seconds(timestamp) % self.period

    def generate_code(self, secret: Secret, timestamp: Timestamp = None) -> str:
        """
        Generate the code for `timestamp` (default: now, from the clock).

        Arguments:
            secret: SecretKey or raw key bytes
            timestamp: datetime or epoch seconds; naive datetimes are UTC
        """
        return self._code_at(secret, self.time_slice(timestamp))

    def validate_code(
        self, code: str, secret: Secret, timestamp: Timestamp = None, window: int = 1
    ) -> bool:
        """
        Check a TOTP code, tolerating `window` periods of clock skew either way.

        Slices are tried in the order 0, -1, +1, -2, +2, ... Slices before the
        epoch are skipped. Malformed codes return False instead of raising.
        """
        if isinstance(window, bool) or not isinstance(window, int) or window < 0:
            raise InvalidConfiguration("window must be a non-negative integer")
        if not self._well_formed(code):
            return False

        current = self.time_slice(timestamp)
        for offset in _window_offsets(window):
            candidate = current + offset
            if not 0 <= candidate <= COUNTER_MAX:
                continue
            if self._same_code(self._code_at(secret, candidate), code):
                logger.debug("TOTP code matched at offset %+d", offset)
                return True
        return False

    def build_uri(self, secret: Secret, account: str) -> str:
        """Provisioning URI for a TOTP account."""
        return uri.build_uri(
            uri.TOTP,
            self.issuer,
            account,
            self.build_handshake_code(secret, False),
            self.algorithm,
            self.digits,
            period=self.period,
        )
