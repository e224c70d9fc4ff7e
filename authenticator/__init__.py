"""
authenticator package
=====================

HOTP / TOTP one-time passcodes (RFC 4226 & RFC 6238) and the provisioning
artifacts authenticator apps consume: base32 handshake codes and
otpauth:// URIs.

──────────────────────────────────────────────
Core algorithm
──────────────────────────────────────────────
- HOTP: code = Truncate(HMAC(key=secret, msg=counter)) mod 10^digits
- TOTP: HOTP with counter = floor(epoch seconds / period), period 30 s by default
- Dynamic truncation: 4 bytes from the digest at offset = last byte & 0x0F,
  sign bit cleared.

──────────────────────────────────────────────
Quick start
──────────────────────────────────────────────
>>> import authenticator
>>> totp = authenticator.builder().build_period("MyService")
>>> key = totp.generate_secret()
>>> totp.build_uri(key, "alice@example.com")      # render as a QR code
>>> totp.build_handshake_code(key)                # or type it in by hand
>>> totp.validate_code(user_input, key, window=1)

>>> hotp = authenticator.builder().digits(8).build_counter("MyService")
>>> ok, next_counter = hotp.validate_code(user_input, key, stored_counter, look_ahead=3)

Secrets are never stored by the library; persist SecretKey.encoded (or its
handshake code) yourself.
"""

import logging

from .builder import GeneratorConfig, TokenGeneratorBuilder
from .exceptions import (
    AuthenticatorError,
    EncodingFailure,
    InvalidConfiguration,
    InvalidCounter,
    InvalidSecret,
    MalformedSecret,
    MalformedUri,
    UnsupportedAlgorithm,
)
from .generators import (
    CounterTokenGenerator,
    PeriodTokenGenerator,
    SecretKey,
    TokenGenerator,
)
from .otp_core import Algorithm
from .uri import ProvisioningUri, parse_uri

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "Algorithm",
    "AuthenticatorError",
    "CounterTokenGenerator",
    "EncodingFailure",
    "GeneratorConfig",
    "InvalidConfiguration",
    "InvalidCounter",
    "InvalidSecret",
    "MalformedSecret",
    "MalformedUri",
    "PeriodTokenGenerator",
    "ProvisioningUri",
    "SecretKey",
    "TokenGenerator",
    "TokenGeneratorBuilder",
    "UnsupportedAlgorithm",
    "builder",
    "parse_uri",
]


def builder() -> TokenGeneratorBuilder:
    """Start configuring a generator (SHA1, 6 digits, 30 s period by default)."""
    return TokenGeneratorBuilder()
