"""
uri.py — otpauth:// provisioning URIs.

- HOTP: otpauth://hotp/{issuer}:{account}?secret=...&issuer=...&counter=...&algorithm=...&digits=...
- TOTP: otpauth://totp/{issuer}:{account}?secret=...&issuer=...&period=...&algorithm=...&digits=...

Parameter order is fixed; existing fixtures compare URIs as strings.
Issuer, account and secret are percent-encoded from UTF-8 with no safe
characters, so `&`, `=` and `:` never appear inside a value.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple
from urllib.parse import parse_qs, quote, unquote, urlsplit

from . import secret_codec
from .exceptions import EncodingFailure, MalformedUri
from .otp_core import (
    DEFAULT_DIGITS,
    DEFAULT_TIME_STEP,
    Algorithm,
    check_counter,
    check_digits,
    check_period,
)

logger = logging.getLogger(__name__)

SCHEME = "otpauth"
HOTP = "hotp"
TOTP = "totp"
OTP_TYPES = (HOTP, TOTP)


@dataclass(frozen=True)
class ProvisioningUri:
    """Everything an authenticator app learns from a provisioning URI."""

    type: str
    issuer: str
    account: str
    secret: bytes = field(repr=False)
    algorithm: Algorithm = Algorithm.SHA1
    digits: int = DEFAULT_DIGITS
    counter: Optional[int] = None
    period: Optional[int] = None

    def to_uri(self) -> str:
        return build_uri(
            self.type,
            self.issuer,
            self.account,
            secret_codec.encode(self.secret),
            self.algorithm,
            self.digits,
            counter=self.counter,
            period=self.period,
        )


def encode_component(value: str) -> str:
    """Percent-encode a label or query value from UTF-8."""
    if not isinstance(value, str):
        raise EncodingFailure(f"Expected text, got {type(value).__name__}")
    try:
        raw = value.encode("utf-8")
    except UnicodeEncodeError as e:
        raise EncodingFailure(f"Value cannot be encoded as UTF-8: {e}") from e
    return quote(raw, safe="")


def build_uri(
    otp_type: str,
    issuer: str,
    account: str,
    secret_code: str,
    algorithm: Algorithm,
    digits: int,
    counter: int = None,
    period: int = None,
) -> str:
    """
    Assemble a provisioning URI.

    Arguments:
        otp_type: "hotp" or "totp"
        issuer: service name shown next to the account
        account: account label (e.g. 'alice@example.com')
        secret_code: raw (not human formatted) base32 secret
        algorithm: HMAC hash family
        digits: 6 or 8
        counter: initial counter, required for HOTP
        period: step in seconds, required for TOTP
    """
    issuer_q = encode_component(issuer)
    params: List[Tuple[str, str]] = [
        ("secret", encode_component(secret_code)),
        ("issuer", issuer_q),
    ]
    if otp_type == HOTP:
        if counter is None:
            raise ValueError("HOTP URIs need a counter")
        params.append(("counter", str(check_counter(counter))))
    elif otp_type == TOTP:
        if period is None:
            raise ValueError("TOTP URIs need a period")
        params.append(("period", str(check_period(period))))
    else:
        raise ValueError(f"Unknown OTP type {otp_type!r}")
    params.append(("algorithm", algorithm.value))
    params.append(("digits", str(digits)))

    query = "&".join(f"{name}={value}" for name, value in params)
    label = f"{issuer_q}:{encode_component(account)}"
    return f"{SCHEME}://{otp_type}/{label}?{query}"


def _split_label(path: str) -> Tuple[str, str]:
    raw = path[1:] if path.startswith("/") else path
    # Prefer the unescaped separator; some encoders escape the colon as well
    if ":" in raw:
        issuer, account = raw.split(":", 1)
        return unquote(issuer).strip(), unquote(account).strip()
    label = unquote(raw)
    if ":" in label:
        issuer, account = label.split(":", 1)
        return issuer.strip(), account.strip()
    return "", label.strip()


def parse_uri(uri: str) -> ProvisioningUri:
    """
    Parse a provisioning URI produced by build_uri or by another issuer.

    The `issuer` query parameter wins over the label prefix. Missing
    algorithm, digits and period fall back to SHA1, 6 and 30 seconds.

    Raises:
        MalformedUri: wrong scheme or type, empty label, missing secret,
            issuer or HOTP counter, non-numeric numbers
        MalformedSecret: the secret is not valid base32
        InvalidConfiguration: unsupported algorithm, digits or period
    """
    if not isinstance(uri, str) or not uri:
        raise MalformedUri("Provisioning URI is empty", field="uri")

    parsed = urlsplit(uri)
    if parsed.scheme.lower() != SCHEME:
        raise MalformedUri(f"Not an {SCHEME} URI: scheme is {parsed.scheme!r}", field="scheme")
    otp_type = parsed.netloc.lower()
    if otp_type not in OTP_TYPES:
        raise MalformedUri(f"Unknown OTP type {parsed.netloc!r}", field="type")

    label_issuer, account = _split_label(parsed.path)
    if not account:
        raise MalformedUri("Provisioning URI has no account name", field="label")

    query = parse_qs(parsed.query, keep_blank_values=True)

    def first(name: str) -> Optional[str]:
        values = query.get(name)
        if not values:
            return None
        return values[0]

    def number(name: str, default: Optional[int]) -> Optional[int]:
        value = first(name)
        if value is None or value == "":
            return default
        try:
            return int(value)
        except ValueError as e:
            raise MalformedUri(f"Parameter {name!r} is not a number: {value!r}", field=name) from e

    secret = first("secret")
    if not secret:
        raise MalformedUri("Provisioning URI has no secret", field="secret")

    issuer = first("issuer") or label_issuer
    if not issuer:
        raise MalformedUri("Provisioning URI has no issuer", field="issuer")

    algorithm = Algorithm.from_name(first("algorithm") or Algorithm.SHA1.value)
    digits = check_digits(number("digits", DEFAULT_DIGITS))

    counter = period = None
    if otp_type == HOTP:
        counter = number("counter", None)
        if counter is None:
            raise MalformedUri("HOTP provisioning URI has no counter", field="counter")
        check_counter(counter)
    else:
        period = check_period(number("period", DEFAULT_TIME_STEP))

    logger.debug("Parsed %s provisioning URI for issuer %r", otp_type, issuer)
    return ProvisioningUri(
        type=otp_type,
        issuer=issuer,
        account=account,
        secret=secret_codec.decode(secret),
        algorithm=algorithm,
        digits=digits,
        counter=counter,
        period=period,
    )
