"""
exceptions.py — error types raised by the authenticator package.

Every error derives from AuthenticatorError. Errors caused by a bad value
passed in by the caller also derive from ValueError, so code written against
plain `except ValueError` keeps working.
"""


class AuthenticatorError(Exception):
    """Base class for all errors raised by this package."""


class InvalidConfiguration(AuthenticatorError, ValueError):
    """Digit count, period, algorithm name or issuer is not acceptable."""


class MalformedSecret(AuthenticatorError, ValueError):
    """A handshake code could not be base32-decoded."""


class UnsupportedAlgorithm(AuthenticatorError):
    """The HMAC backend does not provide the requested hash family."""


class InvalidSecret(AuthenticatorError, ValueError):
    """The HMAC primitive rejected the key."""


class EncodingFailure(AuthenticatorError):
    """A value could not be UTF-8 encoded for use inside a URI."""


class InvalidCounter(AuthenticatorError, ValueError):
    """A moving factor fell outside the unsigned 64-bit range."""


class MalformedUri(AuthenticatorError, ValueError):
    """
    A provisioning URI could not be parsed.

    `field` names the offending part of the URI (scheme, type, label, or a
    query parameter name) when it is known.
    """

    def __init__(self, message: str, field: str = None):
        super().__init__(message)
        self.field = field
