"""
builder.py — assembles generators from algorithm, digits, period and issuer.

The builder is mutable and meant for a single owner. The issuer is only
supplied at the terminal step so one builder can produce generators for
several issuers.

Google Authenticator ignores the algorithm, digits and period parameters and
always assumes SHA1 / 6 / 30 s. Keep the defaults for maximum compatibility;
the builder does not enforce them.
"""

import logging
import time
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Callable, Union

from .generators import CounterTokenGenerator, PeriodTokenGenerator
from .otp_core import (
    DEFAULT_DIGITS,
    DEFAULT_TIME_STEP,
    Algorithm,
    check_digits,
    check_period,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GeneratorConfig:
    """Snapshot of a builder's settings."""

    algorithm: Algorithm = Algorithm.SHA1
    digits: int = DEFAULT_DIGITS
    period: int = DEFAULT_TIME_STEP
    clock: Callable[[], float] = field(default=time.time, repr=False, compare=False)


class TokenGeneratorBuilder:
    def __init__(self):
        self._algorithm = Algorithm.SHA1
        self._digits = DEFAULT_DIGITS
        self._period = DEFAULT_TIME_STEP
        self._clock = time.time

    @property
    def config(self) -> GeneratorConfig:
        return GeneratorConfig(self._algorithm, self._digits, self._period, self._clock)

    def algorithm(self, algorithm: Union[Algorithm, str]) -> "TokenGeneratorBuilder":
        """Set the HMAC hash family (an Algorithm or a name such as "SHA256")."""
        self._algorithm = Algorithm.from_name(algorithm)
        return self

    def digits(self, digits: int) -> "TokenGeneratorBuilder":
        """
        Set the code length.

        Raises:
            InvalidConfiguration: digits is not 6 or 8
        """
        self._digits = check_digits(digits)
        return self

    def period(self, period: Union[int, timedelta]) -> "TokenGeneratorBuilder":
        """
        Set how long a TOTP code stays valid. Only used by build_period.

        Raises:
            InvalidConfiguration: period is not a positive whole number of seconds
        """
        self._period = check_period(period)
        return self

    def clock(self, clock: Callable[[], float]) -> "TokenGeneratorBuilder":
        """Set the source of "now" (epoch seconds) for TOTP generators."""
        if not callable(clock):
            raise TypeError("clock must be a zero-argument callable")
        self._clock = clock
        return self

    def build_counter(self, issuer: str) -> CounterTokenGenerator:
        generator = CounterTokenGenerator(issuer, self._algorithm, self._digits)
        logger.debug(
            "Built HOTP generator for %r (%s, %d digits)",
            issuer, self._algorithm.value, self._digits,
        )
        return generator

    def build_period(self, issuer: str) -> PeriodTokenGenerator:
        generator = PeriodTokenGenerator(
            issuer, self._algorithm, self._digits, self._period, self._clock
        )
        logger.debug(
            "Built TOTP generator for %r (%s, %d digits, %ds period)",
            issuer, self._algorithm.value, self._digits, self._period,
        )
        return generator
