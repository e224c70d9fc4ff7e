import pytest

import authenticator

REFERENCE_CODE = "KLYQV62WLKEKRQQM"


@pytest.fixture
def hotp():
    return authenticator.builder().build_counter("Issuer")


@pytest.fixture
def totp():
    return authenticator.builder().build_period("Issuer")


@pytest.fixture
def key(hotp):
    return hotp.parse_code(REFERENCE_CODE)
