import types
from datetime import timedelta

import pytest
from cryptography.exceptions import UnsupportedAlgorithm as BackendUnsupportedAlgorithm

from authenticator import otp_core
from authenticator.exceptions import (
    InvalidConfiguration,
    InvalidCounter,
    InvalidSecret,
    UnsupportedAlgorithm,
)
from authenticator.otp_core import Algorithm

RFC4226_SECRET = b"12345678901234567890"

RFC6238_SECRETS = {
    Algorithm.SHA1: b"12345678901234567890",
    Algorithm.SHA256: b"12345678901234567890123456789012",
    Algorithm.SHA512: b"1234567890" * 6 + b"1234",
}


@pytest.mark.parametrize(
    "counter, expected",
    list(enumerate([
        "755224", "287082", "359152", "969429", "338314",
        "254676", "287922", "162583", "399871", "520489",
    ])),
)
def test_rfc4226_vectors(counter, expected):
    assert otp_core.generate_code(RFC4226_SECRET, counter, Algorithm.SHA1, 6) == expected


@pytest.mark.parametrize(
    "epoch, sha1, sha256, sha512",
    [
        (59, "94287082", "46119246", "90693936"),
        (1111111109, "07081804", "68084774", "25091201"),
        (1111111111, "14050471", "67062674", "99943326"),
        (1234567890, "89005924", "91819424", "93441116"),
        (2000000000, "69279037", "90698825", "38618901"),
        (20000000000, "65353130", "77737706", "47863826"),
    ],
)
def test_rfc6238_vectors(epoch, sha1, sha256, sha512):
    counter = epoch // 30
    for algorithm, expected in zip(Algorithm, (sha1, sha256, sha512)):
        secret = RFC6238_SECRETS[algorithm]
        assert otp_core.generate_code(secret, counter, algorithm, 8) == expected


def test_int_to_bytes_is_eight_bytes_big_endian():
    assert otp_core.int_to_bytes(1) == b"\x00\x00\x00\x00\x00\x00\x00\x01"
    assert otp_core.int_to_bytes(0x0102030405060708) == bytes(range(1, 9))
    assert otp_core.int_to_bytes(otp_core.COUNTER_MAX) == b"\xff" * 8


@pytest.mark.parametrize("counter", [-1, 2 ** 64, 1.0, "1", True])
def test_int_to_bytes_rejects_out_of_range(counter):
    with pytest.raises(InvalidCounter):
        otp_core.int_to_bytes(counter)


def test_dynamic_truncate_rfc4226_example():
    # RFC 4226 §5.4
    digest = bytes.fromhex("1f8698690e02ca16618550ef7f19da8e945b555a")
    assert otp_core.dynamic_truncate(digest) == 0x50EF7F19
    assert otp_core.format_code(0x50EF7F19, 6) == "872921"


def test_dynamic_truncate_clears_sign_bit():
    digest = b"\xff" * 19 + b"\x00"
    assert otp_core.dynamic_truncate(digest) == 0x7FFFFFFF


def test_format_code_zero_pads():
    assert otp_core.format_code(42, 6) == "000042"
    assert otp_core.format_code(1000000042, 8) == "00000042"


@pytest.mark.parametrize("digits", [6, 8])
def test_codes_have_fixed_width(digits):
    for counter in range(200):
        code = otp_core.generate_code(b"secret-key", counter, Algorithm.SHA1, digits)
        assert len(code) == digits
        assert code.isdigit()


def test_algorithm_digest_sizes():
    assert [a.digest_size for a in Algorithm] == [20, 32, 64]


@pytest.mark.parametrize(
    "name, expected",
    [("SHA1", Algorithm.SHA1), ("sha256", Algorithm.SHA256), ("SHA-512", Algorithm.SHA512)],
)
def test_algorithm_from_name(name, expected):
    assert Algorithm.from_name(name) is expected


@pytest.mark.parametrize("name", ["MD5", "", None, 1])
def test_algorithm_from_name_rejects_unknown(name):
    with pytest.raises(InvalidConfiguration):
        Algorithm.from_name(name)


def test_check_digits():
    assert otp_core.check_digits(6) == 6
    assert otp_core.check_digits(8) == 8
    for digits in (0, 5, 7, 9, 10, "6", True):
        with pytest.raises(InvalidConfiguration):
            otp_core.check_digits(digits)


def test_check_period():
    assert otp_core.check_period(30) == 30
    assert otp_core.check_period(timedelta(minutes=2)) == 120
    for period in (0, -30, timedelta(0), timedelta(seconds=-1), timedelta(seconds=1.5), 30.0):
        with pytest.raises(InvalidConfiguration):
            otp_core.check_period(period)


@pytest.mark.parametrize("key", [b"", bytearray(), "KLYQV62WLKEKRQQM", None])
def test_compute_hmac_rejects_bad_keys(key):
    with pytest.raises(InvalidSecret):
        otp_core.compute_hmac(key, otp_core.int_to_bytes(0), Algorithm.SHA1)


def test_compute_hmac_reports_missing_hash(monkeypatch):
    def unsupported(key, algorithm):
        raise BackendUnsupportedAlgorithm("no such hash")

    monkeypatch.setattr(otp_core, "crypto_hmac", types.SimpleNamespace(HMAC=unsupported))
    with pytest.raises(UnsupportedAlgorithm) as excinfo:
        otp_core.compute_hmac(b"key", otp_core.int_to_bytes(0), Algorithm.SHA512)
    assert "SHA512" in str(excinfo.value)
    assert isinstance(excinfo.value.__cause__, BackendUnsupportedAlgorithm)


def test_generate_secret_default_is_80_bits():
    secret = otp_core.generate_secret()
    assert isinstance(secret, bytes)
    assert len(secret) == 10
    assert otp_core.generate_secret() != secret


def test_generate_secret_rejects_bad_length():
    assert len(otp_core.generate_secret(32)) == 32
    for length in (0, -1, 1.5):
        with pytest.raises(InvalidConfiguration):
            otp_core.generate_secret(length)
