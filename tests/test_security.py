from __future__ import annotations

import time

import pytest

from learnify.core.security import (
    TokenExpiredError,
    build_signed_token,
    decode_signed_token,
    generate_activation_code,
    hash_password,
    verify_password,
)


def test_hash_password_round_trip_and_salted() -> None:
    first = hash_password("correct horse")
    second = hash_password("correct horse")

    assert first != second
    assert first.startswith("pbkdf2_sha256$")
    assert verify_password("correct horse", first)
    assert not verify_password("wrong horse", first)


def test_verify_password_rejects_empty_and_malformed_hashes() -> None:
    assert not verify_password("anything", "")
    assert not verify_password("anything", "not-a-hash")
    assert not verify_password("anything", "md5$1$abc$def")


def test_signed_token_rejects_other_secret() -> None:
    token = build_signed_token({"sub": "u1"}, "secret-a")

    assert decode_signed_token(token, "secret-a")["sub"] == "u1"
    with pytest.raises(ValueError, match="signature"):
        decode_signed_token(token, "secret-b")


def test_signed_token_rejects_tampered_payload() -> None:
    token = build_signed_token({"sub": "u1"}, "secret")
    header, _payload, signature = token.split(".")
    forged = build_signed_token({"sub": "admin"}, "other").split(".")[1]

    with pytest.raises(ValueError):
        decode_signed_token(f"{header}.{forged}.{signature}", "secret")


def test_expired_token_raises_token_expired_error() -> None:
    now = int(time.time())
    token = build_signed_token({"sub": "u1", "exp": now - 1}, "secret")

    with pytest.raises(TokenExpiredError):
        decode_signed_token(token, "secret")
    assert decode_signed_token(token, "secret", now=now - 5)["sub"] == "u1"


def test_malformed_token_raises_value_error() -> None:
    with pytest.raises(ValueError, match="Malformed"):
        decode_signed_token("only-one-part", "secret")


def test_generate_activation_code_is_four_digits() -> None:
    codes = {generate_activation_code() for _ in range(200)}

    assert all(len(code) == 4 and code.isdigit() for code in codes)
    assert all(1000 <= int(code) <= 9999 for code in codes)
