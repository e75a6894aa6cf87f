from __future__ import annotations

import base64
import json
import time
from datetime import datetime, timedelta, timezone

import jwt
import pytest

from studymate.auth.deps import extract_bearer_token
from studymate.auth.security import (
    create_access_token,
    hash_password,
    validate_access_token,
    verify_password,
)


SECRET = "unit-secret"


def test_issued_token_resolves_to_student_id():
    token = create_access_token(secret=SECRET, student_id=42, expires_minutes=60)
    assert validate_access_token(token, secret=SECRET) == 42


def test_default_lifetime_is_encoded_as_absolute_expiry():
    now = datetime.now(timezone.utc)
    token = create_access_token(secret=SECRET, student_id=7, expires_minutes=24 * 60, now=now)
    payload = jwt.decode(token, SECRET, algorithms=["HS256"])
    assert payload["sub"] == "7"
    assert payload["exp"] == int((now + timedelta(hours=24)).timestamp())


@pytest.mark.parametrize("minutes", [-1, -60, 0])
def test_token_with_past_or_current_expiry_is_invalid(minutes):
    token = create_access_token(secret=SECRET, student_id=1, expires_minutes=minutes)
    assert validate_access_token(token, secret=SECRET) is None


def test_token_signed_with_other_secret_is_invalid():
    token = create_access_token(secret="someone-else", student_id=1, expires_minutes=60)
    assert validate_access_token(token, secret=SECRET) is None


def test_unsigned_base64_payload_is_rejected():
    # The legacy front end minted tokens like this; anyone could forge one.
    payload = {"studentId": 1, "exp": int(time.time()) + 3600}
    forged = base64.b64encode(json.dumps(payload).encode()).decode()
    assert validate_access_token(forged, secret=SECRET) is None


@pytest.mark.parametrize("token", [None, "", "abc", "a.b.c", "Bearer x", "\x00\xff"])
def test_garbage_never_raises(token):
    assert validate_access_token(token, secret=SECRET) is None


@pytest.mark.parametrize("sub", ["abc", "0", "-3", "1.5"])
def test_subject_must_be_positive_integer(sub):
    exp = int(time.time()) + 3600
    token = jwt.encode({"sub": sub, "exp": exp}, SECRET, algorithm="HS256")
    assert validate_access_token(token, secret=SECRET) is None


def test_missing_exp_is_invalid():
    token = jwt.encode({"sub": "1"}, SECRET, algorithm="HS256")
    assert validate_access_token(token, secret=SECRET) is None


def test_password_hash_roundtrip():
    h = hash_password("pw123")
    assert h != "pw123"
    assert verify_password("pw123", h)
    assert not verify_password("pw124", h)
    assert not verify_password("", h)
    assert not verify_password("pw123", "not-a-hash")


def test_password_hashes_are_salted():
    assert hash_password("same") != hash_password("same")


@pytest.mark.parametrize(
    "header,expected",
    [
        ("Bearer abc.def", "abc.def"),
        ("Bearer   tok  ", "tok"),
        ("bearer abc", None),
        ("BEARER abc", None),
        ("Basic abc", None),
        ("Bearerabc", None),
        ("Bearer ", None),
        ("", None),
        (None, None),
    ],
)
def test_extract_bearer_token_requires_exact_prefix(header, expected):
    assert extract_bearer_token(header) == expected
