from datetime import datetime, timedelta

import jwt
import pytest

from utils import (
    REFERRAL_CODE_LENGTH,
    build_password_context,
    create_access_token,
    generate_referral_code,
    get_password_hash,
    parse_expiration_date,
    utcnow,
    verify_password,
)


def test_referral_codes_are_short_uppercase_and_random():
    codes = {generate_referral_code() for _ in range(200)}

    assert len(codes) == 200
    for code in codes:
        assert len(code) == REFERRAL_CODE_LENGTH
        assert code == code.upper()
        assert set(code) <= set("ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789-_")


def test_password_hash_roundtrip():
    context = build_password_context(rounds=4)
    hashed = get_password_hash("pw1", context)

    assert hashed != "pw1"
    assert verify_password("pw1", hashed, context)
    assert not verify_password("pw2", hashed, context)


def test_access_token_claims():
    now = utcnow()
    token = create_access_token({"sub": "7"}, "k" * 32, "HS256", timedelta(hours=24), now=now)

    payload = jwt.decode(token, "k" * 32, algorithms=["HS256"])

    assert payload["sub"] == "7"
    assert payload["exp"] - payload["iat"] == 24 * 3600
    assert payload["jti"]


def test_parse_expiration_date():
    assert parse_expiration_date("31.12.2099") == datetime(2099, 12, 31)


@pytest.mark.parametrize("value", ["2099-12-31", "31/12/2099", "32.12.2099", ""])
def test_parse_expiration_date_rejects_other_formats(value):
    with pytest.raises(ValueError):
        parse_expiration_date(value)
