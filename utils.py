import base64
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from passlib.context import CryptContext

REFERRAL_CODE_LENGTH = 8
HMAC_ALGORITHMS = ("HS256", "HS384", "HS512")


def utcnow() -> datetime:
    """Naive UTC now; every timestamp in the database is naive UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def build_password_context(rounds: int = 12) -> CryptContext:
    return CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)


pwd_context = build_password_context()


def verify_password(plain_password: str, hashed_password: str, context: CryptContext = pwd_context) -> bool:
    return context.verify(plain_password, hashed_password)


def get_password_hash(password: str, context: CryptContext = pwd_context) -> str:
    return context.hash(password)


def create_access_token(
    data: dict,
    secret: str,
    algorithm: str,
    expires_delta: timedelta,
    now: Optional[datetime] = None,
) -> str:
    issued_at = now or utcnow()
    to_encode = data.copy()
    to_encode.update({
        "iat": issued_at.replace(tzinfo=timezone.utc),
        "exp": (issued_at + expires_delta).replace(tzinfo=timezone.utc),
        "jti": secrets.token_hex(16),
    })
    return jwt.encode(to_encode, secret, algorithm=algorithm)


def generate_referral_code(length: int = REFERRAL_CODE_LENGTH) -> str:
    """Random base64url code, uppercased and cut to ``length`` characters.

    At least ``length`` random bytes are drawn so the encoded form is always
    long enough to truncate.
    """
    random_bytes = secrets.token_bytes(max(length, 8))
    code = base64.urlsafe_b64encode(random_bytes).decode("ascii").rstrip("=")
    return code.upper()[:length]


def parse_expiration_date(value: str) -> datetime:
    """Parse ``DD.MM.YYYY`` into midnight UTC (naive)."""
    return datetime.strptime(value.strip(), "%d.%m.%Y")
