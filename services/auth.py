"""Registration, password authentication and bearer tokens."""

import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import jwt
from passlib.context import CryptContext

from exceptions import (
    BadPasswordError,
    BadSignatureError,
    InvalidTokenError,
    MalformedTokenError,
    TokenExpiredError,
    TokenRevokedError,
    UserAlreadyExistsError,
    UserNotFoundError,
)
from logging_config import get_logger
from stores.base import TokenRevocationStore, UserRecord, UserStore
from utils import HMAC_ALGORITHMS, create_access_token, get_password_hash, pwd_context, utcnow, verify_password

logger = get_logger(__name__)

DEFAULT_TOKEN_TTL = timedelta(hours=24)


@dataclass(frozen=True)
class TokenClaims:
    user_id: int
    email: str
    token_id: Optional[str]
    expires_at: datetime


class AuthService:
    """Creates users and issues/validates HMAC-signed JWTs.

    The signing key is handed in by whoever builds the service; it is never
    read from the environment here and never logged.
    """

    def __init__(
        self,
        users: UserStore,
        secret_key: str,
        algorithm: str = "HS256",
        token_ttl: timedelta = DEFAULT_TOKEN_TTL,
        password_context: CryptContext = pwd_context,
        revocations: Optional[TokenRevocationStore] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        if not secret_key:
            raise ValueError("secret_key must not be empty")
        if algorithm not in HMAC_ALGORITHMS:
            raise ValueError(f"unsupported token algorithm {algorithm!r}, expected one of {HMAC_ALGORITHMS}")
        self.users = users
        self.algorithm = algorithm
        self.token_ttl = token_ttl
        self.password_context = password_context
        self.revocations = revocations
        self.clock = clock
        self._secret_key = secret_key

    def register(self, email: str, raw_password: str) -> int:
        """Hash the password and store a new user; returns the new user id."""
        try:
            self.users.get_user_by_email(email)
        except UserNotFoundError:
            pass
        else:
            logger.warning("registration_rejected", reason="already_exists")
            raise UserAlreadyExistsError(email)

        hashed_password = get_password_hash(raw_password, self.password_context)
        user = self.users.create_user(email, hashed_password)
        logger.info("user_registered", user_id=user.id)
        return user.id

    def get_user_by_email(self, email: str) -> UserRecord:
        return self.users.get_user_by_email(email)

    def authenticate(self, email: str, raw_password: str) -> str:
        """Check the password and return a signed token.

        Raises UserNotFoundError or BadPasswordError; callers facing clients
        should not tell the two apart.
        """
        user = self.users.get_user_by_email(email)
        if not verify_password(raw_password, user.hashed_password, self.password_context):
            logger.warning("authentication_failed", user_id=user.id)
            raise BadPasswordError(email)
        return self.issue_token(user)

    def issue_token(self, user: UserRecord) -> str:
        token = create_access_token(
            {"sub": str(user.id), "email": user.email},
            self._secret_key,
            self.algorithm,
            self.token_ttl,
            now=self.clock(),
        )
        logger.info("token_issued", user_id=user.id)
        return token

    def validate_token(self, token: str) -> TokenClaims:
        try:
            claims = self._decode(token)
            if self.revocations is not None and claims.token_id and self.revocations.is_revoked(claims.token_id):
                raise TokenRevokedError("token has been revoked")
        except InvalidTokenError as e:
            logger.warning("token_rejected", reason=e.reason)
            raise
        return claims

    def revoke_token(self, token: str) -> None:
        if self.revocations is None:
            raise RuntimeError("token revocation is not configured")
        claims = self.validate_token(token)
        if not claims.token_id:
            raise MalformedTokenError("token has no jti claim")
        remaining = (claims.expires_at - self.clock()).total_seconds()
        self.revocations.revoke(claims.token_id, math.ceil(remaining))
        logger.info("token_revoked", user_id=claims.user_id)

    def _decode(self, token: str) -> TokenClaims:
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self.algorithm],
                options={"require": ["exp", "sub"], "verify_exp": False},
            )
        except (jwt.InvalidSignatureError, jwt.InvalidAlgorithmError) as e:
            raise BadSignatureError(str(e)) from e
        except jwt.InvalidTokenError as e:
            raise MalformedTokenError(str(e)) from e

        try:
            user_id = int(payload["sub"])
            expires_at = datetime.fromtimestamp(int(payload["exp"]), tz=timezone.utc).replace(tzinfo=None)
        except (TypeError, ValueError) as e:
            raise MalformedTokenError("bad sub or exp claim") from e

        if expires_at <= self.clock():
            raise TokenExpiredError("token has expired")

        return TokenClaims(
            user_id=user_id,
            email=payload.get("email", ""),
            token_id=payload.get("jti"),
            expires_at=expires_at,
        )
