"""Per-request wiring of stores and services."""

from datetime import timedelta

import redis
from fastapi import Depends
from sqlalchemy.orm import Session

from config import settings
from database import get_db
from services import AuthService, ReferralCodeService, ReferralService
from stores.revocations import RedisTokenRevocationStore
from stores.sql import SqlCodeStore, SqlUserStore
from utils import build_password_context

redis_client = redis.Redis(
    host=settings.redis_host,
    port=settings.redis_port,
    db=settings.redis_db,
    decode_responses=True,
    socket_timeout=settings.store_timeout_seconds,
    socket_connect_timeout=settings.store_timeout_seconds,
)

password_context = build_password_context(settings.bcrypt_rounds)


def get_redis() -> redis.Redis:
    return redis_client


def get_auth_service(db: Session = Depends(get_db), redis_conn: redis.Redis = Depends(get_redis)) -> AuthService:
    return AuthService(
        SqlUserStore(db),
        secret_key=settings.jwt_secret.get_secret_value(),
        algorithm=settings.jwt_algorithm,
        token_ttl=timedelta(minutes=settings.access_token_expire_minutes),
        password_context=password_context,
        revocations=RedisTokenRevocationStore(redis_conn),
    )


def get_referral_code_service(
    db: Session = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
) -> ReferralCodeService:
    return ReferralCodeService(SqlCodeStore(db), auth_service)


def get_referral_service(
    db: Session = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
    code_service: ReferralCodeService = Depends(get_referral_code_service),
) -> ReferralService:
    return ReferralService(auth_service, code_service, SqlCodeStore(db))
