"""Referral code lifecycle: creation, deletion and lookups.

Expiration is always judged against the clock at read time. Expired codes
are never swept; they stay in storage until deleted.
"""

from datetime import datetime
from typing import Callable

from exceptions import (
    DuplicateReferralCodeError,
    ExpirationInPastError,
    ReferralCodeExpiredError,
    ReferralCodeNotFoundError,
    StoreError,
)
from logging_config import get_logger
from services.auth import AuthService
from stores.base import CodeStore, ReferralCodeRecord
from utils import generate_referral_code, utcnow

logger = get_logger(__name__)

CODE_GENERATION_ATTEMPTS = 3


def normalize_code(code: str) -> str:
    return code.strip().upper()


class ReferralCodeService:
    def __init__(
        self,
        codes: CodeStore,
        auth: AuthService,
        clock: Callable[[], datetime] = utcnow,
        code_generator: Callable[[], str] = generate_referral_code,
        max_attempts: int = CODE_GENERATION_ATTEMPTS,
    ):
        self.codes = codes
        self.auth = auth
        self.clock = clock
        self.code_generator = code_generator
        self.max_attempts = max_attempts

    def create_code(self, referrer_id: int, expires_at: datetime) -> ReferralCodeRecord:
        """Issue a new code for the referrer.

        Fails with ReferralCodeAlreadyActiveError while the referrer still has
        an unexpired code. A collision on the generated string is retried a
        few times before giving up with StoreError.
        """
        now = self.clock()
        if expires_at <= now:
            raise ExpirationInPastError(f"expiration {expires_at.isoformat()} is not in the future")

        for attempt in range(1, self.max_attempts + 1):
            code = self.code_generator()
            try:
                record = self.codes.create_code(code, expires_at, referrer_id, now)
            except DuplicateReferralCodeError:
                logger.warning("referral_code_collision", referrer_id=referrer_id, attempt=attempt)
                continue
            logger.info("referral_code_created", referrer_id=referrer_id, code_id=record.id)
            return record

        logger.error("referral_code_generation_exhausted", referrer_id=referrer_id, attempts=self.max_attempts)
        raise StoreError("could not generate a unique referral code")

    def delete_active_code(self, referrer_id: int) -> None:
        active = self.codes.get_active_code_by_referrer_id(referrer_id, self.clock())
        if self.codes.delete_code_by_id(active.id) == 0:
            # deleted by a concurrent request between lookup and delete
            raise ReferralCodeNotFoundError(referrer_id)
        logger.info("referral_code_deleted", referrer_id=referrer_id, code_id=active.id)

    def lookup_by_owner_email(self, email: str) -> ReferralCodeRecord:
        user = self.auth.get_user_by_email(email)
        return self.codes.get_active_code_by_referrer_id(user.id, self.clock())

    def resolve_code_id(self, code: str) -> int:
        code_id, expires_at = self.codes.get_code_id_and_expiration(normalize_code(code))
        if expires_at <= self.clock():
            logger.info("referral_code_expired", code_id=code_id)
            raise ReferralCodeExpiredError(code)
        return code_id

    def resolve_referrer_id(self, code: str) -> int:
        return self.codes.get_referrer_id_by_code(normalize_code(code))
