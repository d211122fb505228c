"""Storage contracts consumed by the services.

Each backend implements these interfaces and returns the plain records
below, never ORM objects, so the services stay independent of the engine.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Tuple


@dataclass(frozen=True)
class UserRecord:
    id: int
    email: str
    hashed_password: str
    created_at: datetime


@dataclass(frozen=True)
class ReferralCodeRecord:
    id: int
    code: str
    referrer_id: int
    expires_at: datetime
    created_at: datetime
    updated_at: datetime

    def is_active(self, now: datetime) -> bool:
        return self.expires_at > now


@dataclass(frozen=True)
class ReferralRecord:
    id: int
    email: str
    referral_code_id: Optional[int]
    referrer_id: int
    created_at: datetime


class UserStore(ABC):
    """Credential store. Owns user rows and enforces email uniqueness."""

    @abstractmethod
    def create_user(self, email: str, hashed_password: str) -> UserRecord:
        """Insert a user. Raises UserAlreadyExistsError if the email is taken."""

    @abstractmethod
    def get_user_by_email(self, email: str) -> UserRecord:
        """Raises UserNotFoundError when missing."""


class CodeStore(ABC):
    """Owns referral codes and referral rows."""

    @abstractmethod
    def create_code(self, code: str, expires_at: datetime, referrer_id: int, now: datetime) -> ReferralCodeRecord:
        """Insert a code unless the referrer already has one active at ``now``.

        The active-code check and the insert happen atomically. Raises
        ReferralCodeAlreadyActiveError or DuplicateReferralCodeError.
        """

    @abstractmethod
    def delete_code_by_id(self, code_id: int) -> int:
        """Delete one code; returns the number of rows removed."""

    @abstractmethod
    def get_active_code_by_referrer_id(self, referrer_id: int, now: datetime) -> ReferralCodeRecord:
        """Raises ReferralCodeNotFoundError when the referrer has no active code."""

    @abstractmethod
    def get_code_id_and_expiration(self, code: str) -> Tuple[int, datetime]:
        """Raises ReferralCodeNotFoundError; expired rows are still returned."""

    @abstractmethod
    def get_referrer_id_by_code(self, code: str) -> int:
        """Raises ReferralCodeNotFoundError."""

    @abstractmethod
    def create_referral(self, email: str, code_id: int, referrer_id: int) -> ReferralRecord:
        pass

    @abstractmethod
    def list_referrals_by_referrer_id(self, referrer_id: int) -> List[ReferralRecord]:
        """Referrals ordered by creation time, oldest first."""


class TokenRevocationStore(ABC):
    """Remembers revoked token ids until the tokens would have expired anyway."""

    @abstractmethod
    def revoke(self, token_id: str, ttl_seconds: int) -> None:
        pass

    @abstractmethod
    def is_revoked(self, token_id: str) -> bool:
        pass
