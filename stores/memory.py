"""In-process stores backing the service tests."""

import threading
from datetime import datetime
from typing import Dict, List, Tuple

from exceptions import (
    DuplicateReferralCodeError,
    ReferralCodeAlreadyActiveError,
    ReferralCodeNotFoundError,
    UserAlreadyExistsError,
    UserNotFoundError,
)
from stores.base import CodeStore, ReferralCodeRecord, ReferralRecord, UserRecord, UserStore
from utils import utcnow


class InMemoryUserStore(UserStore):
    def __init__(self):
        self._lock = threading.Lock()
        self._users: Dict[str, UserRecord] = {}
        self._next_id = 1

    def create_user(self, email: str, hashed_password: str) -> UserRecord:
        with self._lock:
            if email in self._users:
                raise UserAlreadyExistsError(email)
            user = UserRecord(
                id=self._next_id,
                email=email,
                hashed_password=hashed_password,
                created_at=utcnow(),
            )
            self._users[email] = user
            self._next_id += 1
            return user

    def get_user_by_email(self, email: str) -> UserRecord:
        with self._lock:
            try:
                return self._users[email]
            except KeyError:
                raise UserNotFoundError(email) from None


class InMemoryCodeStore(CodeStore):
    def __init__(self):
        self._lock = threading.Lock()
        self._codes: Dict[int, ReferralCodeRecord] = {}
        self._referrals: List[ReferralRecord] = []
        self._next_code_id = 1
        self._next_referral_id = 1

    def create_code(self, code: str, expires_at: datetime, referrer_id: int, now: datetime) -> ReferralCodeRecord:
        with self._lock:
            for existing in self._codes.values():
                if existing.referrer_id == referrer_id and existing.is_active(now):
                    raise ReferralCodeAlreadyActiveError(referrer_id)
                if existing.code == code:
                    raise DuplicateReferralCodeError(code)
            created_at = utcnow()
            record = ReferralCodeRecord(
                id=self._next_code_id,
                code=code,
                referrer_id=referrer_id,
                expires_at=expires_at,
                created_at=created_at,
                updated_at=created_at,
            )
            self._codes[record.id] = record
            self._next_code_id += 1
            return record

    def delete_code_by_id(self, code_id: int) -> int:
        with self._lock:
            if self._codes.pop(code_id, None) is None:
                return 0
            self._referrals = [
                ReferralRecord(r.id, r.email, None, r.referrer_id, r.created_at)
                if r.referral_code_id == code_id else r
                for r in self._referrals
            ]
            return 1

    def get_active_code_by_referrer_id(self, referrer_id: int, now: datetime) -> ReferralCodeRecord:
        with self._lock:
            for record in self._codes.values():
                if record.referrer_id == referrer_id and record.is_active(now):
                    return record
        raise ReferralCodeNotFoundError(referrer_id)

    def get_code_id_and_expiration(self, code: str) -> Tuple[int, datetime]:
        record = self._find(code)
        return record.id, record.expires_at

    def get_referrer_id_by_code(self, code: str) -> int:
        return self._find(code).referrer_id

    def create_referral(self, email: str, code_id: int, referrer_id: int) -> ReferralRecord:
        with self._lock:
            record = ReferralRecord(
                id=self._next_referral_id,
                email=email,
                referral_code_id=code_id,
                referrer_id=referrer_id,
                created_at=utcnow(),
            )
            self._referrals.append(record)
            self._next_referral_id += 1
            return record

    def list_referrals_by_referrer_id(self, referrer_id: int) -> List[ReferralRecord]:
        with self._lock:
            return [r for r in self._referrals if r.referrer_id == referrer_id]

    def _find(self, code: str) -> ReferralCodeRecord:
        with self._lock:
            for record in self._codes.values():
                if record.code == code:
                    return record
        raise ReferralCodeNotFoundError(code)
