"""SQLAlchemy implementations of the user and code stores.

Every public method is one self-contained transaction: it commits before
returning and rolls back on any failure.
"""

from contextlib import contextmanager
from datetime import datetime
from typing import Iterator, List, Tuple

from sqlalchemy import exc
from sqlalchemy.orm import Session

from exceptions import (
    DuplicateReferralCodeError,
    ReferralCodeAlreadyActiveError,
    ReferralCodeNotFoundError,
    ReferralServiceError,
    StoreError,
    StoreTimeoutError,
    UserAlreadyExistsError,
    UserNotFoundError,
)
from logging_config import get_logger
from models import Referral, ReferralCode, User
from stores.base import CodeStore, ReferralCodeRecord, ReferralRecord, UserRecord, UserStore

logger = get_logger(__name__)

# SQLSTATE query_canceled, raised by PostgreSQL when statement_timeout fires
QUERY_CANCELED = "57014"


def _is_timeout(error: exc.SQLAlchemyError) -> bool:
    if isinstance(error, exc.TimeoutError):
        return True
    orig = getattr(error, "orig", None)
    if getattr(orig, "pgcode", None) == QUERY_CANCELED:
        return True
    return "statement timeout" in str(error).lower()


@contextmanager
def store_call(session: Session, operation: str) -> Iterator[None]:
    try:
        yield
        session.commit()
    except ReferralServiceError:
        session.rollback()
        raise
    except exc.SQLAlchemyError as e:
        session.rollback()
        if _is_timeout(e):
            logger.error("store_timeout", operation=operation)
            raise StoreTimeoutError(f"{operation} timed out") from e
        logger.error("store_error", operation=operation, error=e.__class__.__name__)
        raise StoreError(f"{operation} failed") from e


def _user_record(row: User) -> UserRecord:
    return UserRecord(
        id=row.id,
        email=row.email,
        hashed_password=row.hashed_password,
        created_at=row.created_at,
    )


def _code_record(row: ReferralCode) -> ReferralCodeRecord:
    return ReferralCodeRecord(
        id=row.id,
        code=row.code,
        referrer_id=row.referrer_id,
        expires_at=row.expires_at,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _referral_record(row: Referral) -> ReferralRecord:
    return ReferralRecord(
        id=row.id,
        email=row.email,
        referral_code_id=row.referral_code_id,
        referrer_id=row.referrer_id,
        created_at=row.created_at,
    )


class SqlUserStore(UserStore):
    def __init__(self, db: Session):
        self.db = db

    def create_user(self, email: str, hashed_password: str) -> UserRecord:
        with store_call(self.db, "create_user"):
            user = User(email=email, hashed_password=hashed_password)
            self.db.add(user)
            try:
                self.db.flush()
            except exc.IntegrityError as e:
                raise UserAlreadyExistsError(email) from e
            record = _user_record(user)
        logger.info("user_created", user_id=record.id)
        return record

    def get_user_by_email(self, email: str) -> UserRecord:
        with store_call(self.db, "get_user_by_email"):
            user = self.db.query(User).filter(User.email == email).first()
            if user is None:
                raise UserNotFoundError(email)
            return _user_record(user)


class SqlCodeStore(CodeStore):
    def __init__(self, db: Session):
        self.db = db

    def create_code(self, code: str, expires_at: datetime, referrer_id: int, now: datetime) -> ReferralCodeRecord:
        with store_call(self.db, "create_code"):
            # Row lock on the referrer serializes concurrent creates for the same user
            referrer = self.db.query(User).filter(User.id == referrer_id).with_for_update().first()
            if referrer is None:
                raise UserNotFoundError(referrer_id)

            active = (
                self.db.query(ReferralCode.id)
                .filter(ReferralCode.referrer_id == referrer_id, ReferralCode.expires_at > now)
                .first()
            )
            if active is not None:
                raise ReferralCodeAlreadyActiveError(referrer_id)

            row = ReferralCode(code=code, expires_at=expires_at, referrer_id=referrer_id)
            self.db.add(row)
            try:
                self.db.flush()
            except exc.IntegrityError as e:
                raise DuplicateReferralCodeError(code) from e
            return _code_record(row)

    def delete_code_by_id(self, code_id: int) -> int:
        with store_call(self.db, "delete_code_by_id"):
            return self.db.query(ReferralCode).filter(ReferralCode.id == code_id).delete(synchronize_session=False)

    def get_active_code_by_referrer_id(self, referrer_id: int, now: datetime) -> ReferralCodeRecord:
        with store_call(self.db, "get_active_code_by_referrer_id"):
            row = (
                self.db.query(ReferralCode)
                .filter(ReferralCode.referrer_id == referrer_id, ReferralCode.expires_at > now)
                .order_by(ReferralCode.created_at.desc())
                .first()
            )
            if row is None:
                raise ReferralCodeNotFoundError(referrer_id)
            return _code_record(row)

    def get_code_id_and_expiration(self, code: str) -> Tuple[int, datetime]:
        with store_call(self.db, "get_code_id_and_expiration"):
            row = (
                self.db.query(ReferralCode.id, ReferralCode.expires_at)
                .filter(ReferralCode.code == code)
                .first()
            )
            if row is None:
                raise ReferralCodeNotFoundError(code)
            return row.id, row.expires_at

    def get_referrer_id_by_code(self, code: str) -> int:
        with store_call(self.db, "get_referrer_id_by_code"):
            referrer_id = (
                self.db.query(ReferralCode.referrer_id)
                .filter(ReferralCode.code == code)
                .scalar()
            )
            if referrer_id is None:
                raise ReferralCodeNotFoundError(code)
            return referrer_id

    def create_referral(self, email: str, code_id: int, referrer_id: int) -> ReferralRecord:
        with store_call(self.db, "create_referral"):
            row = Referral(email=email, referral_code_id=code_id, referrer_id=referrer_id)
            self.db.add(row)
            self.db.flush()
            return _referral_record(row)

    def list_referrals_by_referrer_id(self, referrer_id: int) -> List[ReferralRecord]:
        with store_call(self.db, "list_referrals_by_referrer_id"):
            rows = (
                self.db.query(Referral)
                .filter(Referral.referrer_id == referrer_id)
                .order_by(Referral.created_at, Referral.id)
                .all()
            )
            return [_referral_record(row) for row in rows]
