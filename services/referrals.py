"""Registering new users through a referral code, and listing referrals."""

from typing import List

from exceptions import ReferralServiceError, ReferralsNotFoundError
from logging_config import get_logger
from services.auth import AuthService
from services.referral_codes import ReferralCodeService
from stores.base import CodeStore, ReferralRecord

logger = get_logger(__name__)


class ReferralService:
    """Coordinates the user store (through AuthService) and the code store.

    Each step commits on its own. If linking the referral fails after the
    user was created, the user stays and the referral is lost; the failure
    is logged as ``referral_link_failed`` so it can be repaired by hand.
    """

    def __init__(self, auth: AuthService, referral_codes: ReferralCodeService, codes: CodeStore):
        self.auth = auth
        self.referral_codes = referral_codes
        self.codes = codes

    def register_with_code(self, code: str, email: str, raw_password: str) -> ReferralRecord:
        code_id = self.referral_codes.resolve_code_id(code)
        user_id = self.auth.register(email, raw_password)

        try:
            referrer_id = self.referral_codes.resolve_referrer_id(code)
            referral = self.codes.create_referral(email, code_id, referrer_id)
        except ReferralServiceError as e:
            logger.error(
                "referral_link_failed",
                user_id=user_id,
                email=email,
                code_id=code_id,
                error=e.__class__.__name__,
            )
            raise

        logger.info("referral_registered", user_id=user_id, referrer_id=referrer_id, code_id=code_id)
        return referral

    def list_referrals(self, referrer_id: int) -> List[ReferralRecord]:
        """Referrals of one referrer, oldest first. No referrals is a NotFound."""
        referrals = self.codes.list_referrals_by_referrer_id(referrer_id)
        if not referrals:
            raise ReferralsNotFoundError(referrer_id)
        return referrals
