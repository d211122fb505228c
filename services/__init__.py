from services.auth import AuthService, TokenClaims
from services.referral_codes import ReferralCodeService
from services.referrals import ReferralService

__all__ = ["AuthService", "ReferralCodeService", "ReferralService", "TokenClaims"]
