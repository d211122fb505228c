"""
Referral Service Domain Exceptions

All exceptions raised by the service and storage layers. The transport
layer maps each kind (the direct subclasses of ReferralServiceError) to a
single HTTP status.
"""


class ReferralServiceError(Exception):
    """Base exception for referral service errors"""
    pass


# Kinds

class ValidationError(ReferralServiceError):
    """Raised when input is malformed or out of range"""
    pass


class ConflictError(ReferralServiceError):
    """Raised when a user or code already exists"""
    pass


class NotFoundError(ReferralServiceError):
    """Raised when a user, code or referral is missing"""
    pass


class AuthError(ReferralServiceError):
    """Raised on bad credentials or an unusable token"""
    pass


class StoreError(ReferralServiceError):
    """Raised when the backing store fails"""
    pass


# Conflicts

class UserAlreadyExistsError(ConflictError):
    """Raised when registering an email that is already taken"""
    pass


class ReferralCodeAlreadyActiveError(ConflictError):
    """Raised when the referrer already owns a non-expired code"""
    pass


# Not found

class UserNotFoundError(NotFoundError):
    """Raised when no user matches the given email or id"""
    pass


class ReferralCodeNotFoundError(NotFoundError):
    """Raised when no referral code matches"""
    pass


class ReferralsNotFoundError(NotFoundError):
    """Raised when a referrer has no referrals"""
    pass


# Validation

class ReferralCodeExpiredError(ValidationError):
    """Raised when a referral code exists but its expiration has passed"""
    pass


class ExpirationInPastError(ValidationError):
    """Raised when a new code is requested with an expiration not in the future"""
    pass


# Auth

class BadPasswordError(AuthError):
    """Raised when the password does not match the stored hash"""
    pass


class InvalidCredentialsError(AuthError):
    """Raised at login when either the email or the password is wrong"""
    pass


class InvalidTokenError(AuthError):
    """Base for every token validation failure"""

    reason = "invalid"


class MalformedTokenError(InvalidTokenError):
    reason = "malformed"


class BadSignatureError(InvalidTokenError):
    reason = "bad_signature"


class TokenExpiredError(InvalidTokenError):
    reason = "expired"


class TokenRevokedError(InvalidTokenError):
    reason = "revoked"


# Store

class StoreTimeoutError(StoreError):
    """Raised when a store call exceeds its timeout"""
    pass


class DuplicateReferralCodeError(StoreError):
    """Raised when a generated code string collides with an existing one"""
    pass
