from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer

from dependencies import get_auth_service
from services import AuthService, TokenClaims

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")


def get_current_user(
    token: str = Depends(oauth2_scheme),
    auth_service: AuthService = Depends(get_auth_service),
) -> TokenClaims:
    """Resolve the bearer token to its claims; any token failure ends in a 401."""
    return auth_service.validate_token(token)
