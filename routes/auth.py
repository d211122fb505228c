from fastapi import APIRouter, Depends, status

from auth import get_current_user, oauth2_scheme
from dependencies import get_auth_service, get_referral_service
from exceptions import BadPasswordError, InvalidCredentialsError, UserNotFoundError
from schemas import CurrentUser, ReferralOut, ReferralRegister, Token, UserCreate, UserLogin, UserOut
from services import AuthService, ReferralService, TokenClaims

router = APIRouter(
    prefix="/auth",
    tags=["Authentication"],
    responses={404: {"description": "Not found"}}
)


@router.post("/register", response_model=UserOut, status_code=status.HTTP_201_CREATED,
             summary="Register a user",
             description="Registers a new user with email and password. Fails with 409 if the email is taken.")
def register(user_in: UserCreate, auth_service: AuthService = Depends(get_auth_service)):
    """
    Registers a new user.

    - **email**: User email.
    - **password**: User password.
    """
    user_id = auth_service.register(user_in.email, user_in.password)
    return UserOut(id=user_id, email=user_in.email)


@router.post("/login", response_model=Token, summary="Log in",
             description="Returns a bearer token valid for 24 hours if email and password are correct.")
def login(credentials: UserLogin, auth_service: AuthService = Depends(get_auth_service)):
    """
    Authenticates a user and returns a JWT.

    - **email**: User email.
    - **password**: User password.
    """
    try:
        access_token = auth_service.authenticate(credentials.email, credentials.password)
    except (UserNotFoundError, BadPasswordError) as e:
        raise InvalidCredentialsError("invalid email or password") from e
    return Token(access_token=access_token)


@router.post("/register/referral", response_model=ReferralOut, status_code=status.HTTP_201_CREATED,
             summary="Register with a referral code",
             description="Registers a new user and links them to the owner of an active referral code.")
def register_with_referral(user_in: ReferralRegister, referral_service: ReferralService = Depends(get_referral_service)):
    """
    Registers a user through a referral code.

    - **email**: User email.
    - **password**: User password.
    - **referral_code**: Active referral code of the referrer.
    """
    return referral_service.register_with_code(user_in.referral_code, user_in.email, user_in.password)


@router.post("/logout", summary="Log out", description="Revokes the bearer token used for this request.")
def logout(token: str = Depends(oauth2_scheme), auth_service: AuthService = Depends(get_auth_service)):
    auth_service.revoke_token(token)
    return {"message": "Logged out"}


@router.get("/me", response_model=CurrentUser, summary="Current user",
            description="Returns the identity carried by the bearer token.")
def me(current_user: TokenClaims = Depends(get_current_user)):
    return CurrentUser(id=current_user.user_id, email=current_user.email)
