from fastapi import APIRouter, Depends, Response, status

from auth import get_current_user
from dependencies import get_referral_code_service
from schemas import ReferralCodeCreate, ReferralCodeOut
from services import ReferralCodeService, TokenClaims

router = APIRouter(
    prefix="/referral_code",
    tags=["Referral code"],
    responses={404: {"description": "Not found"}}
)


@router.post("", response_model=ReferralCodeOut, status_code=status.HTTP_201_CREATED,
             summary="Create a referral code",
             description="Creates a referral code for the authenticated user. Fails with 409 while another code is still active.")
def create_referral_code(
    ref_data: ReferralCodeCreate,
    current_user: TokenClaims = Depends(get_current_user),
    code_service: ReferralCodeService = Depends(get_referral_code_service),
):
    """
    Creates a new referral code.

    - **expiration_date**: Expiration date, DD.MM.YYYY (UTC).
    """
    return code_service.create_code(current_user.user_id, ref_data.expiration_date)


@router.delete("", status_code=status.HTTP_204_NO_CONTENT, summary="Delete the referral code",
               description="Deletes the active referral code of the authenticated user.")
def delete_referral_code(
    current_user: TokenClaims = Depends(get_current_user),
    code_service: ReferralCodeService = Depends(get_referral_code_service),
):
    code_service.delete_active_code(current_user.user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/email/{email}", response_model=ReferralCodeOut, summary="Referral code by email",
            description="Returns the active referral code of the user with the given email.")
def get_referral_code_by_email(email: str, code_service: ReferralCodeService = Depends(get_referral_code_service)):
    """
    Looks up a referral code by its owner.

    - **email**: Email of the referrer.
    """
    return code_service.lookup_by_owner_email(email)
