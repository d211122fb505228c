from typing import List

from fastapi import APIRouter, Depends

from dependencies import get_referral_service
from schemas import ReferralOut
from services import ReferralService

router = APIRouter(
    prefix="/referral",
    tags=["Referral"],
    responses={404: {"description": "Not found"}}
)


@router.get("/id/{referrer_id}", response_model=List[ReferralOut], summary="List referrals",
            description="Returns the users registered with the referral codes of the given referrer. "
                        "Answers 404 when there are none.")
def get_referrals(referrer_id: int, referral_service: ReferralService = Depends(get_referral_service)):
    """
    Lists referrals of a referrer.

    - **referrer_id**: ID of the referrer.
    """
    return referral_service.list_referrals(referrer_id)
