from datetime import datetime

from pydantic import AliasChoices, BaseModel, ConfigDict, EmailStr, Field, field_validator

from utils import parse_expiration_date


class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class UserLogin(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class ReferralRegister(UserCreate):
    referral_code: str = Field(..., min_length=1, description="Referral code of the referrer")

    @field_validator("referral_code")
    @classmethod
    def strip_code(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("referral code must not be empty")
        return value


class UserOut(BaseModel):
    id: int
    email: str


class CurrentUser(BaseModel):
    id: int
    email: str


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class ReferralCodeCreate(BaseModel):
    expiration_date: datetime = Field(..., description="Expiration date in DD.MM.YYYY format (UTC)")

    @field_validator("expiration_date", mode="before")
    @classmethod
    def parse_date(cls, value):
        if not isinstance(value, str):
            raise ValueError("expected a date in DD.MM.YYYY format")
        try:
            return parse_expiration_date(value)
        except ValueError:
            raise ValueError("expected a date in DD.MM.YYYY format")


class ReferralCodeOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    code: str
    expiration: datetime = Field(validation_alias=AliasChoices("expires_at", "expiration"))


class ReferralOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    referral_id: int = Field(validation_alias=AliasChoices("id", "referral_id"))
    referrer_id: int
    email: str
    created_at: datetime
