from pydantic import BaseModel, EmailStr, Field


class LoginIn(BaseModel):
    email: EmailStr = Field(..., description="The email of the user", max_length=255)
    password: str = Field(..., description="The password of the user", min_length=1)


class MfaCodeIn(BaseModel):
    factor_id: str = Field(..., min_length=1)
    code: str = Field(..., min_length=6, max_length=6, pattern=r"^\d{6}$")


class MfaVerifyLoginIn(MfaCodeIn):
    temp_token: str = Field(..., min_length=1, description="Token returned by login")


class MfaEnrollIn(BaseModel):
    friendly_name: str | None = Field(default=None, max_length=100)


class MfaUnenrollIn(BaseModel):
    factor_id: str = Field(..., min_length=1)
