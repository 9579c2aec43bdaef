from typing import Literal

from pydantic import BaseModel, Field


class OkOut(BaseModel):
    success: Literal[True] = True


class IdentityOut(BaseModel):
    id: str = Field(..., description="The id of the user")
    email: str | None = Field(None, description="The email of the user")
    role: str


class SessionOut(BaseModel):
    access_token: str
    refresh_token: str
    expires_in: int
    token_type: Literal["bearer"] = "bearer"


class LoginOut(BaseModel):
    success: Literal[True] = True
    mfa_required: bool
    factor_id: str | None = None
    temp_token: str | None = None
    session: SessionOut | None = None


class EnrollOut(BaseModel):
    success: Literal[True] = True
    factor_id: str
    qr_code: str | None = None
    secret: str | None = None
    uri: str | None = None


class FactorOut(BaseModel):
    id: str
    factor_type: str
    status: str
    friendly_name: str | None = None


class FactorsOut(BaseModel):
    success: Literal[True] = True
    factors: list[FactorOut]


class SessionStateOut(BaseModel):
    authenticated: bool
    identity: IdentityOut | None = None
