from pydantic import BaseModel, Field


class AdminLogin(BaseModel):
    email: str
    password: str


class Token(BaseModel):
    access_token: str = Field(..., serialization_alias="accessToken")
    token_type: str = Field("bearer", serialization_alias="tokenType")
