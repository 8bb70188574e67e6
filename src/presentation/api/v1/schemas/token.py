from pydantic import BaseModel, Field


class Token(BaseModel):
    """Bearer token returned on login"""

    access_token: str
    token_type: str = "bearer"


class TokenRequest(BaseModel):
    """Login credentials"""

    username: str = Field(..., min_length=1, max_length=150)
    password: str = Field(..., min_length=1)


class TokenPayload(BaseModel):
    """Decoded JWT claims"""

    sub: str  # user id
    role: str | None = None
    username: str | None = None
    exp: int | None = None
