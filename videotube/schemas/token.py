from pydantic import BaseModel
from videotube.schemas.common import CamelModel
from videotube.schemas.user import UserResponse

class TokenPair(CamelModel):
    access_token: str
    refresh_token: str


class LoginResponse(TokenPair):
    user: UserResponse


class TokenPayload(BaseModel):
    sub: str
    exp: int
    type: str
    jti: str


class TokenRefreshRequest(CamelModel):
    refresh_token: str | None = None
