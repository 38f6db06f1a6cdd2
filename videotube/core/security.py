from datetime import datetime, timedelta, timezone
from enum import Enum
from uuid import uuid4

from jose import jwt, JWTError, ExpiredSignatureError
from passlib.context import CryptContext
from pydantic import ValidationError as PayloadError

from videotube.core.config import Settings
from videotube.models.enums import TokenType
from videotube.models.user import User
from videotube.schemas.token import TokenPayload


pwd_context = CryptContext(schemes=['bcrypt'], deprecated="auto")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)

def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


class TokenFailure(str, Enum):
    MALFORMED = "malformed"
    INVALID_SIGNATURE = "invalid_signature"
    EXPIRED = "expired"
    WRONG_TYPE = "wrong_type"


class TokenVerificationError(Exception):
    def __init__(self, reason: TokenFailure):
        self.reason = reason
        super().__init__(reason.value)


class TokenService:
    """
    Issues and verifies the access/refresh token pair.

    Access and refresh tokens are signed with different secrets, so a token of
    one kind never verifies as the other even before the ``type`` claim is
    checked. Every token carries a random ``jti``, which keeps two tokens minted
    for the same user within the same second distinct.
    """

    def __init__(self, settings: Settings):
        self.algorithm = settings.ALGORITHM
        self.access_secret = settings.ACCESS_TOKEN_SECRET
        self.refresh_secret = settings.REFRESH_TOKEN_SECRET
        self.access_expire = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        self.refresh_expire = timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)

    def _encode(self, claims: dict, secret: str, expires_in: timedelta) -> str:
        expire = datetime.now(timezone.utc) + expires_in
        to_encode = {**claims, "exp": expire, "jti": uuid4().hex}
        return jwt.encode(to_encode, secret, self.algorithm)

    def issue_access_token(self, user: User) -> str:
        claims = {
            "sub": str(user.id),
            "type": TokenType.ACCESS.value,
            "email": user.email,
            "username": user.username,
            "full_name": user.full_name,
        }
        return self._encode(claims, self.access_secret, self.access_expire)

    def issue_refresh_token(self, user_id) -> str:
        claims = {"sub": str(user_id), "type": TokenType.REFRESH.value}
        return self._encode(claims, self.refresh_secret, self.refresh_expire)

    def verify(self, token: str, secret: str, token_type: TokenType) -> TokenPayload:
        try:
            jwt.get_unverified_claims(token)
        except JWTError:
            raise TokenVerificationError(TokenFailure.MALFORMED)
        try:
            payload = jwt.decode(token, secret, [self.algorithm])
        except ExpiredSignatureError:
            raise TokenVerificationError(TokenFailure.EXPIRED)
        except JWTError:
            raise TokenVerificationError(TokenFailure.INVALID_SIGNATURE)
        if payload.get("type") != token_type.value:
            raise TokenVerificationError(TokenFailure.WRONG_TYPE)
        try:
            return TokenPayload(**payload)
        except PayloadError:
            raise TokenVerificationError(TokenFailure.MALFORMED)

    def verify_access(self, token: str) -> TokenPayload:
        return self.verify(token, self.access_secret, TokenType.ACCESS)

    def verify_refresh(self, token: str) -> TokenPayload:
        return self.verify(token, self.refresh_secret, TokenType.REFRESH)
