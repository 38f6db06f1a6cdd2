from typing import Annotated
from uuid import UUID
from fastapi import Cookie, Depends, Request
from videotube.core.config import Settings, get_settings
from videotube.core.exceptions import UnauthorizedException
from videotube.core.database import get_db
from videotube.core.media import CloudinaryMediaHost, MediaHost
from videotube.core.security import TokenService, TokenVerificationError
from sqlalchemy.ext.asyncio import AsyncSession
from videotube.models.user import User
from videotube.repositories.user_repo import UserRepository
from videotube.services.user_service import UserService
from videotube.services.auth_service import AuthService
from fastapi.security import OAuth2PasswordBearer
import logging

logger = logging.getLogger(__name__)

db_dependency = Annotated[AsyncSession, Depends(get_db)]
settings_dependency = Annotated[Settings, Depends(get_settings)]
reusable_oauth2 = OAuth2PasswordBearer(tokenUrl="/api/v1/users/login", auto_error=False)

async def get_user_repo(db: db_dependency)-> UserRepository:
    return UserRepository(db)

user_dependency = Annotated[UserRepository, Depends(get_user_repo)]


def get_token_service(settings: settings_dependency) -> TokenService:
    return TokenService(settings)

token_service_dependency = Annotated[TokenService, Depends(get_token_service)]


def get_media_host(settings: settings_dependency) -> MediaHost:
    return CloudinaryMediaHost(settings)

media_host_dependency = Annotated[MediaHost, Depends(get_media_host)]


async def get_user_service(
    user_repo: user_dependency,
    media_host: media_host_dependency,
    settings: settings_dependency,
) -> UserService:
    return UserService(user_repo, media_host, settings)


async def get_auth_service(user_repo: user_dependency, token_service: token_service_dependency) -> AuthService:
    return AuthService(user_repo, token_service)


async def get_current_user(
    request: Request,
    user_repo: user_dependency,
    token_service: token_service_dependency,
    header_token: Annotated[str | None, Depends(reusable_oauth2)],
    access_token: Annotated[str | None, Cookie(alias="accessToken")] = None,
) -> User:
    token = access_token or header_token
    if not token:
        raise UnauthorizedException(detail="Unauthorized")
    try:
        payload = token_service.verify_access(token)
        user_id = UUID(payload.sub)
    except TokenVerificationError as exc:
        logger.info("Access token rejected: %s", exc.reason.value)
        raise UnauthorizedException(detail="Unauthorized")
    except ValueError:
        raise UnauthorizedException(detail="Unauthorized")
    user = await user_repo.get_by_id(user_id)
    if not user:
        raise UnauthorizedException(detail="Unauthorized")
    request.state.user = user
    return user


current_user_dependency = Annotated[User, Depends(get_current_user)]
