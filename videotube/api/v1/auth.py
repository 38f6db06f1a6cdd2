from typing import Annotated
from fastapi import APIRouter, Cookie, Depends, Response
from videotube.core.config import Settings
from videotube.core.rate_limit import limiter
from videotube.services.auth_service import AuthService
from videotube.api.deps import current_user_dependency, get_auth_service, settings_dependency
from videotube.schemas.common import ApiResponse
from videotube.schemas.token import LoginResponse, TokenPair, TokenRefreshRequest
from videotube.schemas.user import LoginRequest, PasswordChange
from starlette.requests import Request

router = APIRouter()

auth_service = Annotated[AuthService, Depends(get_auth_service)]

ACCESS_COOKIE = "accessToken"
REFRESH_COOKIE = "refreshToken"


def _cookie_options(settings: Settings) -> dict:
    return {"httponly": True, "secure": settings.COOKIE_SECURE, "samesite": settings.COOKIE_SAMESITE}

def set_session_cookies(response: Response, tokens: TokenPair, settings: Settings) -> None:
    options = _cookie_options(settings)
    response.set_cookie(ACCESS_COOKIE, tokens.access_token, **options)
    response.set_cookie(REFRESH_COOKIE, tokens.refresh_token, **options)

def clear_session_cookies(response: Response, settings: Settings) -> None:
    options = _cookie_options(settings)
    response.delete_cookie(ACCESS_COOKIE, **options)
    response.delete_cookie(REFRESH_COOKIE, **options)


@router.post("/login", response_model=ApiResponse[LoginResponse])
@limiter.limit("5/minute")
async def login(
    request: Request,
    response: Response,
    credentials: LoginRequest,
    service: auth_service,
    settings: settings_dependency,
):
    result = await service.login(credentials)
    set_session_cookies(response, result, settings)
    return ApiResponse.ok(result, "User logged in successfully")


@router.post("/logout", response_model=ApiResponse[dict])
async def logout(
    response: Response,
    current_user: current_user_dependency,
    service: auth_service,
    settings: settings_dependency,
):
    await service.logout(current_user)
    clear_session_cookies(response, settings)
    return ApiResponse.ok({}, "User logged out")


@router.post("/refresh-token", response_model=ApiResponse[TokenPair])
@limiter.limit("10/minute")
async def refresh_token(
    request: Request,
    response: Response,
    service: auth_service,
    settings: settings_dependency,
    body: TokenRefreshRequest | None = None,
    cookie_token: Annotated[str | None, Cookie(alias=REFRESH_COOKIE)] = None,
):
    incoming = cookie_token or (body.refresh_token if body else None)
    tokens = await service.refresh_access_token(incoming)
    set_session_cookies(response, tokens, settings)
    return ApiResponse.ok(tokens, "Access token refreshed")


@router.patch("/change-password", response_model=ApiResponse[dict])
async def change_password(
    body: PasswordChange,
    current_user: current_user_dependency,
    service: auth_service,
):
    await service.change_password(current_user, body)
    return ApiResponse.ok({}, "Password changed successfully")
