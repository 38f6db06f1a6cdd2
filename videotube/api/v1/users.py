from typing import Annotated
from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from starlette.requests import Request
from videotube.core.rate_limit import limiter
from videotube.services.user_service import MediaReplacement, UserService
from videotube.api.deps import current_user_dependency, get_user_service
from videotube.schemas.common import ApiResponse
from videotube.schemas.user import ChannelProfile, UserCreate, UserResponse, UserUpdate
from videotube.schemas.video import WatchedVideo

router = APIRouter()

user_service = Annotated[UserService, Depends(get_user_service)]


def _replacement_message(result: MediaReplacement, label: str) -> str:
    if result.previous_removed:
        return f"{label} updated successfully"
    return f"{label} updated successfully, but the previous image could not be removed"


@router.post("/register", response_model=ApiResponse[UserResponse], status_code=status.HTTP_201_CREATED)
@limiter.limit("5/minute")
async def register(
    request: Request,
    service: user_service,
    full_name: Annotated[str, Form(alias="fullName")] = "",
    email: Annotated[str, Form()] = "",
    username: Annotated[str, Form()] = "",
    password: Annotated[str, Form()] = "",
    avatar: Annotated[UploadFile | None, File()] = None,
    cover_image: Annotated[UploadFile | None, File(alias="coverImage")] = None,
):
    try:
        user_in = UserCreate(full_name=full_name, email=email, username=username, password=password)
    except ValidationError as exc:
        raise RequestValidationError(exc.errors())
    user = await service.register_user(user_in, avatar, cover_image)
    return ApiResponse.ok(UserResponse.model_validate(user), "User registered successfully", status=status.HTTP_201_CREATED)


@router.get("/get-user", response_model=ApiResponse[UserResponse])
async def get_user(current_user: current_user_dependency):
    return ApiResponse.ok(UserResponse.model_validate(current_user), "Current user fetched successfully")


@router.patch("/update-user", response_model=ApiResponse[UserResponse])
async def update_user(
    user_in: UserUpdate,
    current_user: current_user_dependency,
    service: user_service,
):
    user = await service.update_account_details(current_user, user_in)
    return ApiResponse.ok(UserResponse.model_validate(user), "Account details updated successfully")


@router.patch("/update-avatar", response_model=ApiResponse[UserResponse])
async def update_avatar(
    current_user: current_user_dependency,
    service: user_service,
    avatar: Annotated[UploadFile | None, File()] = None,
):
    result = await service.update_avatar(current_user, avatar)
    return ApiResponse.ok(UserResponse.model_validate(result.user), _replacement_message(result, "Avatar"))


@router.patch("/update-coverimage", response_model=ApiResponse[UserResponse])
async def update_cover_image(
    current_user: current_user_dependency,
    service: user_service,
    cover_image: Annotated[UploadFile | None, File(alias="coverImage")] = None,
):
    result = await service.update_cover_image(current_user, cover_image)
    return ApiResponse.ok(UserResponse.model_validate(result.user), _replacement_message(result, "Cover image"))


@router.get("/channel/{username}", response_model=ApiResponse[ChannelProfile])
async def channel_profile(
    username: str,
    current_user: current_user_dependency,
    service: user_service,
):
    channel = await service.get_channel_profile(username, current_user.id)
    return ApiResponse.ok(channel, "User channel fetched successfully")


@router.get("/history", response_model=ApiResponse[list[WatchedVideo]])
async def watch_history(current_user: current_user_dependency, service: user_service):
    history = await service.get_watch_history(current_user)
    return ApiResponse.ok(history, "Watch history fetched successfully")
