from dataclasses import dataclass
from fastapi import UploadFile
from uuid import UUID
from videotube.core.config import Settings
from videotube.core.exceptions import ConflictException, MediaUploadException, NotFoundException, ValidationException
from videotube.core.media import MediaHost, staged_upload
from videotube.core.security import get_password_hash
from videotube.models.user import User
from videotube.repositories.user_repo import UserRepository
from videotube.schemas.user import ChannelProfile, UserCreate, UserUpdate
from videotube.schemas.video import WatchedVideo
from sqlalchemy.exc import IntegrityError
import logging

logger = logging.getLogger(__name__)


@dataclass
class MediaReplacement:
    user: User
    previous_removed: bool


class UserService:
    def __init__(self, user_repo: UserRepository, media_host: MediaHost, settings: Settings):
        self.user_repo = user_repo
        self.media_host = media_host
        self.temp_dir = settings.UPLOAD_TEMP_DIR

    async def register_user(
        self,
        user_in: UserCreate,
        avatar: UploadFile | None,
        cover_image: UploadFile | None,
    ) -> User:
        username = user_in.username.lower()
        email = user_in.email

        if await self.user_repo.exists_with_username_or_email(username, email):
            logger.warning("Attempt to register existing username=%s or email=%s", username, email)
            raise ConflictException(detail="User with email or username already exists")

        async with staged_upload(avatar, self.temp_dir) as avatar_path, \
                staged_upload(cover_image, self.temp_dir) as cover_path:
            if avatar_path is None:
                raise ValidationException(detail="Avatar file is required")

            uploaded_avatar = await self.media_host.upload(avatar_path)
            if uploaded_avatar is None:
                raise MediaUploadException(detail="Avatar upload failed")

            uploaded_cover = None
            if cover_path is not None:
                uploaded_cover = await self.media_host.upload(cover_path)
                if uploaded_cover is None:
                    logger.warning("Cover image upload failed, registering username=%s without one", username)

        user_model = User(
            full_name=user_in.full_name.strip(),
            email=email,
            username=username,
            password_hash=get_password_hash(user_in.password),
            avatar=uploaded_avatar.url,
            avatar_public_id=uploaded_avatar.public_id,
            cover_image=uploaded_cover.url if uploaded_cover else None,
            cover_image_public_id=uploaded_cover.public_id if uploaded_cover else None,
        )
        try:
            created_user = await self.user_repo.create(user_model)
        except IntegrityError:
            logger.error("IntegrityError during registration for email=%s or username=%s", email, username)
            raise ConflictException(detail="User with email or username already exists")
        logger.info("User registered successfully: user_id=%s", created_user.id)
        return created_user


    async def update_account_details(self, user: User, user_in: UserUpdate) -> User:
        if user_in.email != user.email:
            owner = await self.user_repo.get_by_email(user_in.email)
            if owner and owner.id != user.id:
                raise ConflictException(detail="Email already registered")

        user.full_name = user_in.full_name
        user.email = user_in.email
        try:
            updated_user = await self.user_repo.update(user)
        except IntegrityError:
            logger.error("IntegrityError during account update for user_id=%s", user.id)
            raise ConflictException(detail="Email already registered")
        logger.info("Account details updated: user_id=%s", user.id)
        return updated_user


    async def _replace_media(self, user: User, upload: UploadFile | None, field: str, label: str) -> MediaReplacement:
        async with staged_upload(upload, self.temp_dir) as local_path:
            if local_path is None:
                raise ValidationException(detail=f"{label} file is required")

            old_public_id = getattr(user, f"{field}_public_id")
            previous_removed = await self.media_host.delete(old_public_id)
            if not previous_removed:
                logger.warning("Previous %s could not be removed for user_id=%s", field, user.id)

            uploaded = await self.media_host.upload(local_path)
            if uploaded is None:
                raise MediaUploadException(detail=f"Error while uploading {label.lower()}")

        setattr(user, field, uploaded.url)
        setattr(user, f"{field}_public_id", uploaded.public_id)
        updated_user = await self.user_repo.update(user)
        logger.info("%s replaced for user_id=%s", label, user.id)
        return MediaReplacement(user=updated_user, previous_removed=previous_removed)

    async def update_avatar(self, user: User, avatar: UploadFile | None) -> MediaReplacement:
        return await self._replace_media(user, avatar, "avatar", "Avatar")

    async def update_cover_image(self, user: User, cover_image: UploadFile | None) -> MediaReplacement:
        return await self._replace_media(user, cover_image, "cover_image", "Cover image")


    async def get_channel_profile(self, username: str, viewer_id: UUID | None) -> ChannelProfile:
        username = username.strip().lower()
        if not username:
            raise ValidationException(detail="Username is missing")
        channel = await self.user_repo.get_channel_profile(username, viewer_id)
        if not channel:
            raise NotFoundException(detail="Channel does not exist")
        return ChannelProfile.model_validate(channel)


    async def get_watch_history(self, user: User) -> list[WatchedVideo]:
        videos = await self.user_repo.get_watch_history(user.id)
        return [WatchedVideo.model_validate(video) for video in videos]
