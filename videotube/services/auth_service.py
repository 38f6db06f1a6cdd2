from uuid import UUID
from videotube.core.exceptions import NotFoundException, UnauthorizedException, ValidationException
from videotube.models.user import User
from videotube.repositories.user_repo import UserRepository
from videotube.core.security import TokenService, TokenVerificationError, get_password_hash, verify_password
from videotube.schemas.token import LoginResponse, TokenPair
from videotube.schemas.user import LoginRequest, PasswordChange, UserResponse
import logging

logger = logging.getLogger(__name__)



class AuthService:
    def __init__(self, user_repo: UserRepository, token_service: TokenService):
        self.user_repo = user_repo
        self.token_service = token_service


    async def _issue_pair(self, user: User) -> TokenPair:
        return TokenPair(
            access_token=self.token_service.issue_access_token(user),
            refresh_token=self.token_service.issue_refresh_token(user.id),
        )


    async def login(self, credentials: LoginRequest) -> LoginResponse:
        username = credentials.username.strip().lower() if credentials.username else None
        email = credentials.email.strip().lower() if credentials.email else None
        if not username and not email:
            raise ValidationException(detail="Username or email is required")

        user = await self.user_repo.get_by_username_or_email(username, email)
        if not user:
            logger.warning("Login failed: user not found for username=%s email=%s", username, email)
            raise NotFoundException(detail="User does not exist")
        if not verify_password(credentials.password, user.password_hash):
            logger.warning("Login failed: invalid password for user_id=%s", user.id)
            raise UnauthorizedException(detail="Invalid user credentials")

        tokens = await self._issue_pair(user)
        # Overwrites any earlier refresh token, ending that session.
        await self.user_repo.set_refresh_token(user, tokens.refresh_token)
        logger.info("User logged in successfully: user_id=%s", user.id)
        return LoginResponse(
            user=UserResponse.model_validate(user),
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token,
        )


    async def logout(self, user: User) -> None:
        await self.user_repo.set_refresh_token(user, None)
        logger.info("User logged out, refresh token cleared: user_id=%s", user.id)


    async def refresh_access_token(self, refresh_token: str | None) -> TokenPair:
        if not refresh_token:
            raise UnauthorizedException(detail="Unauthorized request")
        try:
            payload = self.token_service.verify_refresh(refresh_token)
            user_id = UUID(payload.sub)
        except TokenVerificationError as exc:
            logger.warning("Refresh token rejected: %s", exc.reason.value)
            raise UnauthorizedException(detail="Invalid refresh token")
        except ValueError:
            raise UnauthorizedException(detail="Invalid refresh token")

        user = await self.user_repo.get_by_id(user_id)
        if not user:
            logger.warning("Refresh token references unknown user_id=%s", user_id)
            raise UnauthorizedException(detail="Invalid refresh token")
        if user.refresh_token != refresh_token:
            logger.warning("Stale or reused refresh token for user_id=%s", user_id)
            raise UnauthorizedException(detail="Refresh token is expired or used")

        tokens = await self._issue_pair(user)
        swapped = await self.user_repo.swap_refresh_token(user, refresh_token, tokens.refresh_token)
        if not swapped:
            logger.warning("Refresh token rotated concurrently for user_id=%s", user_id)
            raise UnauthorizedException(detail="Refresh token is expired or used")

        logger.info("Refresh token rotated for user_id=%s", user_id)
        return tokens


    async def change_password(self, user: User, body: PasswordChange) -> None:
        if not verify_password(body.current_password, user.password_hash):
            logger.warning("Password change rejected: wrong current password for user_id=%s", user.id)
            raise UnauthorizedException(detail="Invalid current password")
        user.password_hash = get_password_hash(body.new_password)
        # The stored refresh token is left alone; other sessions stay signed in.
        await self.user_repo.update(user)
        logger.info("Password changed for user_id=%s", user.id)
