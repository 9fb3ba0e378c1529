"""Authentication service for registration, login and user management."""
from typing import Dict
from sqlalchemy.ext.asyncio import AsyncSession
from app.schemas import RegisterRequest, LoginRequest, UserUpdate
from app.db.models.user import User
from app.db import repositories as repo
from app.core.security import create_identity_token, verify_password, validate_password
from app.core.exceptions import ValidationError, UnauthorizedError, NotFoundError, ConflictError
from app.core.logging import get_logger
from app.auth import ensure_owner


class AuthService:
    """
    Service layer for authentication operations.

    Handles registration, login, and updating or deleting user accounts.
    """

    def __init__(self, session: AsyncSession, log=None):
        """
        Initialize AuthService.

        Args:
            session: SQLAlchemy async session
            log: Logger to report through (defaults to the "auth" service logger)
        """
        self.session = session
        self.log = log or get_logger("auth")

    @staticmethod
    def _auth_response(user: User) -> Dict:
        return {
            "access_token": create_identity_token(user),
            "user": {"id": user.id, "username": user.username, "email": user.email},
        }

    @staticmethod
    def _check_password(password: str) -> None:
        try:
            validate_password(password)
        except ValueError as e:
            raise ValidationError(str(e), errors=[{"field": "password", "message": str(e)}])

    async def register(self, payload: RegisterRequest) -> Dict:
        """
        Register a new user and issue a token for them.

        Args:
            payload: Registration data containing username, email and password

        Returns:
            Dictionary with access_token and the user summary

        Raises:
            ConflictError: If the username or email is taken (checked first)
            ValidationError: If the password is weak
        """
        existing = await repo.find_conflicting_user(self.session, payload.username, payload.email)
        if existing:
            raise ConflictError("Username or email already exists")

        self._check_password(payload.password)

        user = await repo.create_user(self.session, payload)
        self.log.info(f"Registered user {user.id} ({user.username})")
        return self._auth_response(user)

    async def login(self, credentials: LoginRequest) -> Dict:
        """
        Authenticate by username or email and issue a token.

        Raises:
            UnauthorizedError: If no user matches or the password is wrong
        """
        user = await repo.find_user_by_identifier(self.session, credentials.username)
        if not user or not verify_password(credentials.password, user.hashed_password):
            self.log.warning(f"Failed login for {credentials.username!r}")
            raise UnauthorizedError("Invalid credentials")

        return self._auth_response(user)

    async def _get_user_for(self, user_id: int, acting_user: User) -> User:
        user = await repo.get_user(self.session, user_id)
        if not user:
            raise NotFoundError(f"User with ID {user_id} not found")
        ensure_owner(user.id, acting_user, "User", user_id, allow_admin=True)
        return user

    async def update_user(self, user_id: int, payload: UserUpdate, acting_user: User) -> User:
        """
        Update a user's profile; only the password is re-hashed, and only if given.

        Raises:
            NotFoundError: If the user is unknown or not the acting user's own account
            ConflictError: If the new username or email belongs to someone else
            ValidationError: If the new password is weak
        """
        user = await self._get_user_for(user_id, acting_user)
        changes = payload.model_dump(exclude_unset=True, exclude_none=True)

        if "password" in changes:
            self._check_password(changes["password"])

        if "username" in changes or "email" in changes:
            existing = await repo.find_conflicting_user(
                self.session,
                username=changes.get("username"),
                email=changes.get("email"),
                exclude_id=user.id,
            )
            if existing:
                raise ConflictError("Username or email already exists")

        user = await repo.update_user(self.session, user, changes)
        self.log.info(f"Updated user {user.id}")
        return user

    async def delete_user(self, user_id: int, acting_user: User) -> Dict:
        """
        Delete a user together with the events they own.

        Raises:
            NotFoundError: If the user is unknown or not the acting user's own account
        """
        user = await self._get_user_for(user_id, acting_user)
        removed = await repo.delete_user(self.session, user)
        self.log.info(f"Deleted user {user_id} and {removed} owned event(s)")
        return {"message": "User deleted successfully"}
