import logging
import uuid
from datetime import datetime, timezone

from app.core.errors import Unauthenticated, ValidationError
from app.core.security import hash_password, verify_password
from app.models.user import User
from app.repos.base import Storage
from app.schemas.auth import PasswordChange, ProfileUpdate, RegisterRequest

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid username or password"


def register(storage: Storage, body: RegisterRequest) -> User:
    if storage.get_user_by_username(body.username):
        raise ValidationError("Username already exists")
    if storage.get_user_by_email(str(body.email)):
        raise ValidationError("Email already exists")
    user = storage.create_user(
        User(
            id=str(uuid.uuid4()),
            username=body.username,
            email=str(body.email).lower(),
            password_hash=hash_password(body.password),
            first_name=body.firstName,
            last_name=body.lastName,
            email_verified=False,
            created_at=datetime.now(timezone.utc),
        )
    )
    logger.info("user registered", extra={"user_id": user.id})
    return user


def authenticate(storage: Storage, username: str, password: str) -> User:
    user = storage.get_user_by_username(username)
    # same message either way so usernames cannot be probed
    if not user or not verify_password(password, user.password_hash):
        raise Unauthenticated(INVALID_CREDENTIALS)
    return user


def update_profile(storage: Storage, user: User, body: ProfileUpdate) -> User:
    email = str(body.email).lower()
    existing = storage.get_user_by_email(email)
    if existing and existing.id != user.id:
        raise ValidationError("Email already in use")
    return storage.update_user_profile(user.id, body.firstName, body.lastName, email)


def change_password(storage: Storage, user: User, body: PasswordChange) -> User:
    if not verify_password(body.currentPassword, user.password_hash):
        raise ValidationError("Current password is incorrect")
    user = storage.update_user_password(user.id, hash_password(body.newPassword))
    logger.info("password changed", extra={"user_id": user.id})
    return user
