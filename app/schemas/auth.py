from pydantic import BaseModel, EmailStr, Field
from typing import Optional

from app.core.security import MIN_PASSWORD_LENGTH


class RegisterRequest(BaseModel):
    username: str = Field(min_length=3, max_length=80)
    email: EmailStr
    password: str = Field(min_length=MIN_PASSWORD_LENGTH, max_length=200)
    firstName: Optional[str] = None
    lastName: Optional[str] = None


class LoginRequest(BaseModel):
    username: str
    password: str


class ProfileUpdate(BaseModel):
    firstName: Optional[str] = None
    lastName: Optional[str] = None
    email: EmailStr


class PasswordChange(BaseModel):
    currentPassword: str = Field(min_length=1)
    newPassword: str = Field(min_length=MIN_PASSWORD_LENGTH, max_length=200)


class UserOut(BaseModel):
    id: str
    username: str
    email: str
    firstName: Optional[str] = None
    lastName: Optional[str] = None


def user_out(user) -> UserOut:
    return UserOut(
        id=user.id,
        username=user.username,
        email=user.email,
        firstName=user.first_name,
        lastName=user.last_name,
    )
