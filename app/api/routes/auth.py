from fastapi import APIRouter, Depends, Request

from app.api.deps import get_current_user, get_optional_user, get_storage, login_session, logout_session
from app.core.errors import Unauthenticated
from app.models.user import User
from app.repos.base import Storage
from app.schemas.auth import LoginRequest, PasswordChange, ProfileUpdate, RegisterRequest, UserOut, user_out
from app.services import auth_service

router = APIRouter(tags=["auth"])


@router.post("/auth/register", response_model=UserOut, status_code=201)
def register(body: RegisterRequest, request: Request, storage: Storage = Depends(get_storage)):
    user = auth_service.register(storage, body)
    login_session(request, user)
    return user_out(user)


@router.post("/auth/login", response_model=UserOut)
def login(body: LoginRequest, request: Request, storage: Storage = Depends(get_storage)):
    user = auth_service.authenticate(storage, body.username, body.password)
    login_session(request, user)
    return user_out(user)


@router.post("/auth/logout")
def logout(request: Request, me: User = Depends(get_current_user)):
    logout_session(request)
    return {"message": "Logged out successfully"}


@router.get("/auth/user", response_model=UserOut)
def current_user(me: User | None = Depends(get_optional_user)):
    if not me:
        raise Unauthenticated("Not authenticated")
    return user_out(me)


@router.put("/auth/profile", response_model=UserOut)
def update_profile(body: ProfileUpdate, storage: Storage = Depends(get_storage), me: User = Depends(get_current_user)):
    return user_out(auth_service.update_profile(storage, me, body))


@router.put("/auth/password")
def change_password(body: PasswordChange, storage: Storage = Depends(get_storage), me: User = Depends(get_current_user)):
    auth_service.change_password(storage, me, body)
    return {"message": "Password updated successfully"}
