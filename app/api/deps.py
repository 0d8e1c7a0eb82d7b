from typing import Iterator

from fastapi import Depends, Request

from app.core.config import Settings
from app.core.errors import Unauthenticated
from app.db.session import session_scope
from app.models.user import User
from app.repos.base import Storage
from app.repos.sql import SqlStorage
from app.services.email_service import MailSender

SESSION_USER_KEY = "user_id"


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_storage(request: Request) -> Iterator[Storage]:
    """Shared in-memory store, or a SqlStorage bound to a per-request session."""
    factory = request.app.state.session_factory
    if factory is None:
        yield request.app.state.storage
        return
    with session_scope(factory) as db:
        yield SqlStorage(db)


def get_mailer(request: Request) -> MailSender:
    return request.app.state.mailer


def get_payment_gateway(request: Request):
    return request.app.state.payments


def login_session(request: Request, user: User) -> None:
    request.session.clear()
    request.session[SESSION_USER_KEY] = user.id


def logout_session(request: Request) -> None:
    request.session.clear()


def get_optional_user(request: Request, storage: Storage = Depends(get_storage)) -> User | None:
    user_id = request.session.get(SESSION_USER_KEY)
    if not user_id:
        return None
    user = storage.get_user(user_id)
    if not user:
        # stale cookie for a user that no longer resolves
        request.session.pop(SESSION_USER_KEY, None)
    return user


def get_current_user(user: User | None = Depends(get_optional_user)) -> User:
    if not user:
        raise Unauthenticated("Not authenticated")
    return user
