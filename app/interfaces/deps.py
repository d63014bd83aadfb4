"""
API Dependencies.

Shared resources live on ``app.state`` (set up in the lifespan); these
providers hand them to routes and are the seams tests override.
"""

from fastapi import Depends, Request

from app.application.services.auth_service import AuthService, PasswordHasher
from app.config import Settings
from app.domain.repositories.scan_repository import ScanRepository
from app.domain.repositories.user_repository import UserRepository
from app.infrastructure.email_sender import EmailSender
from app.infrastructure.executor import QueryExecutor
from app.infrastructure.object_storage import ObjectStorage
from app.infrastructure.pool import ConnectionPool
from app.infrastructure.repositories.scan_repository import SQLScanRepository
from app.infrastructure.repositories.user_repository import SQLUserRepository


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_pool(request: Request) -> ConnectionPool:
    return request.app.state.pool


def get_executor(request: Request) -> QueryExecutor:
    return request.app.state.executor


def get_email_sender(request: Request) -> EmailSender:
    return request.app.state.email_sender


def get_object_storage(request: Request) -> ObjectStorage:
    return request.app.state.object_storage


def get_password_hasher(request: Request) -> PasswordHasher:
    return request.app.state.password_hasher


def get_user_repository(executor: QueryExecutor = Depends(get_executor)) -> UserRepository:
    """Get user repository instance."""
    return SQLUserRepository(executor)


def get_scan_repository(executor: QueryExecutor = Depends(get_executor)) -> ScanRepository:
    """Get scan repository instance."""
    return SQLScanRepository(executor)


def get_auth_service(
    request: Request,
    users: UserRepository = Depends(get_user_repository),
    hasher: PasswordHasher = Depends(get_password_hasher),
    email_sender: EmailSender = Depends(get_email_sender),
    settings: Settings = Depends(get_app_settings),
) -> AuthService:
    state = request.app.state
    return AuthService(
        users=users,
        hasher=hasher,
        email_sender=email_sender,
        signup_store=state.signup_store,
        password_reset_store=state.password_reset_store,
        email_change_store=state.email_change_store,
        settings=settings,
    )
