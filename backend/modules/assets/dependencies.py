"""
Dependencies для модуля учёта активов.
get_db и разбор JWT: общие с core; роли хранятся в User.role.
"""
from typing import Sequence
from uuid import UUID

from fastapi import Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from backend.core.auth import get_token_payload
from backend.core.config import settings
from backend.core.database import get_db as core_get_db
from backend.modules.hr.models.user import User

get_db = core_get_db

REVIEWER_ROLES = ("stock_manager", "admin")


def get_current_user(
    db: Session = Depends(get_db),
    payload: dict = Depends(get_token_payload),
) -> User:
    """Текущий пользователь из JWT (core.auth + User)."""
    user_id_str = payload.get("sub")
    if not user_id_str:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token format",
        )
    try:
        user_id = UUID(user_id_str)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid user id in token",
        )
    user = db.get(User, user_id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User is deactivated",
        )
    return user


def is_reviewer(user: User) -> bool:
    return user.has_role(REVIEWER_ROLES)


def require_asset_roles(allowed_roles: Sequence[str]):
    """
    Проверяет роль в модуле учёта активов.
    Разрешает: is_superuser, role in allowed_roles, либо role == "admin".
    """

    def _checker(user: User = Depends(get_current_user)) -> User:
        if user.has_role(allowed_roles):
            return user
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Insufficient permissions. Required role: {', '.join(allowed_roles)}",
        )

    return _checker


require_reviewer = require_asset_roles(REVIEWER_ROLES)


class Pagination:
    """page/page_size из query string, как в остальных списках платформы."""

    def __init__(
        self,
        page: int = Query(1, ge=1),
        page_size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    ):
        self.page = page
        self.page_size = page_size

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    @property
    def limit(self) -> int:
        return self.page_size
