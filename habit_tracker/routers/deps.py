"""
Request-scoped dependencies shared by the routers.

The caller's identity is supplied by the auth layer in front of this API as
the `X-User-Id` header; this service never authenticates on its own.
"""
from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from habit_tracker.core.errors import MissingUserError
from habit_tracker.db.base import get_db
from habit_tracker.services.store import SqlAlchemyHabitStore


def get_store(db: Session = Depends(get_db)) -> SqlAlchemyHabitStore:
    return SqlAlchemyHabitStore(db)


def get_user_id(
    x_user_id: Optional[str] = Header(
        default=None,
        description="Id of the authenticated user, set by the auth gateway.",
        examples=["uid_123"],
    ),
) -> str:
    if x_user_id is None or not x_user_id.strip():
        raise MissingUserError()
    return x_user_id.strip()
