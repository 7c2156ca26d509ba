"""
Adapter: User directory.

Read-only lookup of users owned by the external auth system.
"""

from typing import Optional

from sqlalchemy import func, or_, select
from sqlalchemy.engine import Engine

from app.domain.trading.entities import User
from app.domain.trading.ports import UserDirectory
from app.infrastructure.database import connect
from app.infrastructure.trading.tables import users


class UserDirectoryAdapter(UserDirectory):
    """Resolves a user by id or by case-insensitive email."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def find(self, user_ref: str) -> Optional[User]:
        ref = user_ref.strip()
        query = select(users.c.id, users.c.email).where(
            or_(users.c.id == ref, func.lower(users.c.email) == ref.lower())
        )
        with connect(self._engine) as conn:
            row = conn.execute(query).mappings().first()
        if row is None:
            return None
        return User(id=row["id"], email=row["email"])
