"""
Adapter: SQL unit of work.

Implements the UnitOfWork port with one SQLAlchemy transaction. The
repository adapters join it through ``app.infrastructure.database``.
"""

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.engine import Engine

from app.domain.trading.ports import UnitOfWork
from app.infrastructure.database import begin


class SqlUnitOfWork(UnitOfWork):
    """Runs a block of repository calls in a single transaction."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    @contextmanager
    def atomic(self) -> Iterator[None]:
        with begin(self._engine):
            yield
