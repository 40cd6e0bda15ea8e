"""
Declarative base for all models.
"""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for SQLAlchemy models."""

    def __repr__(self) -> str:
        """Short representation with primary key."""
        return f"<{self.__class__.__name__} id={getattr(self, 'id', None)}>"
