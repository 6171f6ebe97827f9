"""Declarative base for SQLAlchemy models."""

from __future__ import annotations

import re

from sqlalchemy.orm import DeclarativeBase, Mapped, declared_attr, mapped_column

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


class Base(DeclarativeBase):
    """Declarative base with snake_case table naming and an integer primary key."""

    @declared_attr.directive
    def __tablename__(cls) -> str:  # noqa: N805
        return _CAMEL_BOUNDARY.sub("_", cls.__name__).lower()

    id: Mapped[int] = mapped_column(primary_key=True)


__all__ = ["Base"]
