"""
PlantDex Backend — User SQLAlchemy Model
=========================================

What:  ORM model for the `users` table.
Why the column is called `password`: the table is shared with the original
       deployment's schema. It only ever holds a passlib hash.
"""

from sqlalchemy import Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from plantdex.database import Base


class User(Base):
    """An account that owns plant records. Never deleted by the API."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    username: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        unique=True,
        comment="Login name, unique across all users",
    )

    password_hash: Mapped[str] = mapped_column(
        "password",
        Text,
        nullable=False,
        comment="Salted one-way hash (passlib); plaintext is never stored",
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username='{self.username}')>"
