"""
PlantDex Backend — Plant SQLAlchemy Model
==========================================

What:  ORM model for the `plants` table (one row per PlantRecord).
How:   Serial integer ids, assigned by the database on insert; the insert and
       the id it returns happen in one statement, which is what keeps
       concurrent submissions from colliding.

Table Design Rationale:
    - user_id: owner, set once at creation; indexed because every listing
      filters on it
    - image_url: plain URL or the full data URI as submitted (TEXT, no limit)
    - created_at: UTC with timezone; assigned at insert time
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, Index, Integer, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from plantdex.database import Base


class Plant(Base):
    """
    A plant in one user's collection.

    Lifecycle:
        1. Inserted by PlantService.submit (identified or manual)
        2. Read by its owner, individually or as a list
        3. Deleted by its owner; there is no update path
    """

    __tablename__ = "plants"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id"),
        nullable=False,
        comment="Owning user; never reassigned",
    )

    name: Mapped[str] = mapped_column(Text, nullable=False)
    scientific_name: Mapped[str] = mapped_column(Text, nullable=False)

    image_url: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="External URL or embedded data URI, stored as submitted",
    )

    habitat: Mapped[str] = mapped_column(Text, nullable=False)
    care_tips: Mapped[str] = mapped_column(Text, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
        comment="When this record was created (UTC)",
    )

    __table_args__ = (
        Index("idx_plants_user_id", "user_id"),
    )

    def __repr__(self) -> str:
        return f"<Plant(id={self.id}, user_id={self.user_id}, name='{self.name}')>"
