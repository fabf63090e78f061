"""
ScopeNotes Backend — Category SQLAlchemy Model
================================================

What:  ORM model representing the `categories` table.
Who:   Looked up by the scope resolvers and by NotesService.find_category.

A category is read-only after the bootstrap seed: nothing in the service
renames it or moves notes between categories.
"""

from typing import List

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from scopenotes.database import Base
from scopenotes.models.note import Note


class Category(Base):
    """
    The scope every note operation is restricted to.

    `notes` is ordered by note id and eagerly loaded with a second SELECT
    (lazy loading is not available on async sessions).
    """

    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    notes: Mapped[List[Note]] = relationship(
        Note,
        order_by=Note.id,
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Category(id={self.id}, name='{self.name}')>"
