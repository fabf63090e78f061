"""
ScopeNotes Backend — Note SQLAlchemy Model
============================================

What:  ORM model representing the `notes` table.
Who:   Queried and removed by NotesService; created by the bootstrap seed.

Table Design:
    - id: Integer primary key, externally assigned by the seed
    - category_id: Foreign reference to categories.id (the access-control
      boundary for every scoped query)
    - is_completed: Set by processes outside this service; completed notes
      are what the cleanup operation removes

    Index on (category_id, is_completed):
        Matches the only scoped query: WHERE category_id = :c AND is_completed
"""

from sqlalchemy import Boolean, ForeignKey, Index, Integer, String, false
from sqlalchemy.orm import Mapped, mapped_column

from scopenotes.database import Base


class Note(Base):
    """
    A note owned by exactly one category.

    Lifecycle:
        1. Created during bootstrap (is_completed = False)
        2. Marked completed by an external process
        3. Deleted by the cleanup operation of its own category
    """

    __tablename__ = "notes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    category_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("categories.id"),
        nullable=False,
    )

    is_completed: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=false(),
    )

    __table_args__ = (
        Index("idx_notes_category_completed", "category_id", "is_completed"),
    )

    def __repr__(self) -> str:
        return (
            f"<Note(id={self.id}, category_id={self.category_id}, "
            f"is_completed={self.is_completed})>"
        )
