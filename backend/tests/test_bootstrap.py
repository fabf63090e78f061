"""
ScopeNotes Backend — Bootstrap Seed Tests
===========================================
"""

import pytest
from sqlalchemy import func, select

from scopenotes.bootstrap import DEFAULT_CATEGORY_ID, seed_default_category
from scopenotes.models.category import Category
from scopenotes.models.note import Note


class TestSeedDefaultCategory:

    @pytest.mark.asyncio
    async def test_seeds_category_with_three_open_notes(self, session_factory):
        async with session_factory() as session:
            assert await seed_default_category(session) is True

        async with session_factory() as session:
            category = await session.get(Category, DEFAULT_CATEGORY_ID)
            assert category.name == "Category 1"
            assert [note.id for note in category.notes] == [1, 2, 3]
            assert not any(note.is_completed for note in category.notes)

    @pytest.mark.asyncio
    async def test_second_seed_is_skipped(self, session_factory):
        async with session_factory() as session:
            await seed_default_category(session)
        async with session_factory() as session:
            assert await seed_default_category(session) is False

        async with session_factory() as session:
            count = await session.scalar(select(func.count()).select_from(Note))
        assert count == 3
